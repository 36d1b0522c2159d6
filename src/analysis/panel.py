"""
Country-year panel: merge, derived metric, regional summaries.
"""

import logging

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

INDICATOR_COLS = ['popTotal', 'gdp', 'oldAgeDependency', 'rdExpenditure',
                  'researchersRD', 'outputPubs']

# Region-year medians, in output order
SUMMARY_COLS = {
    'oldAgeDependency': 'oldAgeDependencyMedian',
    'rdExpenditure': 'rdExpenditureMedian',
    'researchersRD': 'researchersRDMedian',
    'outputPubs': 'outputPubsMedian',
    'outputPubsScaled': 'outputPubsScaledMedian',
    'gdp': 'gdpMedian',
    'popTotal': 'popTotalMedian',
}

PER_MILLION = 1e6


def scale_per_million(numerator, population):
    """Counts per million people: numerator / population * 1e6."""
    return numerator / population * PER_MILLION


def unscale_per_million(scaled, population):
    """Invert scale_per_million given the population."""
    return scaled * population / PER_MILLION


def build_panel(vdem: pd.DataFrame, wdi: pd.DataFrame) -> pd.DataFrame:
    """
    Left-join the World Bank indicators onto the V-Dem panel by (iso3c, year).

    Every V-Dem row survives; unmatched rows carry NaN indicators. Both
    sides have a ``country`` column: the V-Dem name is kept and the World
    Bank one dropped.
    """
    wdi = wdi.dropna(subset=['iso3c'])
    dupes = wdi.duplicated(subset=['iso3c', 'year'])
    if dupes.any():
        raise ValueError(f"WDI table has {int(dupes.sum())} duplicate (iso3c, year) rows")

    rd = vdem.merge(wdi, on=['iso3c', 'year'], how='left',
                    suffixes=('_x', '_y'), validate='many_to_one')
    rd = rd.rename(columns={'country_x': 'country'})
    rd = rd.drop(columns=[c for c in ('country_y', 'vDemCtryId', 'vDemCode') if c in rd.columns])

    cols = ['iso3c'] + [c for c in rd.columns if c != 'iso3c']
    rd = rd[cols]

    for c in INDICATOR_COLS:
        if c not in rd.columns:
            rd[c] = np.nan

    rd['outputPubsScaled'] = scale_per_million(rd['outputPubs'], rd['popTotal'])

    matched = rd['popTotal'].notna() | rd['oldAgeDependency'].notna()
    logger.info(f"Panel: {len(rd)} rows, {int(matched.sum())} with World Bank data")
    return rd


def limit_years(frame: pd.DataFrame, start: int = 1995, end: int = 2020) -> pd.DataFrame:
    """Rows with start < year < end."""
    return frame[(frame['year'] > start) & (frame['year'] < end)].copy()


def summarize_by_region(frame: pd.DataFrame, start: int = 1995,
                        end: int = 2020) -> pd.DataFrame:
    """
    Median of each indicator per (region, year) within the window.

    NaN values are skipped; a group with no observations for an indicator
    gets NaN, never 0.
    """
    windowed = limit_years(frame, start, end)
    windowed = windowed.dropna(subset=['region'])

    cols = [c for c in SUMMARY_COLS if c in windowed.columns]
    summary = (windowed.groupby(['region', 'year'])[cols]
               .median()
               .rename(columns=SUMMARY_COLS)
               .reset_index())
    return summary.sort_values(['region', 'year']).reset_index(drop=True)

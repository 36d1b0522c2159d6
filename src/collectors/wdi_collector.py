"""
World Bank WDI Collector
========================

Fetches the development indicators used in the analysis through the World
Bank API (wbgapi), for all countries (aggregates excluded) over the most
recent ``mrv`` periods.

Output is a wide country-year table:

    iso3c, country, year, popTotal, gdp, oldAgeDependency,
    rdExpenditure, researchersRD, outputPubs
"""

import logging

import pandas as pd
import wbgapi as wb

logger = logging.getLogger(__name__)

INDICATORS = {
    'popTotal': 'SP.POP.TOTL',
    'gdp': 'NY.GDP.MKTP.CD',
    'oldAgeDependency': 'SP.POP.DPND.OL',
    'rdExpenditure': 'GB.XPD.RSDV.GD.ZS',
    'researchersRD': 'SP.POP.SCIE.RD.P6',
    'outputPubs': 'IP.JRN.ARTC.SC',
}


def tidy_observations(rows, indicators=None, names=None) -> pd.DataFrame:
    """
    Reshape wbgapi observation dicts into the wide country-year table.

    Each row looks like
    ``{'economy': 'USA', 'series': 'SP.POP.TOTL', 'time': 2019, 'value': ...}``;
    ``time`` may also be the API's ``'YR2019'`` form.
    """
    indicators = indicators or INDICATORS
    by_code = {code: name for name, code in indicators.items()}
    columns = ['iso3c', 'country', 'year'] + list(indicators)

    obs = pd.DataFrame(list(rows), columns=['economy', 'series', 'time', 'value'])
    if obs.empty:
        return pd.DataFrame(columns=columns)

    obs = obs[obs['series'].isin(by_code)].copy()
    obs['year'] = pd.to_numeric(
        obs['time'].astype(str).str.replace('YR', '', regex=False), errors='coerce'
    )
    obs = obs.dropna(subset=['economy', 'year'])
    obs['year'] = obs['year'].astype(int)
    obs['value'] = pd.to_numeric(obs['value'], errors='coerce')
    obs['indicator'] = obs['series'].map(by_code)

    obs = obs.drop_duplicates(subset=['economy', 'year', 'indicator'])
    wide = obs.set_index(['economy', 'year', 'indicator'])['value'].unstack('indicator')
    wide = wide.reindex(columns=list(indicators)).reset_index()
    wide = wide.rename(columns={'economy': 'iso3c'})
    wide.columns.name = None

    names = names or {}
    wide['country'] = wide['iso3c'].map(names)
    return wide[columns].sort_values(['iso3c', 'year']).reset_index(drop=True)


def economy_names() -> dict:
    """World Bank economy code -> name, countries only."""
    return {row['id']: row['value'] for row in wb.economy.list(skipAggs=True)}


def fetch_wdi(indicators=None, mrv: int = 50) -> pd.DataFrame:
    """Query the World Bank API for all countries over the last ``mrv`` periods."""
    indicators = indicators or INDICATORS
    logger.info(f"Fetching {len(indicators)} WDI indicators (mrv={mrv})")

    rows = wb.data.fetch(list(indicators.values()), economy='all', mrv=mrv,
                         skipAggs=True, numericTimeKeys=True)
    df = tidy_observations(rows, indicators, names=economy_names())

    logger.info(f"WDI: {len(df)} country-years, {df['iso3c'].nunique()} economies")
    return df

"""
Ageing categories and three-year changes in R&D expenditure.

Country-years are binned by old-age dependency into Jenks classes computed
once on the whole 1996-2019 sample; the same bins are reused for every
year. Per (year, category) medians are then compared with the value three
years earlier in the same category.
"""

import logging

import numpy as np
import pandas as pd

from analysis.jenks import (
    jenks_breaks, unique_breaks, merge_label_collisions, break_labels, classify,
)
from analysis.panel import limit_years

logger = logging.getLogger(__name__)

CLASSIFY_COL = 'oldAgeDependency'
OUTCOME_COL = 'rdExpenditure'


def filter_for_classification(panel: pd.DataFrame, start: int = 1995,
                              end: int = 2020) -> pd.DataFrame:
    """Window the panel and keep rows with both dependency and expenditure."""
    out = limit_years(panel, start, end)
    return out.dropna(subset=[CLASSIFY_COL, OUTCOME_COL]).reset_index(drop=True)


def assign_age_categories(frame: pd.DataFrame, n_classes: int = 3):
    """
    Add an ordered ``ageCategory`` column from Jenks breaks on dependency.

    Returns ``(frame, breaks)`` where ``breaks`` is already de-duplicated.
    """
    breaks = jenks_breaks(frame[CLASSIFY_COL], n_classes=n_classes)
    if len(unique_breaks(breaks)) < len(breaks):
        logger.warning(f"Jenks produced repeated breaks {breaks}; collapsing")
        breaks = unique_breaks(breaks)
    merged = merge_label_collisions(breaks)
    if len(merged) < len(breaks):
        logger.warning(f"Breaks {breaks} share interval labels; merging to {merged}")
        breaks = merged

    labels = break_labels(breaks)
    out = frame.copy()
    out['ageCategory'] = classify(out[CLASSIFY_COL].values, breaks, labels)
    logger.info(f"Age categories: {', '.join(labels)}")
    return out, breaks


def base_year(start: int = 1996, step: int = 3) -> int:
    """First calendar year >= start divisible by ``step`` (1996, 3 -> 1998)."""
    return start + ((step - (start % step)) % step)


def add_expenditure_change(summary: pd.DataFrame, lag: int = 3,
                           value: str = 'rdExpenditureMedian',
                           group: str = 'ageCategory') -> pd.DataFrame:
    """
    ``changeInExpenditure = value[y] - value[y - lag]`` within each group.

    Matching is by calendar year, so a gap in the series leaves the change
    undefined rather than comparing with an older row.
    """
    out = summary.sort_values([group, 'year']).reset_index(drop=True)
    prior = out[[group, 'year', value]].copy()
    prior['year'] = prior['year'] + lag
    prior = prior.rename(columns={value: '_prior'})

    merged = out.merge(prior, on=[group, 'year'], how='left', sort=False)
    out['changeInExpenditure'] = (merged[value] - merged['_prior']).values
    return out


def add_change_labels(summary: pd.DataFrame, base: int, step: int = 3) -> pd.DataFrame:
    """'Delta X.XX' at base + n*step when the change is defined, else ''."""
    out = summary.copy()
    on_grid = (out['year'] >= base) & ((out['year'] - base) % step == 0)
    show = on_grid & out['changeInExpenditure'].notna()
    out['label'] = np.where(
        show,
        out['changeInExpenditure'].map(lambda v: f"Delta {v:.2f}" if pd.notna(v) else ""),
        "",
    )
    return out


def summarize_by_age_category(frame: pd.DataFrame, lag: int = 3,
                              start: int = 1996) -> pd.DataFrame:
    """Median dependency and expenditure per (year, ageCategory), with changes."""
    summary = (frame.groupby(['year', 'ageCategory'], observed=True)
               .agg(oldAgeDependencyMedian=(CLASSIFY_COL, 'median'),
                    rdExpenditureMedian=(OUTCOME_COL, 'median'))
               .reset_index())

    summary = add_expenditure_change(summary, lag=lag)
    summary = add_change_labels(summary, base_year(start, lag), step=lag)
    return summary

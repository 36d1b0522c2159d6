import numpy as np
import pandas as pd
import pytest

from analysis.age_categories import (
    add_change_labels, add_expenditure_change, assign_age_categories, base_year,
    filter_for_classification, summarize_by_age_category,
)


def _series(years, values, category='low'):
    return pd.DataFrame({'year': years, 'ageCategory': category,
                         'rdExpenditureMedian': values})


def test_three_year_change():
    out = add_expenditure_change(_series([1996, 1999, 2002], [1.0, 1.5, 2.4]))
    change = out['changeInExpenditure'].tolist()

    assert np.isnan(change[0])
    assert change[1] == pytest.approx(0.5)
    assert change[2] == pytest.approx(0.9)


def test_change_matches_calendar_year_not_row_position():
    out = add_expenditure_change(_series([1996, 1997, 2000], [1.0, 2.0, 5.0]))
    change = out.set_index('year')['changeInExpenditure']

    assert np.isnan(change[1996])
    assert np.isnan(change[1997])
    assert change[2000] == pytest.approx(3.0)


def test_change_stays_within_category():
    df = pd.concat([_series([1996, 1999], [1.0, 2.0], 'low'),
                    _series([1996, 1999], [10.0, 40.0], 'high')])
    out = add_expenditure_change(df).set_index(['ageCategory', 'year'])

    assert out.loc[('low', 1999), 'changeInExpenditure'] == pytest.approx(1.0)
    assert out.loc[('high', 1999), 'changeInExpenditure'] == pytest.approx(30.0)


def test_base_year_is_first_multiple_of_three():
    assert base_year(1996) == 1998
    assert base_year(1998) == 1998
    assert base_year(2000, 5) == 2000


def test_labels_only_on_the_three_year_grid():
    years = list(range(1996, 2006))
    df = add_expenditure_change(_series(years, np.linspace(1.0, 2.0, len(years))))
    out = add_change_labels(df, base_year(1996)).set_index('year')['label']

    labelled = [y for y, text in out.items() if text]
    # 1998 sits on the grid but has no value three years earlier
    assert labelled == [2001, 2004]
    assert out[2001].startswith('Delta ')
    assert out[1998] == ''


def test_filter_for_classification_requires_both_columns():
    df = pd.DataFrame({
        'year': [1995, 2000, 2000, 2000, 2020],
        'oldAgeDependency': [5.0, 6.0, np.nan, 7.0, 8.0],
        'rdExpenditure': [1.0, 1.0, 1.0, np.nan, 1.0],
    })
    out = filter_for_classification(df)
    assert out['oldAgeDependency'].tolist() == [6.0]


def test_assign_categories_on_degenerate_sample_does_not_fail():
    df = pd.DataFrame({'year': [2000] * 4, 'oldAgeDependency': [9.0] * 4,
                       'rdExpenditure': [1.0, 2.0, 3.0, 4.0]})
    out, breaks = assign_age_categories(df)

    assert breaks == [9.0]
    assert out['ageCategory'].notna().all()


def test_assign_categories_when_breaks_print_identically():
    df = pd.DataFrame({'year': [2000] * 6,
                       'oldAgeDependency': [1.001, 1.002, 1.003, 1.004, 1.005, 9.0],
                       'rdExpenditure': [1.0] * 6})
    out, breaks = assign_age_categories(df)

    labels = list(out['ageCategory'].cat.categories)
    assert len(labels) == len(set(labels)) == len(breaks) - 1
    assert out['ageCategory'].notna().all()
    assert out['ageCategory'].iloc[-1] == labels[-1]
    assert out['ageCategory'].iloc[0] == labels[0]


def test_summary_by_year_and_category():
    rng = np.random.default_rng(1)
    years = np.repeat([1996, 1999, 2002], 30)
    dependency = np.tile(np.concatenate([rng.uniform(2, 5, 10),
                                         rng.uniform(12, 16, 10),
                                         rng.uniform(25, 30, 10)]), 3)
    df = pd.DataFrame({'year': years, 'oldAgeDependency': dependency,
                       'rdExpenditure': dependency / 10 + np.repeat([0.0, 0.1, 0.3], 30)})

    classified, breaks = assign_age_categories(df)
    summary = summarize_by_age_category(classified)

    assert len(breaks) == 4
    assert len(summary) == 3 * 3
    assert {'oldAgeDependencyMedian', 'rdExpenditureMedian',
            'changeInExpenditure', 'label'} <= set(summary.columns)
    # every category shifts by +0.1 then +0.2
    changes = summary.set_index(['year', 'ageCategory'])['changeInExpenditure']
    for cat in classified['ageCategory'].cat.categories:
        assert changes[(1999, cat)] == pytest.approx(0.1)
        assert changes[(2002, cat)] == pytest.approx(0.2)

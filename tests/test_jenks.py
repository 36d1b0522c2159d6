from itertools import combinations

import numpy as np
import pytest

from analysis.jenks import (
    break_labels, classify, jenks_breaks, merge_label_collisions, unique_breaks,
)


def _ssd(groups):
    return sum(((g - g.mean()) ** 2).sum() for g in groups)


def test_three_separated_clusters():
    values = [1.0, 1.1, 1.2, 5.0, 5.1, 5.2, 10.0, 10.1, 10.2]
    breaks = jenks_breaks(values, 3)
    assert breaks == pytest.approx([1.0, 1.2, 5.2, 10.2])


@pytest.mark.parametrize('seed', [7, 11, 23])
def test_partition_is_optimal_against_brute_force(seed):
    rng = np.random.default_rng(seed)
    x = np.sort(rng.uniform(0, 40, 9))
    breaks = jenks_breaks(x, 3)

    # breaks[1:] are the class maxima; the first class starts at the minimum
    groups, lo = [], -np.inf
    for hi in breaks[1:]:
        groups.append(x[(x > lo) & (x <= hi)])
        lo = hi
    assert sum(len(g) for g in groups) == len(x)
    found = _ssd(groups)

    best = min(
        _ssd([x[:a], x[a:b], x[b:]])
        for a, b in combinations(range(1, len(x)), 2)
    )
    assert found == pytest.approx(best)


def test_singleton_lowest_class_collapses_to_fewer_bins():
    values = [0.0, 10.0, 10.1, 20.0, 20.1]
    breaks = jenks_breaks(values, 3)
    assert breaks == pytest.approx([0.0, 0.0, 10.1, 20.1])

    cats = classify(values, breaks)
    assert list(cats.categories) == ['0.00 - 10.10', '10.10 - 20.10']
    assert list(np.asarray(cats.codes)) == [0, 0, 0, 1, 1]


def test_breaks_with_identical_labels_are_merged():
    assert merge_label_collisions([1.001, 1.002, 1.005, 9.0]) == [1.001, 1.005, 9.0]
    assert merge_label_collisions([0.5, 1.0, 2.0]) == [0.5, 1.0, 2.0]
    assert merge_label_collisions([3.0]) == [3.0]

    cats = classify([1.001, 1.002, 1.004, 1.005, 9.0], [1.001, 1.002, 1.005, 9.0])
    assert list(cats.categories) == ['1.00 - 1.00', '1.00 - 9.00']
    assert not cats.isna().any()


def test_ignores_missing_values():
    assert jenks_breaks([np.nan, 1.0, 2.0, 9.0, np.nan], 2) == [1.0, 2.0, 9.0]


def test_fewer_distinct_values_than_classes():
    values = [1.0, 1.0, 1.0, 2.0, 2.0]
    breaks = unique_breaks(jenks_breaks(values, 3))
    assert len(breaks) < 4

    cats = classify(values, breaks)
    assert not cats.isna().any()
    assert len(cats.categories) == len(breaks) - 1


def test_single_repeated_value_gives_one_bin():
    values = [3.0, 3.0, 3.0]
    breaks = unique_breaks(jenks_breaks(values, 3))
    assert breaks == [3.0]

    cats = classify(values, breaks)
    assert list(cats.categories) == ['3.00 - 3.00']
    assert (np.asarray(cats.codes) == 0).all()


def test_every_value_falls_inside_its_interval():
    rng = np.random.default_rng(3)
    values = rng.gamma(2.0, 8.0, 200)
    breaks = jenks_breaks(values, 3)
    codes = np.asarray(classify(values, breaks).codes)

    assert (codes >= 0).all()
    for v, c in zip(values, codes):
        assert breaks[c] <= v <= breaks[c + 1]
    # minimum goes into the lowest class, maximum into the highest
    assert codes[np.argmin(values)] == 0
    assert codes[np.argmax(values)] == 2


def test_labels_use_two_decimals():
    assert break_labels([0.051, 0.12, 0.3]) == ['0.05 - 0.12', '0.12 - 0.30']


def test_bad_input_raises():
    with pytest.raises(ValueError):
        jenks_breaks([], 3)
    with pytest.raises(ValueError):
        jenks_breaks([np.nan, np.nan], 3)
    with pytest.raises(ValueError):
        jenks_breaks([1.0, 2.0], 0)

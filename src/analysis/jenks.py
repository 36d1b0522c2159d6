"""
Jenks natural breaks (Fisher's exact 1-D optimal partition).

Dynamic programming over the sorted sample: ``cost[j, i]`` is the minimum
within-class sum of squared deviations (SSD) for putting the first ``i + 1``
values into ``j + 1`` contiguous classes. Prefix sums give the SSD of any
run in O(1), and each DP row is vectorised over the candidate start of the
last class, so the whole fit is O(k n^2) arithmetic in O(k n) numpy calls.

Breaks follow the usual convention: the sample minimum followed by the
largest value of each class, so classes are right-closed intervals
``(b[i-1], b[i]]`` with the first one closed at the minimum.
"""

import numpy as np
import pandas as pd


def _clean(values) -> np.ndarray:
    x = np.asarray(values, dtype=float).ravel()
    return np.sort(x[~np.isnan(x)])


def jenks_breaks(values, n_classes: int = 3) -> list:
    """
    Optimal class breaks for ``values`` into ``n_classes`` classes.

    Returns ``n_classes + 1`` numbers (minimum, then each class maximum).
    With fewer observations than classes the class count shrinks to the
    number of observations. Breaks may repeat on degenerate data; pass the
    result through unique_breaks() before binning.
    """
    if n_classes < 1:
        raise ValueError("n_classes must be >= 1")
    x = _clean(values)
    n = len(x)
    if n == 0:
        raise ValueError("jenks_breaks() needs at least one non-missing value")

    k = min(n_classes, n)
    s1 = np.concatenate(([0.0], np.cumsum(x)))
    s2 = np.concatenate(([0.0], np.cumsum(x * x)))

    def ssd(starts, end):
        # SSD of x[starts..end] (inclusive) for an array of starts
        cnt = end - starts + 1
        seg = s1[end + 1] - s1[starts]
        return (s2[end + 1] - s2[starts]) - seg * seg / cnt

    cost = np.full((k, n), np.inf)
    first = np.zeros((k, n), dtype=int)  # start index of the last class

    cost[0] = ssd(np.zeros(n, dtype=int), np.arange(n))

    for j in range(1, k):
        for i in range(j, n):
            starts = np.arange(j, i + 1)
            total = cost[j - 1, starts - 1] + ssd(starts, i)
            best = int(np.argmin(total))
            cost[j, i] = total[best]
            first[j, i] = starts[best]

    # Walk back from the last value to recover each class's last index
    ends = [n - 1]
    i = n - 1
    for j in range(k - 1, 0, -1):
        i = first[j, i] - 1
        ends.append(i)
    ends.reverse()

    breaks = [float(x[0])] + [float(x[e]) for e in ends]
    # Pad so callers always get n_classes + 1 breaks
    while len(breaks) < n_classes + 1:
        breaks.append(breaks[-1])
    return breaks


def unique_breaks(breaks) -> list:
    """Drop repeated breaks (degenerate samples), keeping order."""
    out = []
    for b in breaks:
        if not out or b != out[-1]:
            out.append(b)
    return out


def _label(lo, hi) -> str:
    return f"{lo:0.2f} - {hi:0.2f}"


def break_labels(breaks) -> list:
    """Interval labels like '0.05 - 0.12', one per consecutive pair."""
    breaks = list(breaks)
    if len(breaks) == 1:
        return [_label(breaks[0], breaks[0])]
    return [_label(lo, hi) for lo, hi in zip(breaks[:-1], breaks[1:])]


def merge_label_collisions(breaks) -> list:
    """
    Merge adjacent intervals whose two-decimal labels are identical.

    Distinct breaks can still print the same (e.g. 1.001 and 1.004); the
    interval is widened to the later break so every label stays unique.
    """
    breaks = unique_breaks(breaks)
    out = breaks[:2]
    for b in breaks[2:]:
        if _label(out[-1], b) == _label(out[-2], out[-1]):
            out[-1] = b
        else:
            out.append(b)
    return out


def classify(values, breaks, labels=None) -> pd.Categorical:
    """
    Assign each value to its break interval.

    Intervals are right-closed and the lowest one includes its lower bound.
    A single break (all values equal) yields one bin holding every value.
    Without explicit labels, intervals whose labels collide are merged.
    Values outside the breaks, and NaN, are left unassigned.
    """
    breaks = unique_breaks(breaks)
    if labels is None:
        breaks = merge_label_collisions(breaks)
    labels = labels or break_labels(breaks)
    values = pd.Series(np.asarray(values, dtype=float))

    if len(breaks) == 1:
        codes = np.where(values == breaks[0], 0, -1)
        return pd.Categorical.from_codes(codes, categories=labels, ordered=True)

    return pd.cut(values, bins=breaks, labels=labels, right=True,
                  include_lowest=True, ordered=True).values

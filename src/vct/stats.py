from __future__ import annotations
import logging
from typing import Sequence, Tuple

import numpy as np

from .errors import DegenerateRegressionError
from .types import FALSE_FIT

logger = logging.getLogger(__name__)

Fit = Tuple[float, float, float, float]


def slice_mean(arr: Sequence[float], start: int, end: int) -> float:
    """Mean of arr[start:end]. Accumulates in order so results are reproducible."""
    total = 0.0
    for i in range(start, end):
        total += arr[i]
    return total / (end - start)


def slice_std(arr: Sequence[float], start: int, end: int) -> float:
    """Population standard deviation of arr[start:end]."""
    mean = slice_mean(arr, start, end)
    var = 0.0
    for i in range(start, end):
        var += (arr[i] - mean) * (arr[i] - mean)
    return float(np.sqrt(var / (end - start)))


def interpolate_values(ts: np.ndarray, left: int, right: int) -> None:
    """Linearly fill ts[left+1:right] in place from the two endpoints."""
    slope = (ts[right] - ts[left]) / float(right - left)
    for j in range(left + 1, right):
        ts[j] = ts[left] + slope * (j - left)


def fi_roughness(ts: Sequence[float], left: int, right: int) -> float:
    """Inter-annual variability of a series between left and right.

    Consecutive differences are collected into a zero-initialised buffer of
    ``right - left`` slots, sorted, and the absolute value at position
    ``clamp(int(n * 0.1), 1, 3)`` is returned, with ``n = right - left + 1``.
    Ranges of three values or fewer return -1.0.
    """
    num_vals = right - left + 1
    if num_vals <= 3:
        return -1.0

    diffs = np.zeros(num_vals - 1, dtype="float64")
    for i in range(left, right - 1):
        diffs[i - left] = ts[i + 1] - ts[i]
    diffs.sort()

    idx = int(num_vals * 0.1)
    idx = min(max(idx, 1), 3)
    return float(abs(diffs[idx]))


def linear_fit(y: Sequence[float], x: Sequence[float], strict: bool = False) -> Fit:
    """Least-squares fit of y on x.

    Returns (slope, intercept, r2, t) where t = sqrt(r2 * (n - 2) / (1 - r2)).
    A vanishing x variance is only an error in strict mode; otherwise the
    division is carried out and may produce inf/nan.
    """
    y = np.asarray(y, dtype="float64")
    x = np.asarray(x, dtype="float64")
    n = y.size

    mean_x = slice_mean(x, 0, n)
    mean_y = slice_mean(y, 0, n)
    sxx = np.float64(0.0)
    sxy = np.float64(0.0)
    syy = np.float64(0.0)
    for i in range(n):
        sxx += (x[i] - mean_x) * (x[i] - mean_x)
        syy += (y[i] - mean_y) * (y[i] - mean_y)
        sxy += (y[i] - mean_y) * (x[i] - mean_x)

    if sxx < 0.00001:
        if strict:
            raise DegenerateRegressionError(f"x variance {float(sxx)!r} too small over {n} observations")
        logger.debug("Near-zero x variance (%r) in linear fit over %d observations", float(sxx), n)

    with np.errstate(divide="ignore", invalid="ignore"):
        slope = sxy / sxx
        intercept = mean_y - mean_x * slope
        if syy < 0.00001:
            r2 = np.float64(0.0)
        else:
            r2 = (sxy * sxy) / (sxx * syy)
        denom = 0.00001 if r2 == 1.0 else 1.0 - r2
        t = np.sqrt(r2 * (n - 2) / denom)

    return float(slope), float(intercept), float(r2), float(t)


def linear_change_rate(
    values: Sequence[float],
    years: Sequence[int],
    start: int,
    end: int,
    fi_range: float,
    num_years: int,
    strict: bool = False,
) -> Fit:
    """Regress values on elapsed calendar years between two year indices.

    Short windows (end - start < 4) and flat pixels (fi_range < 0.1) get the
    neutral FALSE_FIT without any computation.
    """
    if end - start < 4 or fi_range < 0.1:
        return FALSE_FIT

    if end == num_years:
        end -= 1

    x = [float(years[i] - years[start]) for i in range(start, end + 1)]
    y = [values[i] for i in range(start, end + 1)]
    return linear_fit(y, x, strict=strict)

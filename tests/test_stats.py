import math

import numpy as np
import pytest

from vct.errors import DegenerateRegressionError
from vct.stats import (
    fi_roughness, interpolate_values, linear_change_rate, linear_fit, slice_mean, slice_std,
)
from vct.types import FALSE_FIT


def test_slice_mean_and_std():
    arr = np.array([9.0, 2.0, 1.0, 2.0, 2.0, 9.0])
    assert slice_mean(arr, 1, 5) == pytest.approx(1.75)
    assert slice_std(arr, 1, 5) == pytest.approx(math.sqrt(0.1875))


def test_interpolate_values_linear_law():
    ts = np.array([0.0, 0.0, 10.0, -1.0, -1.0, -1.0, 18.0, 0.0])
    interpolate_values(ts, 2, 6)
    np.testing.assert_array_equal(ts[3:6], [12.0, 14.0, 16.0])
    # endpoints untouched
    assert ts[2] == 10.0 and ts[6] == 18.0


def test_fi_roughness_short_range():
    ts = np.arange(10, dtype=float)
    assert fi_roughness(ts, 0, 2) == -1.0
    assert fi_roughness(ts, 4, 5) == -1.0


def test_fi_roughness_increasing_series():
    # consecutive differences 1..9
    ts = np.cumsum(np.arange(10, dtype=float))
    assert fi_roughness(ts, 0, 10) == 1.0
    assert fi_roughness(ts, 0, 9) == 1.0


def test_fi_roughness_decreasing_series():
    # the zero slot of the buffer sorts last, position 1 is the second largest drop
    ts = -np.cumsum(np.arange(10, dtype=float))
    assert fi_roughness(ts, 0, 10) == 8.0


def test_linear_fit_perfect_line():
    x = [0.0, 1.0, 2.0, 3.0, 4.0]
    y = [1.0, 3.0, 5.0, 7.0, 9.0]
    slope, intercept, r2, t = linear_fit(y, x)
    assert slope == pytest.approx(2.0)
    assert intercept == pytest.approx(1.0)
    assert r2 == 1.0
    assert t == pytest.approx(math.sqrt(3 / 0.00001))


def test_linear_fit_flat_y_has_zero_r2():
    slope, intercept, r2, t = linear_fit([2.0] * 5, [0.0, 1.0, 2.0, 3.0, 4.0])
    assert slope == 0.0 and intercept == 2.0 and r2 == 0.0 and t == 0.0


def test_linear_change_rate_short_window_is_false_fit():
    values = np.arange(10, dtype=float) * 3.0
    years = np.arange(2000, 2010)
    assert linear_change_rate(values, years, 2, 5, fi_range=5.0, num_years=10) == FALSE_FIT
    assert linear_change_rate(values, years, 0, 9, fi_range=0.05, num_years=10) == FALSE_FIT


def test_linear_change_rate_uses_elapsed_years():
    values = np.array([0.0, 1.0, 2.0, 3.0, 4.0, 5.0])
    years = np.array([2000, 2002, 2004, 2006, 2008, 2010])
    slope, _, r2, _ = linear_change_rate(values, years, 0, 6, fi_range=1.0, num_years=6)
    assert slope == pytest.approx(0.5)
    assert r2 == pytest.approx(1.0)


def test_linear_change_rate_zero_x_variance():
    values = np.array([0.0, 1.0, 3.0, 2.0, 4.0, 5.0])
    years = np.full(6, 2005)
    slope, _, r2, _ = linear_change_rate(values, years, 0, 5, fi_range=1.0, num_years=6)
    assert math.isnan(slope) and math.isnan(r2)
    with pytest.raises(DegenerateRegressionError):
        linear_change_rate(values, years, 0, 5, fi_range=1.0, num_years=6, strict=True)

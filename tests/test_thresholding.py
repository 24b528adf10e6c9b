import numpy as np
import pytest

from vct.thresholding import change_threshold, composite_minima, longest_forest_run
from vct.types import B5, COMP, N_BANDS, MaskCode


def _ud(comp):
    comp = np.asarray(comp, dtype=float)
    ud = np.zeros((N_BANDS, comp.size))
    ud[COMP] = comp
    ud[B5] = comp * 2.0
    return ud


def test_close_minima_are_merged():
    comp = np.array([2.0, 1.0, 2.0, 8.0])
    assert composite_minima(comp, 4) == (1.0, 1.0)


def test_distant_second_minimum_is_kept():
    comp = np.array([1.0, 5.0, 6.0, 9.0])
    assert composite_minima(comp, 4) == (1.0, 5.0)


def test_minimum_at_last_year_keeps_sentinel():
    # the second minimum is tracked in the same pass, a decreasing series never sets it
    comp = np.array([5.0, 4.0, 3.0, 2.0, 1.0])
    assert composite_minima(comp, 5) == (1.0, 9999.0)


def test_longest_run_counts_water_and_keeps_first_tie():
    ud = _ud([1.0, 1.0, 9.0, 1.0, 1.0, 1.0, 9.0, 2.0, 2.0, 2.0])
    mask = np.full(10, MaskCode.CLEAR_LAND)
    mask[4] = MaskCode.WATER
    run = longest_forest_run(ud, mask, 10, 1.0, 4.0)
    assert run.start == 3
    assert run.length == 3
    assert run.water_count == 1
    assert run.max_cons_for == 2
    assert run.mean[COMP] == pytest.approx(1.0)
    assert run.mean[B5] == pytest.approx(2.0)
    assert run.sd[COMP] == pytest.approx(0.0)


def test_single_year_run_gets_synthetic_sd():
    ud = _ud([9.0, 3.0, 9.0])
    run = longest_forest_run(ud, np.full(3, 7), 3, 3.0, 6.0)
    assert run.length == 1 and run.start == 1
    np.testing.assert_allclose(run.sd, run.mean / 3.0)
    assert run.sd[COMP] == pytest.approx(1.0)


def test_no_run_defaults():
    ud = _ud([9.0, 9.0, 9.0])
    run = longest_forest_run(ud, np.full(3, 7), 3, 1.0, 4.0)
    assert run.length == 0 and run.max_cons_for == 0 and run.start == 0
    np.testing.assert_array_equal(run.mean, np.full(N_BANDS, 25.4))
    np.testing.assert_array_equal(run.sd, np.full(N_BANDS, 25.4))


def test_change_threshold_scales_with_forest_level():
    assert change_threshold(1.75) == pytest.approx(4.75)
    assert change_threshold(5.0) == pytest.approx(8.0)
    assert change_threshold(6.0) == pytest.approx(6.0 + 3.0 * 1.2)
    assert change_threshold(20.0) == pytest.approx(20.0 + 3.0 * 1.67)

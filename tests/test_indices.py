import numpy as np
import pytest

from vct.indices import composite_value, fill_composite
from vct.types import B3, B5, B7, COMP, N_BANDS


def test_composite_value_positive():
    assert composite_value([2.0, 2.0, 2.0]) == pytest.approx(2.0)
    assert composite_value([3.0, 0.0, 0.0]) == pytest.approx(np.sqrt(3.0))


def test_composite_value_damps_negatives():
    # -5 / 2.5 = -2, squared like a +2
    assert composite_value([-5.0, 2.0, 2.0]) == pytest.approx(2.0)


def test_fill_composite_only_touches_active_years():
    ud = np.zeros((N_BANDS, 4))
    ud[COMP] = -1.0
    ud[[B3, B5, B7], :] = 1.0
    ud[B5, 1] = 4.0
    fill_composite(ud, 3)
    np.testing.assert_allclose(ud[COMP, :3], [1.0, np.sqrt(6.0), 1.0])
    assert ud[COMP, 3] == -1.0

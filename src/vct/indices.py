from __future__ import annotations
import numpy as np

from .types import COMP, UD_INDEXES


def composite_value(values) -> float:
    """Composite UD score of one year from its B3, B5, B7 z-scores.

    Negative z-scores are damped by 2.5 before the root mean square.
    """
    sum_sq = 0.0
    for v in values:
        v = v if v >= 0.0 else v / 2.5
        sum_sq += v * v
    return float(np.sqrt(sum_sq / len(values)))


def fill_composite(ud: np.ndarray, num_years: int) -> None:
    """Write the composite band of a (bands, years) buffer in place."""
    for i in range(num_years):
        ud[COMP, i] = composite_value([ud[b, i] for b in UD_INDEXES])

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .stats import slice_mean, slice_std
from .types import COMP, FOR_THR_MAX, N_BANDS, MaskCode


@dataclass(frozen=True)
class ForestRun:
    """Longest run of years inside the forest composite band."""
    start: int
    length: int
    water_count: int
    mean: np.ndarray  # per band
    sd: np.ndarray    # per band

    @property
    def max_cons_for(self) -> int:
        return self.length - self.water_count


def composite_minima(comp: np.ndarray, num_years: int) -> Tuple[float, float]:
    """Lowest and second lowest composite values.

    The second minimum is tracked in the same pass as the minimum, so a
    global minimum in the last year leaves it at its 9999.0 sentinel. Minima
    closer than FOR_THR_MAX are treated as equal.
    """
    min_ud = 9999.0
    min2_ud = 9999.0
    for i in range(num_years):
        cmp = float(comp[i])
        if cmp < min_ud:
            min_ud = cmp
        if min_ud < cmp < min2_ud:
            min2_ud = cmp
    if min2_ud - min_ud < FOR_THR_MAX:
        min2_ud = min_ud
    return min_ud, min2_ud


def longest_forest_run(ud: np.ndarray, mask: np.ndarray, num_years: int,
                       min_for_ud: float, max_for_ud: float) -> ForestRun:
    """Find the longest streak with the composite inside [min_for_ud, max_for_ud].

    Ties keep the first streak found. Streaks of a single year get a
    synthetic SD of mean / 3.
    """
    comp = ud[COMP]
    i = 0
    i_start = 0
    i_end = 0
    water_count = 0
    max_length = 0

    while i < num_years:
        year_count = 0
        tmp_year = i
        tmp_water = 0
        while tmp_year < num_years and min_for_ud <= comp[tmp_year] <= max_for_ud:
            if mask[tmp_year] == MaskCode.WATER:
                tmp_water += 1
            tmp_year += 1
            year_count += 1

        if max_length < year_count:
            max_length = year_count
            water_count = tmp_water
            i_start = i
            i_end = tmp_year

        i += year_count if year_count > 0 else 1

    mean = np.full(N_BANDS, 25.4)
    sd = np.full(N_BANDS, 25.4)
    if max_length > 0:
        for b in range(N_BANDS):
            mean[b] = slice_mean(ud[b], i_start, i_end)
        if max_length > 1:
            for b in range(N_BANDS):
                sd[b] = slice_std(ud[b], i_start, i_end)
        else:
            sd[:] = mean / 3.0

    return ForestRun(start=i_start, length=max_length, water_count=water_count, mean=mean, sd=sd)


def change_threshold(mean_for_comp: float) -> float:
    """Composite level separating low (forest) from high (disturbed) years."""
    change_hike = FOR_THR_MAX
    adj_coeff = min(mean_for_comp / 5.0, 1.67)
    if adj_coeff > 1.0:
        change_hike *= adj_coeff
    return mean_for_comp + change_hike

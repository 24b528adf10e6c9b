"""Disturbance and regrowth characterisation of labelled segments."""
from __future__ import annotations
import logging
from typing import List, Tuple

import numpy as np

from .errors import DisturbanceIndexError
from .stats import fi_roughness, linear_change_rate
from .types import B4, B5, COMP, DNBR, NDVI, Disturbance, LandCover, Quality, Regrowth, SegmentLabel

logger = logging.getLogger(__name__)


class DisturbanceAnalyzer:
    """Marks per-year disturbance flags and builds disturbance records.

    The analyzer writes into the caller's `dist_flag` buffer but never keeps
    the records itself; callers append what the onset methods return.
    """

    def __init__(self, ud: np.ndarray, q_flag: np.ndarray, years: np.ndarray, num_years: int,
                 for_mean: np.ndarray, for_sd: np.ndarray, fi_range: float,
                 dist_flag: np.ndarray, strict: bool = False):
        self.ud = ud
        self.q_flag = q_flag
        self.years = years
        self.num_years = num_years
        self.for_mean = for_mean
        self.for_sd = for_sd
        self.fi_range = fi_range
        self.dist_flag = dist_flag
        self.strict = strict

    def _fit(self, start: int, end: int):
        return linear_change_rate(self.ud[B5], self.years, start, end, self.fi_range,
                                  self.num_years, strict=self.strict)

    def change_magnitudes(self, change_year: int, peak_year: int) -> Tuple[float, float, float, float]:
        """Peak-year departure from the forest mean in COMP, B4, NDVI and DNBR."""
        if not (0 <= change_year < self.num_years and 0 <= peak_year < self.num_years):
            if self.strict:
                raise DisturbanceIndexError(
                    f"Year out of range for magnitudes: change={change_year}, peak={peak_year}, "
                    f"years={self.num_years}")
            logger.warning("Year out of range for magnitudes: change=%d, peak=%d", change_year, peak_year)
        ud, mean = self.ud, self.for_mean
        return (
            float(ud[COMP, peak_year] - mean[COMP]),
            float(ud[B4, peak_year] - mean[B4]),
            float(ud[NDVI, peak_year] - mean[NDVI]),
            float(ud[DNBR, peak_year] - mean[DNBR]),
        )

    def onset(self, start: int, end: int) -> Disturbance:
        """Characterise a disturbance from its onset year to its end year."""
        self.dist_flag[start] = LandCover.JUST_DISTURBED

        comp = self.ud[COMP]
        true_peak = start
        local_max = comp[start]
        if end >= self.num_years:
            end = self.num_years - 1
        for i in range(start + 1, end + 1):
            self.dist_flag[i] = LandCover.TRANSITION_PERIOD
            if (comp[i] > local_max and i < end
                    and (comp[i] - comp[i - 1] < 2.0 or comp[i] - comp[i + 1] < 2.0)):
                local_max = comp[i]
                true_peak = i

        magn, magn_b4, magn_vi, magn_br = self.change_magnitudes(start, true_peak)

        regr = self._fit(true_peak, end)
        full = self._fit(start, end)
        return Disturbance(
            year=start,
            length=end - start + 1,
            magnitude=magn,
            magnitude_b4=magn_b4,
            magnitude_ndvi=magn_vi,
            magnitude_dnbr=magn_br,
            r2=full[2],
            regrowth_r2=regr[2],
            regrowth_slope=regr[0],
            roughness=fi_roughness(comp, start, end),
        )

    def mark_forest(self, start: int, end: int) -> None:
        for i in range(start, min(end, self.num_years - 1) + 1):
            self.dist_flag[i] = LandCover.INTER_DISTURB_FOREST

    def is_minor_first(self, curr: int) -> bool:
        """Anomaly test for the first year of a minor disturbance."""
        ud, mean, sd = self.ud, self.for_mean, self.for_sd
        thr_ud = mean[COMP] + 1.5 + sd[COMP]
        thr_dnbr = mean[DNBR] - 0.15 - sd[DNBR]
        thr_ndvi = mean[NDVI] - 0.15 - sd[NDVI]
        thr_b5 = mean[B5] + 1.0 + sd[B5]

        if curr == 0:
            return bool(
                ((ud[COMP, curr] > thr_ud + 1.0 or ud[B5, curr] > thr_b5 + 1.0)
                 and ud[NDVI, curr] < mean[NDVI]
                 and ud[DNBR, curr] < mean[DNBR])
                or (ud[NDVI, curr] < thr_ndvi - 0.1 or ud[DNBR, curr] < thr_dnbr - 0.1)
            )
        return bool(
            (((ud[COMP, curr] > thr_ud or ud[B5, curr] > thr_b5)
              and ud[NDVI, curr] < mean[NDVI]
              and ud[DNBR, curr] < mean[DNBR])
             or (ud[DNBR, curr] < thr_dnbr or ud[NDVI, curr] < thr_ndvi))
            and (ud[COMP, curr] > ud[COMP, curr - 1] + 2.0
                 or ud[B5, curr] > ud[B5, curr - 1] + 2.0
                 or ud[DNBR, curr] < ud[DNBR, curr - 1] - 0.2)
        )

    def is_minor_rest(self, curr: int) -> bool:
        """Looser anomaly test for the years following a minor onset."""
        ud, mean, sd = self.ud, self.for_mean, self.for_sd
        thr_ud = mean[COMP] + 1.0 + sd[COMP] / 2.0
        thr_dnbr = mean[DNBR] - 0.1 - sd[DNBR]
        thr_ndvi = mean[NDVI] - 0.1 - sd[NDVI]
        thr_b5 = mean[B5] + 1.0 + sd[B5] / 2.0
        return bool(
            ((ud[COMP, curr] > thr_ud or ud[B5, curr] > thr_b5)
             and (ud[NDVI, curr] < mean[NDVI] or ud[DNBR, curr] < mean[DNBR]))
            or (ud[DNBR, curr] < thr_dnbr or ud[NDVI, curr] < thr_ndvi)
        )

    def minor_disturbances(self, start: int, end: int) -> List[Disturbance]:
        """Scan a forested segment of four years or more for minor disturbances."""
        found: List[Disturbance] = []
        if end < start + 3:
            return found

        i = start
        while i <= end:
            if self.q_flag[i] == Quality.BAD or not self.is_minor_first(i):
                i += 1
                continue
            j = i + 1
            while j <= end and self.q_flag[j] == Quality.GOOD and self.is_minor_rest(j):
                j += 1
            if j - i > 1:
                found.append(self.onset(i, j))
            i = j
        return found

    def regrowth_type(self, record: Disturbance, next_label) -> int:
        """Regrowth of a major disturbance given the label of the following segment."""
        if next_label is not None:
            if next_label in (SegmentLabel.CLUD, SegmentLabel.NCLUD):
                return Regrowth.TO_FOREST
            logger.debug("CHUD at year %d not followed by a low segment", record.year)
            return Regrowth.NOT_OCCURRED
        if record.regrowth_r2 > 0.7 and record.regrowth_slope < -0.2:
            return Regrowth.OCCURRED
        return Regrowth.NOT_OCCURRED

    def global_trend(self) -> Tuple[float, float]:
        """Best (r2, slope) of B5 over the series with up to 2 years trimmed at either end."""
        n = self.num_years
        best_r2 = 0.0
        best_slope = 0.0
        windows = [(i, n - 1) for i in range(3)] + [(0, i) for i in range(n - 3, n)]
        for start, end in windows:
            slope, _, r2, _ = self._fit(start, end)
            if r2 > best_r2:
                best_r2 = r2
                best_slope = slope
        return best_r2, best_slope

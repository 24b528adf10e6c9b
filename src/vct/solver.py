"""Vegetation Change Tracker (VCT) per-pixel solver.

Implements the disturbance/regrowth analysis of Huang et al. (2010), "An
automated approach for reconstructing recent forest disturbance history
using dense Landsat time series stacks", Remote Sensing of Environment
114(1), 183-198. False-disturbance removal is not included.

The solver works on one pixel at a time. Its buffers are allocated once
with room for MAX_YEARS years and the active prefix is reset on every call,
so an instance must not be shared between threads; use one per worker.

Steps per pixel:
    1. Load the seven input bands, mask and years, derive the composite.
    2. Flag BAD years and fill them by interpolation (quality.py).
    3. Derive the forest reference level and change threshold (thresholding.py).
    4. Segment the composite into high/low runs and smooth them (segments.py).
    5. Characterise disturbances and regrowth per segment (change.py).
    6. Decide the land cover/change type and clamp outputs (landcover.py).
"""
from __future__ import annotations
import logging
from typing import List, Optional, Sequence

import numpy as np

from .change import DisturbanceAnalyzer
from .errors import DisturbanceIndexError, InvalidSeriesError
from .indices import fill_composite
from .landcover import clamp_magnitudes, classify_land_cover, longest_disturbance, water_stats
from .quality import interpolate_series
from .segments import agriculture_indicator, segment_series
from .thresholding import change_threshold, composite_minima, longest_forest_run
from .types import (
    COMP, FOR_THR_MAX, MAX_YEARS, N_BANDS, N_INPUT_BANDS, NDVI,
    Disturbance, LandCover, Options, PixelResult, PixelSummary, SegmentLabel,
)

logger = logging.getLogger(__name__)


class PixelSolver:
    """Reusable single-pixel VCT solver."""

    def __init__(self, opts: Optional[Options] = None):
        self.opts = opts or Options()
        self.num_years = 0

        self.ud = np.zeros((N_BANDS, MAX_YEARS), dtype="float64")
        self.mask = np.zeros(MAX_YEARS, dtype=np.int32)
        self.years = np.zeros(MAX_YEARS, dtype=np.int32)

        self.q_flag = np.zeros(MAX_YEARS, dtype=np.int8)
        self.cst_seg = np.zeros(MAX_YEARS, dtype=np.int8)
        self.cst_seg_smooth = np.zeros(MAX_YEARS, dtype=np.int8)
        self.dist_flag = np.zeros(MAX_YEARS, dtype=np.int8)

        self.dist_magn = np.zeros(MAX_YEARS, dtype="float64")
        self.dist_magn_b4 = np.zeros(MAX_YEARS, dtype="float64")
        self.dist_magn_vi = np.zeros(MAX_YEARS, dtype="float64")
        self.dist_magn_br = np.zeros(MAX_YEARS, dtype="float64")

    # ------------------------------------------------------------------
    # Input handling
    # ------------------------------------------------------------------

    def _validate(self, ud: Sequence[Sequence[float]], mask: Sequence[int], years: Sequence[int]) -> int:
        if len(ud) < N_INPUT_BANDS:
            raise InvalidSeriesError(f"Expected {N_INPUT_BANDS} index bands, got {len(ud)}")
        n = len(ud[0])
        if not 1 <= n <= MAX_YEARS:
            raise InvalidSeriesError(f"Number of years must be in [1, {MAX_YEARS}], got {n}")

        lengths = [len(band) for band in ud[:N_INPUT_BANDS]] + [len(mask), len(years)]
        if min(lengths) < n:
            raise InvalidSeriesError(f"Input sequences shorter than {n} years: {lengths}")
        if max(lengths) > n or len(ud) > N_INPUT_BANDS:
            if self.opts.strict:
                raise InvalidSeriesError(f"Mismatched input lengths {lengths} for {len(ud)} bands")
            logger.warning("Ignoring trailing input values: lengths %s, %d bands", lengths, len(ud))
        return n

    def _load(self, ud: Sequence[Sequence[float]], mask: Sequence[int], years: Sequence[int]) -> None:
        n = self._validate(ud, mask, years)
        self.num_years = n

        for b in range(N_INPUT_BANDS):
            self.ud[b, :n] = np.asarray(ud[b][:n], dtype="float64")
        self.mask[:n] = np.asarray(mask[:n], dtype=np.int32)
        self.years[:n] = np.asarray(years[:n], dtype=np.int32)
        fill_composite(self.ud, n)

        for buf in (self.q_flag, self.cst_seg, self.cst_seg_smooth, self.dist_flag,
                    self.dist_magn, self.dist_magn_b4, self.dist_magn_vi, self.dist_magn_br):
            buf[:n] = 0

    def _record(self, records: List[Disturbance], rec: Disturbance) -> None:
        # a pixel never holds as many disturbances as years
        if len(records) + 1 >= self.num_years:
            logger.debug("Dropping disturbance #%d at year index %d in a %d-year series",
                         len(records) + 1, rec.year, self.num_years)
            return
        if records and rec.year < records[-1].year:
            if self.opts.strict:
                raise DisturbanceIndexError(
                    f"Disturbance at year index {rec.year} recorded after one at {records[-1].year}")
            logger.debug("Disturbance at year index %d recorded after one at %d", rec.year, records[-1].year)
        records.append(rec)
        self.dist_magn[rec.year] = rec.magnitude
        self.dist_magn_b4[rec.year] = rec.magnitude_b4
        self.dist_magn_vi[rec.year] = rec.magnitude_ndvi
        self.dist_magn_br[rec.year] = rec.magnitude_dnbr

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def solve(self, ud: Sequence[Sequence[float]], mask: Sequence[int], years: Sequence[int]) -> PixelResult:
        """Run the full analysis for one pixel.

        Arguments:
            ud: seven per-year series in band order B3, B4, B5, B7, thermal,
                NDVI, DNBR (forest z-scores).
            mask: per-year mask codes (see MaskCode).
            years: calendar year of each observation.

        Returns:
            PixelResult with per-year flags and magnitudes plus a summary.
        """
        self._load(ud, mask, years)
        n = self.num_years
        opts = self.opts

        quality = interpolate_series(self.ud, self.mask, self.q_flag, n)

        max_vi = float(self.ud[NDVI, :n].max())
        _, min2_ud = composite_minima(self.ud[COMP], n)
        water = water_stats(self.mask, n)

        run = longest_forest_run(self.ud, self.mask, n, min2_ud, min2_ud + FOR_THR_MAX)
        threshold = change_threshold(run.mean[COMP])

        segments, counts = segment_series(self.ud[COMP], threshold, self.cst_seg, self.cst_seg_smooth, n)
        ag_indicator = agriculture_indicator(self.ud, self.cst_seg, n)

        analyzer = DisturbanceAnalyzer(
            self.ud, self.q_flag, self.years, n, run.mean, run.sd,
            quality.fi_range, self.dist_flag, strict=opts.strict,
        )

        lc_type = LandCover.PART_FOREST
        records: List[Disturbance] = []
        num_major = 0
        for idx, seg in enumerate(segments):
            next_label = segments[idx + 1].label if idx < len(segments) - 1 else None

            if seg.label == SegmentLabel.CHUD:
                num_major += 1
                rec = analyzer.onset(seg.start, seg.end)
                rec.regrowth = analyzer.regrowth_type(rec, next_label)
                lc_type = LandCover.PART_FOREST
                self._record(records, rec)

            elif seg.label == SegmentLabel.CLUD:
                analyzer.mark_forest(seg.start, seg.end)
                for rec in analyzer.minor_disturbances(seg.start, seg.end):
                    lc_type = LandCover.PART_FOREST
                    self._record(records, rec)

            elif seg.label == SegmentLabel.NCHUD:
                if seg.end == n - 1:
                    lc_type = LandCover.PART_FOREST
                    self._record(records, analyzer.onset(seg.start, seg.end))
                else:
                    analyzer.mark_forest(seg.start, seg.end)

            elif seg.label == SegmentLabel.NCLUD:
                analyzer.mark_forest(seg.start, seg.end)

            else:
                logger.warning("Unexpected segment label %r at year index %d", seg.label, seg.start)
                lc_type = LandCover.PERM_NON_FOREST

        global_r2, global_slope = analyzer.global_trend()

        lc_type = classify_land_cover(
            lc_type, water, counts.sharp_turns, min2_ud, max_vi,
            run.max_cons_for, run.start, len(records), n, opts,
        )

        # Clamp outputs and summarise the longest disturbance
        u_range = min(quality.u_range, 25.4)
        clamp_magnitudes(lc_type, records, self.dist_magn, self.dist_magn_vi, self.dist_magn_br, n,
                         strict=opts.strict)
        if lc_type == LandCover.PART_FOREST:
            longest_length, longest_r2, longest_rough = longest_disturbance(records)
        else:
            longest_length, longest_r2, longest_rough = 0, 0.0, 0.0
        global_slope = max(min(global_slope, 1.0), -1.0)

        summary = PixelSummary(
            pct_good_obs=quality.pct_good_obs,
            u_range=u_range,
            v_range=quality.v_range,
            fi_rough=quality.fi_rough,
            fi_range=quality.fi_range,
            global_r2=global_r2,
            global_slope=global_slope,
            max_cons_for=run.max_cons_for,
            max_for_start=run.start,
            num_dist=len(records),
            num_major_dist=num_major,
            longest_dist_length=longest_length,
            longest_dist_r2=longest_r2,
            longest_dist_rough=longest_rough,
            hud_seg=counts.hud_seg,
            lud_seg=counts.lud_seg,
            sharp_turns=counts.sharp_turns,
            ag_indicator=ag_indicator,
            disturbances=tuple(records),
        )
        logger.debug("lc_type=%d disturbances=%d pct_good=%d", lc_type, len(records), quality.pct_good_obs)
        return self._result(int(lc_type), summary)

    def _result(self, lc_type: int, summary: PixelSummary) -> PixelResult:
        n = self.num_years
        years = self.years[:n].copy()
        if lc_type != LandCover.PART_FOREST:
            zeros = np.zeros(n, dtype="float64")
            return PixelResult(
                lc_type=lc_type,
                years=years,
                dist_flag=np.full(n, lc_type, dtype=np.int8),
                dist_magn=zeros,
                dist_magn_ndvi=zeros.copy(),
                dist_magn_dnbr=zeros.copy(),
                dist_magn_b4=zeros.copy(),
                summary=summary,
            )
        return PixelResult(
            lc_type=lc_type,
            years=years,
            dist_flag=self.dist_flag[:n].copy(),
            dist_magn=self.dist_magn[:n].copy(),
            dist_magn_ndvi=self.dist_magn_vi[:n].copy(),
            dist_magn_dnbr=self.dist_magn_br[:n].copy(),
            dist_magn_b4=self.dist_magn_b4[:n].copy(),
            summary=summary,
        )


def solve_pixel(ud: Sequence[Sequence[float]], mask: Sequence[int], years: Sequence[int],
                opts: Optional[Options] = None) -> PixelResult:
    """One-off convenience wrapper around a fresh PixelSolver."""
    return PixelSolver(opts).solve(ud, mask, years)

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from .errors import DisturbanceIndexError
from .types import Disturbance, LandCover, MaskCode, Options

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WaterStats:
    front: int            # water/shadow years in the first third
    tail: int             # water/shadow years in the last third
    pct_water: float      # water or shadow fraction
    pct_shadow: float


def water_stats(mask: Sequence[int], num_years: int) -> WaterStats:
    first_third = num_years // 3
    last_third = num_years - first_third
    front = tail = 0
    water = shadow = 0.0
    for i in range(num_years):
        if mask[i] == MaskCode.WATER or mask[i] == MaskCode.SHADOW:
            water += 1.0
            if mask[i] == MaskCode.SHADOW:
                shadow += 1.0
            front += 1 if i < first_third else 0
            tail += 1 if i >= last_third else 0
    return WaterStats(front=front, tail=tail, pct_water=water / num_years, pct_shadow=shadow / num_years)


def classify_land_cover(
    lc_type: int,
    water: WaterStats,
    sharp_turns: int,
    min2_ud: float,
    max_vi: float,
    max_cons_for: int,
    max_for_start: int,
    num_dist: int,
    num_years: int,
    opts: Options,
) -> int:
    """Final land cover/change type; the first matching rule wins."""
    if (water.front > 1 and water.tail > 1
            and water.pct_water > 0.4 and water.pct_water > water.pct_shadow * 2.0):
        return LandCover.PERM_WATER

    # many sharp turns: agriculture or other noisy non-forest
    if sharp_turns > num_years * 0.33:
        return LandCover.PERM_NON_FOREST

    if min2_ud > opts.max_ud or max_vi < opts.min_ndvi:
        return LandCover.PERM_NON_FOREST

    if max_cons_for < 3 and max_for_start > 1 and max_for_start < (num_years - 1 - max_cons_for):
        return LandCover.PERM_NON_FOREST

    if max_cons_for < 1:
        return LandCover.PERM_WATER if water.pct_water > 0.15 else LandCover.PERM_NON_FOREST

    if num_dist == 0:
        return LandCover.PERM_FOREST

    return lc_type


def longest_disturbance(records: Sequence[Disturbance]) -> Tuple[int, float, float]:
    """(length, r2, roughness) of the first longest disturbance."""
    length = 0
    idx = 0
    for i, rec in enumerate(records):
        if rec.length > length:
            idx = i
            length = rec.length
    if not records:
        return 0, 0.0, 0.0
    return length, records[idx].r2, records[idx].roughness


def clamp_magnitudes(
    lc_type: int,
    records: List[Disturbance],
    dist_magn: np.ndarray,
    dist_magn_vi: np.ndarray,
    dist_magn_br: np.ndarray,
    num_years: int,
    strict: bool = False,
) -> None:
    """Cap magnitudes in place; first and last onset years get two-sided limits."""
    n = num_years
    np.minimum(dist_magn[:n], 25.0, out=dist_magn[:n])

    if lc_type != LandCover.PART_FOREST:
        return

    if len(records) < 1 or len(records) >= num_years:
        if strict:
            raise DisturbanceIndexError(f"Wrong number of disturbances: {len(records)} in {num_years} years")
        logger.warning("Wrong number of disturbances: %d in %d years", len(records), num_years)
        if not records:
            return

    for y in {records[0].year, records[-1].year}:
        dist_magn[y] = max(min(dist_magn[y], 25.0), 0.0)
        dist_magn_vi[y] = max(min(dist_magn_vi[y], 1.0), -1.0)
        dist_magn_br[y] = max(min(dist_magn_br[y], 1.0), -1.0)

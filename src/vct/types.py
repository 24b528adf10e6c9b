from __future__ import annotations
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Tuple

import numpy as np

# Maximum number of years a solver can hold
MAX_YEARS = 30

# Positions in the index buffer. Only a subset of the TM bands is used.
B3 = 0
B4 = 1
B5 = 2
B7 = 3
BT = 4
NDVI = 5
DNBR = 6
COMP = 7
N_BANDS = 8
N_INPUT_BANDS = 7
UD_INDEXES = (B3, B5, B7)

BAND_NAMES = ("b3", "b4", "b5", "b7", "bt", "ndvi", "dnbr", "comp")

# Composite threshold range for forest
FOR_THR_MAX = 3.0

# Neutral regression result: slope, intercept, r2, t
FALSE_FIT = (0.0, 25.0, 0.0, 0.0)


class Quality(IntEnum):
    BAD = 0
    GOOD = 1


class MaskCode(IntEnum):
    """Observation mask categories. Everything <= FILL_CLASSES (but 0) is fillable."""
    BACKGROUND = 0
    CLOUD = 1
    CLOUD_EDGE = 2
    SHADOW = 3
    SHADOW_EDGE = 4
    SNOW = 5
    WATER = 6
    CLEAR_LAND = 7
    CORE_FOREST = 8
    CORE_NONFOREST = 9
    CONFIDENT_CLEAR = 10


FILL_CLASSES = 5


class LandCover(IntEnum):
    """Pixel land cover/change types and per-year disturbance flags."""
    PERM_NON_FOREST = 1
    PERM_FOREST = 2
    PART_FOREST = 3
    PERM_WATER = 4
    INTER_DISTURB_FOREST = 5
    JUST_DISTURBED = 6
    TRANSITION_PERIOD = 7


class Regrowth(IntEnum):
    NOT_OCCURRED = 1
    OCCURRED = 2
    TO_FOREST = 3


class SegmentLabel(IntEnum):
    """Consecutive / non-consecutive high and low composite runs."""
    CHUD = 1
    CLUD = 2
    NCHUD = 3
    NCLUD = 4


LOW_LABELS = (SegmentLabel.CLUD, SegmentLabel.NCLUD)


@dataclass(frozen=True)
class Segment:
    label: int
    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length - 1


@dataclass
class Disturbance:
    """One detected disturbance, keyed by its onset year index."""
    year: int
    length: int
    magnitude: float
    magnitude_b4: float
    magnitude_ndvi: float
    magnitude_dnbr: float
    r2: float
    regrowth_r2: float
    regrowth_slope: float
    roughness: float
    regrowth: int = 0


@dataclass(frozen=True)
class Options:
    max_ud: float = 4.0      # maximum composite value for forest
    min_ndvi: float = 0.45   # minimum NDVI value for forest
    strict: bool = False     # raise on inconsistencies instead of carrying on


@dataclass(frozen=True)
class Bands:
    """1-based band positions (rasterio convention) in each yearly raster."""
    b3: int = 1
    b4: int = 2
    b5: int = 3
    b7: int = 4
    bt: int = 5
    ndvi: int = 6
    dnbr: int = 7
    mask: int = 8

    @property
    def index_bands(self) -> Tuple[int, ...]:
        return (self.b3, self.b4, self.b5, self.b7, self.bt, self.ndvi, self.dnbr)


@dataclass(frozen=True)
class PixelSummary:
    pct_good_obs: int = 0
    u_range: float = 0.0
    v_range: float = 0.0
    fi_rough: float = 0.0
    fi_range: float = 0.0
    global_r2: float = 0.0
    global_slope: float = 0.0
    max_cons_for: int = 0
    max_for_start: int = 0
    num_dist: int = 0
    num_major_dist: int = 0
    longest_dist_length: int = 0
    longest_dist_r2: float = 0.0
    longest_dist_rough: float = 0.0
    hud_seg: int = 0
    lud_seg: int = 0
    sharp_turns: int = 0
    ag_indicator: int = 0
    disturbances: Tuple[Disturbance, ...] = ()


@dataclass(frozen=True)
class PixelResult:
    lc_type: int
    years: np.ndarray
    dist_flag: np.ndarray
    dist_magn: np.ndarray
    dist_magn_ndvi: np.ndarray
    dist_magn_dnbr: np.ndarray
    dist_magn_b4: np.ndarray
    summary: PixelSummary = field(default_factory=PixelSummary)

    @property
    def num_years(self) -> int:
        return int(self.years.size)

    def as_arrays(self) -> np.ndarray:
        """Stack of (flag, composite, NDVI, DNBR magnitudes), shape (4, years)."""
        return np.stack([
            self.dist_flag.astype("float64"),
            self.dist_magn,
            self.dist_magn_ndvi,
            self.dist_magn_dnbr,
        ], axis=0)

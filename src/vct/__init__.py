"""Vegetation Change Tracker: per-pixel forest disturbance and regrowth analysis."""
from .errors import DegenerateRegressionError, DisturbanceIndexError, InvalidSeriesError, VCTError
from .solver import PixelSolver, solve_pixel
from .types import Bands, LandCover, MaskCode, Options, PixelResult, PixelSummary, Regrowth

__all__ = [
    "Bands",
    "DegenerateRegressionError",
    "DisturbanceIndexError",
    "InvalidSeriesError",
    "LandCover",
    "MaskCode",
    "Options",
    "PixelResult",
    "PixelSolver",
    "PixelSummary",
    "Regrowth",
    "VCTError",
    "solve_pixel",
]

__version__ = "0.1.0"

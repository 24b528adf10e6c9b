from __future__ import annotations
import glob
import math
import re
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np
import rasterio
from rasterio.io import DatasetReader

from .types import Bands

FILENAME_YEAR_RE = re.compile(r"_(?P<year>\d{4})(?=[^/\\]*\.(?:tif|tiff)$)", re.IGNORECASE)


def year_from_path(p: Path) -> Optional[int]:
    m = FILENAME_YEAR_RE.search(Path(p).name)
    return int(m.group("year")) if m else None


def discover_inputs(patterns: Sequence[str]) -> List[Path]:
    """Expand shell-style patterns and sort by the year encoded in the file name."""
    files: List[Path] = []
    for patt in patterns:
        files.extend(Path(f) for f in glob.glob(patt))
    files = list({f.resolve() for f in files})
    if not files:
        raise SystemExit("No input files found.")

    def sort_key(p: Path):
        year = year_from_path(p)
        return (year, p.name) if year is not None else (math.inf, p.name)

    files.sort(key=sort_key)
    return files


def _read_band(ds: DatasetReader, idx: int) -> np.ndarray:
    arr = ds.read(idx).astype("float64")
    mask = ds.read_masks(idx) == 0
    arr[mask] = np.nan
    return arr


def _ensure_contains_bands(ds: DatasetReader, bands: Bands) -> None:
    for idx in bands.index_bands + (bands.mask,):
        if not (1 <= idx <= ds.count):
            raise SystemExit(f"Band index {idx} not in dataset with {ds.count} bands: {ds.name}")


def read_year_stack(paths: Sequence[Path], bands: Bands) -> Tuple[np.ndarray, np.ndarray, dict]:
    """Read the index bands and the mask band of every yearly raster.

    Returns (index[7, T, H, W] float64 with NaN where masked, mask[T, H, W]
    int32, single-band profile). All rasters must share one grid.
    """
    index_years: List[np.ndarray] = []
    mask_years: List[np.ndarray] = []
    profile: Optional[dict] = None

    for p in paths:
        with rasterio.open(p) as ds:
            _ensure_contains_bands(ds, bands)
            if profile is None:
                profile = ds.profile.copy()
                profile.update(count=1)
            index_years.append(np.stack([_read_band(ds, b) for b in bands.index_bands], axis=0))
            mask_years.append(ds.read(bands.mask).astype(np.int32))

    assert profile is not None
    index = np.stack(index_years, axis=1)
    mask = np.stack(mask_years, axis=0)
    return index, mask, profile


def write_stack(path: Path, profile: dict, array: np.ndarray) -> None:
    """Write a (H, W) or (count, H, W) array; dtype decides the nodata value."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if array.ndim == 2:
        array = array[np.newaxis]
    prof = profile.copy()
    if array.dtype == np.uint8:
        prof.update(dtype="uint8", nodata=0)
    elif array.dtype == np.int32:
        prof.update(dtype="int32", nodata=0)
    elif array.dtype == np.float32:
        prof.update(dtype="float32", nodata=np.nan)
    else:
        prof.update(dtype=str(array.dtype))
    prof.update(count=array.shape[0])
    with rasterio.open(path, "w", **prof) as dst:
        dst.write(array)

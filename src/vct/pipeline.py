from __future__ import annotations
import logging
from collections import Counter
from pathlib import Path
from typing import List

import numpy as np

from .errors import VCTError
from .io import discover_inputs, read_year_stack, write_stack, year_from_path
from .solver import PixelSolver
from .types import MAX_YEARS, Bands, Options

logger = logging.getLogger(__name__)


def run_vct(inputs: List[str], outdir: Path, bands: Bands, opts: Options) -> dict:
    """Run the solver over every pixel of a stack of yearly rasters."""
    paths = discover_inputs(inputs)
    if len(paths) > MAX_YEARS:
        raise SystemExit(f"At most {MAX_YEARS} yearly rasters are supported, got {len(paths)}.")

    years: List[int] = []
    for i, p in enumerate(paths):
        year = year_from_path(p)
        if year is None:
            year = 2000 + i
            logger.warning("No year in %s, assuming %d", p.name, year)
        years.append(year)

    index, mask, profile = read_year_stack(paths, bands)
    _, T, H, W = index.shape
    logger.info("Read %d years (%d-%d) on a %dx%d grid", T, years[0], years[-1], H, W)

    lc_type = np.zeros((H, W), dtype=np.uint8)
    dist_flag = np.zeros((T, H, W), dtype=np.uint8)
    dist_magn = np.full((T, H, W), np.nan, dtype=np.float32)
    dist_magn_ndvi = np.full((T, H, W), np.nan, dtype=np.float32)
    dist_magn_dnbr = np.full((T, H, W), np.nan, dtype=np.float32)

    valid = np.all(np.isfinite(index), axis=(0, 1))
    solver = PixelSolver(opts)
    failed = 0
    for r, c in zip(*np.nonzero(valid)):
        try:
            res = solver.solve(index[:, :, r, c], mask[:, r, c], years)
        except VCTError as exc:
            failed += 1
            logger.error("Pixel (%d, %d) failed: %s", r, c, exc)
            continue
        lc_type[r, c] = res.lc_type
        dist_flag[:, r, c] = res.dist_flag
        dist_magn[:, r, c] = res.dist_magn
        dist_magn_ndvi[:, r, c] = res.dist_magn_ndvi
        dist_magn_dnbr[:, r, c] = res.dist_magn_dnbr

    outdir.mkdir(parents=True, exist_ok=True)
    write_stack(outdir / "vct_lc_type.tif", profile, lc_type)
    write_stack(outdir / "vct_dist_flag.tif", profile, dist_flag)
    write_stack(outdir / "vct_dist_magn.tif", profile, dist_magn)
    write_stack(outdir / "vct_dist_magn_ndvi.tif", profile, dist_magn_ndvi)
    write_stack(outdir / "vct_dist_magn_dnbr.tif", profile, dist_magn_dnbr)

    processed = int(valid.sum()) - failed
    counts = Counter(int(v) for v in lc_type[valid] if v)
    stats = {
        "years": years,
        "processed_pixels": processed,
        "skipped_pixels": int((~valid).sum()),
        "failed_pixels": failed,
        "lc_type_counts": dict(sorted(counts.items())),
        "outdir": str(outdir.resolve()),
    }
    return stats

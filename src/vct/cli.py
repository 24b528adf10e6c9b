from __future__ import annotations
import logging
from pathlib import Path
from typing import List

import typer

from .logging_utils import setup_logger
from .pipeline import run_vct
from .types import Bands, LandCover, Options

app = typer.Typer(add_completion=False, no_args_is_help=True)


@app.command()
def main(
    inputs: List[str] = typer.Argument(..., help="One or more glob patterns for yearly GeoTIFFs (name_YYYY.tif)"),
    outdir: Path = typer.Option(Path("outputs"), help="Output directory"),
    # bands
    b3_band: int = typer.Option(1, help="1-based band index for the B3 z-score"),
    b4_band: int = typer.Option(2, help="1-based band index for the B4 z-score"),
    b5_band: int = typer.Option(3, help="1-based band index for the B5 z-score"),
    b7_band: int = typer.Option(4, help="1-based band index for the B7 z-score"),
    bt_band: int = typer.Option(5, help="1-based band index for the thermal z-score"),
    ndvi_band: int = typer.Option(6, help="1-based band index for NDVI"),
    dnbr_band: int = typer.Option(7, help="1-based band index for DNBR"),
    mask_band: int = typer.Option(8, help="1-based band index for the mask codes"),
    # algo
    max_ud: float = typer.Option(4.0, help="Maximum composite value for forest"),
    min_ndvi: float = typer.Option(0.45, help="Minimum NDVI value for forest"),
    strict: bool = typer.Option(False, help="Fail a pixel on inconsistent series instead of carrying on"),
    logs_dir: str = typer.Option("./logs", help="Directory for the rotating log file (empty: console only)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
):
    logger = setup_logger(logs_dir=logs_dir or None, name="vct", verbose=verbose)
    bands = Bands(b3=b3_band, b4=b4_band, b5=b5_band, b7=b7_band, bt=bt_band,
                  ndvi=ndvi_band, dnbr=dnbr_band, mask=mask_band)
    opts = Options(max_ud=max_ud, min_ndvi=min_ndvi, strict=strict)
    stats = run_vct(inputs, outdir, bands, opts)

    logger.info("Pixels processed: %d | skipped (nodata): %d | failed: %d",
                stats["processed_pixels"], stats["skipped_pixels"], stats["failed_pixels"])
    for code, count in stats["lc_type_counts"].items():
        logger.info("  %-16s %d", LandCover(code).name, count)
    logger.info("Outputs in: %s", stats["outdir"])
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Years: %s", stats["years"])


def entrypoint():
    app()


if __name__ == "__main__":
    entrypoint()

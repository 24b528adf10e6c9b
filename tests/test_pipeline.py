import numpy as np
import pytest
import rasterio
from rasterio.transform import from_origin
from typer.testing import CliRunner

from vct.cli import app
from vct.pipeline import run_vct
from vct.types import Bands, LandCover, Options

YEARS = list(range(2000, 2010))
DISTURBED = [2.0, 1.0, 2.0, 2.0, 8.0, 8.0, 2.0, 2.0, 2.0, 2.0]
STABLE = [2.0, 1.0] + [2.0] * 8


def _pixel(comp, ndvi=0.8):
    # B3, B4, B5, B7, thermal, NDVI, DNBR, mask
    return [comp, 0.0, comp, comp, 0.0, ndvi, 0.5, 7.0]


def _write_stack(tmp_path, pixels=None, names=None):
    """Ten yearly 8-band rasters on a 2x2 grid; pixel (1, 0) has a NaN in one year."""
    if pixels is None:
        pixels = [(DISTURBED, 0.8), (STABLE, 0.8), (STABLE, 0.8), (DISTURBED, 0.3)]
    if names is None:
        names = [f"stack_{year}.tif" for year in YEARS]
    for i, name in enumerate(names):
        data = np.zeros((8, 2, 2), dtype=np.float32)
        for k, (comp, ndvi) in enumerate(pixels):
            data[:, k // 2, k % 2] = _pixel(comp[i], ndvi=ndvi)
        if i == 5:
            data[0, 1, 0] = np.nan
        with rasterio.open(
            tmp_path / name, "w", driver="GTiff", height=2, width=2, count=8,
            dtype="float32", crs="EPSG:4326", transform=from_origin(0, 2, 1, 1),
        ) as dst:
            dst.write(data)
    return str(tmp_path / "*.tif")


def test_run_vct_writes_outputs(tmp_path):
    pattern = _write_stack(tmp_path)
    outdir = tmp_path / "out"
    stats = run_vct([pattern], outdir, Bands(), Options())

    assert stats["years"] == YEARS
    assert stats["processed_pixels"] == 3
    assert stats["skipped_pixels"] == 1
    assert stats["failed_pixels"] == 0
    assert stats["lc_type_counts"] == {1: 1, 2: 1, 3: 1}

    with rasterio.open(outdir / "vct_lc_type.tif") as ds:
        lc = ds.read(1)
    np.testing.assert_array_equal(lc, [[LandCover.PART_FOREST, LandCover.PERM_FOREST],
                                       [0, LandCover.PERM_NON_FOREST]])

    with rasterio.open(outdir / "vct_dist_flag.tif") as ds:
        assert ds.count == len(YEARS)
        flags = ds.read()
    np.testing.assert_array_equal(flags[:, 0, 0], [5, 5, 5, 5, 6, 7, 5, 5, 5, 5])
    np.testing.assert_array_equal(flags[:, 0, 1], [2] * 10)
    np.testing.assert_array_equal(flags[:, 1, 0], [0] * 10)

    with rasterio.open(outdir / "vct_dist_magn.tif") as ds:
        magn = ds.read()
    assert magn[4, 0, 0] == pytest.approx(6.25)
    assert np.count_nonzero(magn[:, 0, 0]) == 1
    assert np.all(np.isnan(magn[:, 1, 0]))

    for name in ("vct_dist_magn_ndvi.tif", "vct_dist_magn_dnbr.tif"):
        assert (outdir / name).exists()


def test_cli(tmp_path):
    pattern = _write_stack(tmp_path)
    outdir = tmp_path / "cli_out"
    result = CliRunner().invoke(app, [pattern, "--outdir", str(outdir), "--logs-dir", str(tmp_path / "logs")])
    assert result.exit_code == 0, result.output
    assert (outdir / "vct_lc_type.tif").exists()
    assert (outdir / "vct_dist_flag.tif").exists()


def test_cli_min_ndvi(tmp_path):
    pattern = _write_stack(tmp_path)
    outdir = tmp_path / "cli_out"
    result = CliRunner().invoke(app, [pattern, "--outdir", str(outdir), "--min-ndvi", "0.2",
                                      "--logs-dir", str(tmp_path / "logs")])
    assert result.exit_code == 0, result.output
    with rasterio.open(outdir / "vct_lc_type.tif") as ds:
        assert ds.read(1)[1, 1] == LandCover.PART_FOREST


def test_failed_pixel_stays_nodata(tmp_path):
    # every file carries the same year: regressions over a varying pixel have no x spread
    names = [f"s{i}_2000.tif" for i in range(10)]
    flat = [2.0] * 10
    pattern = _write_stack(tmp_path, pixels=[(DISTURBED, 0.8), (flat, 0.8), (flat, 0.8), (flat, 0.3)],
                           names=names)
    outdir = tmp_path / "out"
    stats = run_vct([pattern], outdir, Bands(), Options(strict=True))

    assert stats["years"] == [2000] * 10
    assert stats["failed_pixels"] == 1
    assert stats["skipped_pixels"] == 1
    assert stats["processed_pixels"] == 2

    with rasterio.open(outdir / "vct_lc_type.tif") as ds:
        lc = ds.read(1)
    np.testing.assert_array_equal(lc, [[0, LandCover.PERM_NON_FOREST], [0, LandCover.PERM_NON_FOREST]])
    with rasterio.open(outdir / "vct_dist_flag.tif") as ds:
        flags = ds.read()
    np.testing.assert_array_equal(flags[:, 0, 0], [0] * 10)
    np.testing.assert_array_equal(flags[:, 0, 1], [1] * 10)
    with rasterio.open(outdir / "vct_dist_magn.tif") as ds:
        magn = ds.read()
    assert np.all(np.isnan(magn[:, 0, 0]))
    np.testing.assert_array_equal(magn[:, 0, 1], np.zeros(10))


def test_same_years_are_not_fatal_without_strict(tmp_path):
    names = [f"s{i}_2000.tif" for i in range(10)]
    pattern = _write_stack(tmp_path, names=names)
    stats = run_vct([pattern], tmp_path / "out", Bands(), Options())
    assert stats["failed_pixels"] == 0
    assert stats["processed_pixels"] == 3

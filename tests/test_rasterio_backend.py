from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from raster2tile import config
from raster2tile.backends.rasterio_backend import RasterioBackend
from raster2tile.errors import InputError, SourceError
from raster2tile.raster.info import inspect_raster
from raster2tile.raster.tiling import tile_to_web_mercator_bounds
from tests.utils import write_raster

WORLD = (-180.0, -85.0511287798066, 180.0, 85.0511287798066)


def test_open_missing_raster(tmp_path: Path) -> None:
    backend = RasterioBackend()
    with pytest.raises(SourceError, match="Failed to open raster"):
        with backend.open(str(tmp_path / "missing.tif")):
            pass


def test_dataset_properties(tmp_path: Path) -> None:
    path = tmp_path / "dem.tif"
    data = np.array([[1, 2], [-9999, 4]], dtype=np.int16)
    write_raster(
        path,
        data,
        bounds=(0.0, 0.0, 1.0, 1.0),
        nodata=-9999,
        tags={1: {"STATISTICS_MINIMUM": "1", "STATISTICS_MAXIMUM": "4"}},
    )

    with RasterioBackend().open(str(path)) as dataset:
        assert (dataset.width, dataset.height, dataset.count) == (2, 2, 1)
        assert dataset.geotransform == pytest.approx((0.0, 0.5, 0.0, 1.0, 0.0, -0.5))
        assert dataset.projection
        assert dataset.nodata(1) == -9999.0
        assert dataset.dtype(1) == "int16"
        assert dataset.tags(1)["STATISTICS_MAXIMUM"] == "4"
        assert dataset.compute_min_max(1) == (1.0, 4.0)
        window = dataset.read_window(1, (0, 0), (2, 2), (4, 4))
        assert window.shape == (4, 4)
        assert window.dtype == np.float64
        assert window[0, 0] == 1.0
        assert window[3, 3] == 4.0
        with pytest.raises(InputError, match="Band 2"):
            dataset.nodata(2)


def test_compute_min_max_without_valid_pixels(tmp_path: Path) -> None:
    path = tmp_path / "empty.tif"
    write_raster(path, np.full((2, 2), -1.0, dtype=np.float32), bounds=(0.0, 0.0, 1.0, 1.0), nodata=-1.0)

    with RasterioBackend().open(str(path)) as dataset:
        with pytest.raises(SourceError, match="no valid pixels"):
            dataset.compute_min_max(1)


def test_reproject_to_web_mercator(tmp_path: Path) -> None:
    path = tmp_path / "world.tif"
    write_raster(path, np.array([[1.0, 2.0], [3.0, 4.0]], dtype=np.float32), bounds=WORLD)

    with RasterioBackend().open(str(path)) as dataset:
        grid = dataset.reproject_to(tile_to_web_mercator_bounds(0, 0, 0), "EPSG:3857", 4, 4)

    assert grid.shape == (1, 4, 4)
    assert grid[0, 0, 0] == 1.0
    assert grid[0, 0, 3] == 2.0
    assert grid[0, 3, 0] == 3.0
    assert grid[0, 3, 3] == 4.0


def test_non_georeferenced_image(tmp_path: Path) -> None:
    path = tmp_path / "photo.tif"
    write_raster(path, np.arange(12, dtype=np.uint8).reshape(3, 4) + 1)
    backend = RasterioBackend()

    with backend.open(str(path)) as dataset:
        assert dataset.projection == ""
        metadata = inspect_raster(dataset, backend, dataset_id="photo")

    assert metadata.is_georeferenced is False
    assert metadata.bounds == (0.0, 0.0, 4.0, 3.0)
    assert metadata.band_stats[0].max == 12.0


def test_transform_points_and_geographic() -> None:
    backend = RasterioBackend()
    xs, ys = backend.transform_points("EPSG:4326", "EPSG:3857", [0.0], [0.0])
    assert xs[0] == pytest.approx(0.0, abs=1e-6)
    assert ys[0] == pytest.approx(0.0, abs=1e-6)
    assert backend.is_geographic("EPSG:4326")
    assert not backend.is_geographic("EPSG:3857")


def test_unknown_resampling_method(tmp_path: Path) -> None:
    path = tmp_path / "dem.tif"
    write_raster(path, np.ones((2, 2), dtype=np.float32), bounds=(0.0, 0.0, 1.0, 1.0))

    with RasterioBackend().open(str(path)) as dataset:
        with pytest.raises(InputError, match="resampling"):
            dataset.read_window(1, (0, 0), (2, 2), (2, 2), resampling="lanczos-ish")


def test_open_runs_inside_configured_gdal_env(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "dem.tif"
    write_raster(path, np.ones((2, 2), dtype=np.float32), bounds=(0.0, 0.0, 1.0, 1.0))
    seen: list[dict] = []
    original = config.gdal_env

    def recording_env(options):
        seen.append(dict(options))
        return original(options)

    monkeypatch.setattr(config, "gdal_env", recording_env)
    backend = RasterioBackend(env_options={"GDAL_HTTP_CONNECTTIMEOUT": "5"})

    with backend.open(str(path)) as dataset:
        assert dataset.width == 2

    assert seen == [{"GDAL_HTTP_CONNECTTIMEOUT": "5"}]

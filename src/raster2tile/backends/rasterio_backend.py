"""Raster-access backend built on rasterio and pyproj."""

from __future__ import annotations

import logging
import math
import warnings
from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Sequence

import numpy as np
import rasterio
from pyproj.exceptions import CRSError, ProjError
from rasterio.enums import Resampling
from rasterio.errors import NotGeoreferencedWarning, RasterioError
from rasterio.transform import from_bounds
from rasterio.warp import reproject
from rasterio.windows import Window

from raster2tile import config
from raster2tile.backends.base import RESAMPLING_METHODS, Bounds, GeoTransform, check_band
from raster2tile.errors import InputError, SourceError
from raster2tile.raster.crs import WGS84, is_geographic, normalize_crs, transform_points

LOGGER = logging.getLogger(__name__)

MIN_MAX_SAMPLE_DIM = 1024


def _resampling(method: str) -> Resampling:
    """Return rasterio resampling enum for a method string."""
    if method not in RESAMPLING_METHODS:
        raise InputError(f"Unknown resampling method: {method}")
    return Resampling[method]


def _valid_values(data: np.ndarray) -> np.ndarray:
    """Return unmasked, finite values of a (possibly masked) array."""
    values = np.ma.compressed(data) if np.ma.isMaskedArray(data) else data.ravel()
    values = values.astype("float64", copy=False)
    return values[np.isfinite(values)]


class RasterioDataset:
    """Dataset handle backed by an open rasterio dataset."""

    def __init__(self, path: str, dataset: Any) -> None:
        self.path = path
        self._dataset = dataset
        self.width = int(dataset.width)
        self.height = int(dataset.height)
        self.count = int(dataset.count)

    def _check_band(self, band: int) -> None:
        check_band(self, band)

    @property
    def geotransform(self) -> GeoTransform:
        return tuple(float(value) for value in self._dataset.transform.to_gdal())  # type: ignore[return-value]

    @property
    def projection(self) -> str:
        crs = self._dataset.crs
        return crs.to_wkt() if crs else ""

    def nodata(self, band: int) -> float | None:
        self._check_band(band)
        value = self._dataset.nodatavals[band - 1]
        return None if value is None else float(value)

    def dtype(self, band: int) -> str:
        self._check_band(band)
        return str(self._dataset.dtypes[band - 1])

    def tags(self, band: int) -> Mapping[str, str]:
        self._check_band(band)
        return dict(self._dataset.tags(band))

    def read_window(
        self,
        band: int,
        origin: tuple[int, int],
        size: tuple[int, int],
        out_shape: tuple[int, int],
        *,
        resampling: str = "nearest",
    ) -> np.ndarray:
        self._check_band(band)
        window = Window(origin[0], origin[1], size[0], size[1])
        try:
            data = self._dataset.read(
                band,
                window=window,
                out_shape=out_shape,
                out_dtype="float64",
                resampling=_resampling(resampling),
            )
        except RasterioError as exc:
            raise SourceError(f"Failed to read band {band} of {self.path}: {exc}") from exc
        return np.asarray(data, dtype="float64")

    def _source_crs(self) -> Any:
        # Datasets with a geotransform but no projection are read as lon/lat.
        return self._dataset.crs or normalize_crs(WGS84)

    def reproject_to(
        self,
        bounds: Bounds,
        crs: str,
        width: int,
        height: int,
        *,
        resampling: str = "nearest",
    ) -> np.ndarray:
        destination = np.zeros((self.count, height, width), dtype="float64")
        dst_transform = from_bounds(*bounds, width=width, height=height)
        nodatavals = list(self._dataset.nodatavals)
        shared = len({repr(value) for value in nodatavals}) == 1
        groups: list[tuple[list[int], float | None]]
        if shared:
            groups = [(list(range(1, self.count + 1)), nodatavals[0])]
        else:
            groups = [([band], nodatavals[band - 1]) for band in range(1, self.count + 1)]
        try:
            for bands, nodata in groups:
                target = destination[bands[0] - 1 : bands[-1]]
                reproject(
                    source=rasterio.band(self._dataset, bands),
                    destination=target,
                    src_transform=self._dataset.transform,
                    src_crs=self._source_crs(),
                    src_nodata=nodata,
                    dst_transform=dst_transform,
                    dst_crs=normalize_crs(crs),
                    dst_nodata=nodata,
                    resampling=_resampling(resampling),
                )
        except (RasterioError, ValueError) as exc:
            raise SourceError(f"Failed to reproject {self.path}: {exc}") from exc
        return destination

    def compute_min_max(self, band: int, *, approx_ok: bool = True) -> tuple[float, float]:
        self._check_band(band)
        out_shape = None
        if approx_ok:
            scale = min(1.0, MIN_MAX_SAMPLE_DIM / max(self.width, self.height))
            out_shape = (max(1, int(self.height * scale)), max(1, int(self.width * scale)))
        try:
            data = self._dataset.read(band, out_shape=out_shape, masked=True)
        except RasterioError as exc:
            raise SourceError(f"Failed to compute statistics for band {band}: {exc}") from exc
        values = _valid_values(data)
        if values.size == 0:
            raise SourceError(f"Failed to compute statistics for band {band}: no valid pixels.")
        return float(values.min()), float(values.max())

    def close(self) -> None:
        self._dataset.close()


class RasterioBackend:
    """Open datasets with rasterio inside a configured GDAL environment."""

    name = "rasterio"

    def __init__(self, env_options: Mapping[str, Any] | None = None) -> None:
        self.env_options = dict(env_options or {})

    @contextmanager
    def open(self, path: str) -> Iterator[RasterioDataset]:
        with config.gdal_env(self.env_options):
            try:
                with warnings.catch_warnings():
                    warnings.simplefilter("ignore", NotGeoreferencedWarning)
                    dataset = rasterio.open(path)
            except RasterioError as exc:
                raise SourceError(f"Failed to open raster '{path}': {exc}") from exc
            LOGGER.debug("Opened %s", path)
            handle = RasterioDataset(str(path), dataset)
            try:
                yield handle
            finally:
                handle.close()

    def transform_points(
        self,
        src_crs: str,
        dst_crs: str,
        xs: Sequence[float],
        ys: Sequence[float],
    ) -> tuple[list[float], list[float]]:
        try:
            out_xs, out_ys = transform_points(src_crs, dst_crs, xs, ys)
        except (CRSError, ProjError) as exc:
            raise SourceError(f"Failed to transform coordinates: {exc}") from exc
        if not all(math.isfinite(value) for value in (*out_xs, *out_ys)):
            raise SourceError("Failed to transform coordinates: non-finite result.")
        return out_xs, out_ys

    def is_geographic(self, crs: str) -> bool:
        return is_geographic(crs)

"""Raster-access capability protocol shared by engine modules."""

from __future__ import annotations

from typing import ContextManager, Mapping, Protocol, Sequence, Tuple

import numpy as np

from raster2tile.errors import InputError

Bounds = Tuple[float, float, float, float]
GeoTransform = Tuple[float, float, float, float, float, float]

RESAMPLING_METHODS = ("nearest", "bilinear", "cubic", "average")


class RasterDataset(Protocol):
    """Open dataset handle. Never shared between concurrent operations."""

    path: str
    width: int
    height: int
    count: int

    @property
    def geotransform(self) -> GeoTransform:
        ...

    @property
    def projection(self) -> str:
        """Return the projection as WKT, or an empty string when absent."""
        ...

    def nodata(self, band: int) -> float | None:
        ...

    def dtype(self, band: int) -> str:
        ...

    def tags(self, band: int) -> Mapping[str, str]:
        ...

    def read_window(
        self,
        band: int,
        origin: tuple[int, int],
        size: tuple[int, int],
        out_shape: tuple[int, int],
        *,
        resampling: str = "nearest",
    ) -> np.ndarray:
        """Read a (col, row) / (width, height) window resampled to out_shape (rows, cols)."""
        ...

    def reproject_to(
        self,
        bounds: Bounds,
        crs: str,
        width: int,
        height: int,
        *,
        resampling: str = "nearest",
    ) -> np.ndarray:
        """Reproject all bands into a (count, height, width) float64 grid."""
        ...

    def compute_min_max(self, band: int, *, approx_ok: bool = True) -> tuple[float, float]:
        ...

    def close(self) -> None:
        ...


class RasterBackend(Protocol):
    """Factory for dataset handles plus CRS point utilities."""

    name: str

    def open(self, path: str) -> ContextManager[RasterDataset]:
        ...

    def transform_points(
        self,
        src_crs: str,
        dst_crs: str,
        xs: Sequence[float],
        ys: Sequence[float],
    ) -> tuple[list[float], list[float]]:
        ...

    def is_geographic(self, crs: str) -> bool:
        ...


def check_band(dataset: RasterDataset, band: int) -> None:
    """Raise InputError unless band is a valid 1-based index of the dataset."""
    if not 1 <= band <= dataset.count:
        raise InputError(f"Band {band} out of range for {dataset.path} ({dataset.count} bands).")


def invert_geotransform(geotransform: GeoTransform, x: float, y: float) -> tuple[float, float]:
    """Map a native-CRS coordinate to fractional (col, row) pixel coordinates."""
    gt0, gt1, gt2, gt3, gt4, gt5 = geotransform
    det = gt1 * gt5 - gt2 * gt4
    if det == 0:
        raise ValueError("Geotransform is not invertible.")
    dx = x - gt0
    dy = y - gt3
    col = (gt5 * dx - gt2 * dy) / det
    row = (gt1 * dy - gt4 * dx) / det
    return col, row


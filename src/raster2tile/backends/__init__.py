"""Raster-access backends and registry."""

from raster2tile.backends.base import RasterBackend, RasterDataset, invert_geotransform
from raster2tile.backends.rasterio_backend import RasterioBackend
from raster2tile.backends.registry import get_backend, list_backends, refresh_backends

__all__ = [
    "RasterBackend",
    "RasterDataset",
    "RasterioBackend",
    "get_backend",
    "invert_geotransform",
    "list_backends",
    "refresh_backends",
]

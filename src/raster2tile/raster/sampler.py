"""Raw band sampling of a source dataset onto a tile grid."""

from __future__ import annotations

import logging
from typing import Iterable

import numpy as np

from raster2tile.backends.base import RasterBackend, RasterDataset, check_band
from raster2tile.raster.crs import WEB_MERCATOR
from raster2tile.raster.info import geographic_bounds, source_kind
from raster2tile.raster.models import SourceKind, TileRequest
from raster2tile.raster.tiling import (
    PixelSpaceExtent,
    bounds_intersect,
    tile_to_geo_bounds,
    tile_to_web_mercator_bounds,
    validate_request,
)

LOGGER = logging.getLogger(__name__)


def empty_grid(tile_size: int) -> np.ndarray:
    """Return an all-zero sample grid."""
    return np.zeros((tile_size, tile_size), dtype="float64")


def tile_intersects_dataset(
    dataset: RasterDataset,
    backend: RasterBackend,
    request: TileRequest,
) -> bool:
    """Return True when the tile overlaps the dataset's geographic extent."""
    coord = request.coordinate
    return bounds_intersect(
        tile_to_geo_bounds(coord.x, coord.y, coord.z),
        geographic_bounds(dataset, backend),
    )


def sample_georeferenced(
    dataset: RasterDataset,
    request: TileRequest,
    bands: Iterable[int],
) -> dict[int, np.ndarray]:
    """Reproject the dataset once into the Web-Mercator tile and split out bands."""
    validate_request(request)
    wanted = sorted(set(bands))
    for band in wanted:
        check_band(dataset, band)
    coord = request.coordinate
    bounds = tile_to_web_mercator_bounds(coord.x, coord.y, coord.z)
    size = request.tile_size
    LOGGER.debug("Reprojecting %s", dataset.path, extra={"tile": coord.label()})
    stack = dataset.reproject_to(bounds, WEB_MERCATOR, size, size)
    return {band: stack[band - 1].copy() for band in wanted}


def sample_pixel_space(dataset: RasterDataset, request: TileRequest) -> np.ndarray:
    """Read the source window under a tile of the synthetic pixel-space grid."""
    validate_request(request)
    coord = request.coordinate
    size = request.tile_size
    check_band(dataset, request.band)
    extent = PixelSpaceExtent(dataset.width, dataset.height)
    window = extent.window_for(tile_to_geo_bounds(coord.x, coord.y, coord.z))
    if window is None:
        return empty_grid(size)
    return dataset.read_window(
        request.band,
        (window.col, window.row),
        (window.width, window.height),
        (size, size),
    )


def sample_tile(
    dataset: RasterDataset,
    backend: RasterBackend,
    request: TileRequest,
    *,
    kind: SourceKind | None = None,
) -> np.ndarray:
    """Return the raw sample grid of one band for a tile."""
    kind = kind or source_kind(dataset)
    if kind is SourceKind.PIXEL_SPACE:
        return sample_pixel_space(dataset, request)
    if not tile_intersects_dataset(dataset, backend, request):
        validate_request(request)
        return empty_grid(request.tile_size)
    return sample_georeferenced(dataset, request, [request.band])[request.band]

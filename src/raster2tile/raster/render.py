"""Tile rendering: sample, stretch, composite, and encode."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from raster2tile.backends.base import RasterBackend, RasterDataset
from raster2tile.errors import InputError, SourceError
from raster2tile.raster.composite import Channel, composite
from raster2tile.raster.encode import empty_tile, encode_png
from raster2tile.raster.info import source_kind
from raster2tile.raster.models import SourceKind, StretchParams, TileRequest
from raster2tile.raster.sampler import (
    empty_grid,
    sample_georeferenced,
    sample_pixel_space,
    tile_intersects_dataset,
)
from raster2tile.raster.stretch import validate_stretch
from raster2tile.raster.tiling import validate_request

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayerBand:
    """One display channel drawn from a band of an open dataset."""

    dataset: RasterDataset
    band: int
    stretch: StretchParams


def auto_stretch(dataset: RasterDataset, band: int) -> StretchParams:
    """Stretch over the band's min/max, or 0..255 when statistics fail."""
    try:
        min_value, max_value = dataset.compute_min_max(band, approx_ok=True)
    except SourceError as exc:
        LOGGER.debug("Falling back to default stretch for band %s: %s", band, exc)
        return StretchParams()
    return StretchParams(min=min_value, max=max_value)


def _check_channels(stretches: Sequence[StretchParams], count: int) -> None:
    if len(stretches) != count:
        raise InputError(f"Expected {count} stretch settings, got {len(stretches)}")
    for stretch in stretches:
        validate_stretch(stretch)


def render_tile(
    dataset: RasterDataset,
    backend: RasterBackend,
    request: TileRequest,
    stretch: StretchParams | None = None,
    *,
    kind: SourceKind | None = None,
) -> bytes:
    """Render one band of a dataset as a grayscale PNG tile."""
    validate_request(request)
    if stretch is not None:
        _check_channels([stretch], 1)
    kind = kind or source_kind(dataset)
    if kind is SourceKind.PIXEL_SPACE:
        grid = sample_pixel_space(dataset, request)
    else:
        if not tile_intersects_dataset(dataset, backend, request):
            return empty_tile(request.tile_size)
        grid = sample_georeferenced(dataset, request, [request.band])[request.band]
    if stretch is None:
        stretch = auto_stretch(dataset, request.band)
    channel = Channel(grid=grid, stretch=stretch, nodata=dataset.nodata(request.band))
    return encode_png(composite([channel]))


def render_pixel_tile(
    dataset: RasterDataset,
    request: TileRequest,
    stretch: StretchParams | None = None,
) -> bytes:
    """Render one band of a dataset on the synthetic pixel-space grid."""
    validate_request(request)
    if stretch is None:
        stretch = auto_stretch(dataset, request.band)
    _check_channels([stretch], 1)
    grid = sample_pixel_space(dataset, request)
    channel = Channel(grid=grid, stretch=stretch, nodata=dataset.nodata(request.band))
    return encode_png(composite([channel]))


def render_rgb_tile(
    dataset: RasterDataset,
    backend: RasterBackend,
    request: TileRequest,
    bands: Sequence[int],
    stretches: Sequence[StretchParams],
    *,
    kind: SourceKind | None = None,
) -> bytes:
    """Render three bands of one dataset as an RGB tile.

    Georeferenced sources are reprojected once for all three channels.
    """
    if len(bands) != 3:
        raise InputError(f"Expected 3 bands, got {len(bands)}")
    _check_channels(stretches, 3)
    for band in bands:
        validate_request(request.with_band(band))
    kind = kind or source_kind(dataset)
    if kind is SourceKind.PIXEL_SPACE:
        grids = [sample_pixel_space(dataset, request.with_band(band)) for band in bands]
    else:
        if not tile_intersects_dataset(dataset, backend, request):
            return empty_tile(request.tile_size)
        sampled = sample_georeferenced(dataset, request, bands)
        grids = [sampled[band] for band in bands]
    channels = [
        Channel(grid=grid, stretch=stretch, nodata=dataset.nodata(band))
        for grid, band, stretch in zip(grids, bands, stretches)
    ]
    return encode_png(composite(channels))


def _check_layers(layers: Sequence[LayerBand], request: TileRequest) -> None:
    if len(layers) != 3:
        raise InputError(f"Expected 3 layers, got {len(layers)}")
    _check_channels([layer.stretch for layer in layers], 3)
    for layer in layers:
        validate_request(request.with_band(layer.band))


def render_cross_layer_rgb_tile(
    layers: Sequence[LayerBand],
    backend: RasterBackend,
    request: TileRequest,
) -> bytes:
    """Render an RGB tile whose channels come from different georeferenced datasets.

    A layer that misses the tile contributes an all-zero channel.
    """
    _check_layers(layers, request)
    channels = []
    for layer in layers:
        band_request = request.with_band(layer.band)
        if tile_intersects_dataset(layer.dataset, backend, band_request):
            grid = sample_georeferenced(layer.dataset, band_request, [layer.band])[layer.band]
        else:
            LOGGER.debug(
                "Layer %s misses tile", layer.dataset.path, extra={"tile": request.coordinate.label()}
            )
            grid = empty_grid(request.tile_size)
        channels.append(Channel(grid=grid, stretch=layer.stretch, nodata=layer.dataset.nodata(layer.band)))
    return encode_png(composite(channels))


def render_cross_layer_pixel_rgb_tile(
    layers: Sequence[LayerBand],
    request: TileRequest,
) -> bytes:
    """Render an RGB tile from three datasets on the synthetic pixel-space grid."""
    _check_layers(layers, request)
    channels = [
        Channel(
            grid=sample_pixel_space(layer.dataset, request.with_band(layer.band)),
            stretch=layer.stretch,
            nodata=layer.dataset.nodata(layer.band),
        )
        for layer in layers
    ]
    return encode_png(composite(channels))

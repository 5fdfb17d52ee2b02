"""Tile extraction, statistics, and sampling helpers and exports."""

from raster2tile.raster.composite import Channel, composite
from raster2tile.raster.encode import empty_tile, encode_png
from raster2tile.raster.info import inspect_raster, is_georeferenced, source_kind
from raster2tile.raster.models import (
    BandStats,
    BandValue,
    HistogramData,
    PixelQueryResult,
    ProfilePoint,
    ProfileResult,
    RasterMetadata,
    SourceKind,
    StretchParams,
    TileCoordinate,
    TileRequest,
)
from raster2tile.raster.profile import plan_profile, query_geo, query_pixel, sample_profile
from raster2tile.raster.render import (
    LayerBand,
    render_cross_layer_pixel_rgb_tile,
    render_cross_layer_rgb_tile,
    render_pixel_tile,
    render_rgb_tile,
    render_tile,
)
from raster2tile.raster.stats import compute_band_stats, default_band_stats, histogram
from raster2tile.raster.stretch import normalize, normalize_grid
from raster2tile.raster.tiling import (
    PixelSpaceExtent,
    bounds_intersect,
    tile_to_geo_bounds,
    tile_to_web_mercator_bounds,
)

__all__ = [
    "BandStats",
    "BandValue",
    "Channel",
    "HistogramData",
    "LayerBand",
    "PixelQueryResult",
    "PixelSpaceExtent",
    "ProfilePoint",
    "ProfileResult",
    "RasterMetadata",
    "SourceKind",
    "StretchParams",
    "TileCoordinate",
    "TileRequest",
    "bounds_intersect",
    "composite",
    "compute_band_stats",
    "default_band_stats",
    "empty_tile",
    "encode_png",
    "histogram",
    "inspect_raster",
    "is_georeferenced",
    "normalize",
    "normalize_grid",
    "plan_profile",
    "query_geo",
    "query_pixel",
    "render_cross_layer_pixel_rgb_tile",
    "render_cross_layer_rgb_tile",
    "render_pixel_tile",
    "render_rgb_tile",
    "render_tile",
    "sample_profile",
    "source_kind",
    "tile_to_geo_bounds",
    "tile_to_web_mercator_bounds",
]

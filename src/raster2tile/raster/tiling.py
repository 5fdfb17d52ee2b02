"""Slippy-map tile math and the synthetic pixel-space coordinate system."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from raster2tile.errors import InputError
from raster2tile.raster.models import TileCoordinate, TileRequest

Bounds = Tuple[float, float, float, float]

WEB_MERCATOR_HALF_EXTENT = 20037508.342789244
PIXEL_SPACE_SCALE = 0.01
PIXEL_SPACE_MAX_HALF_HEIGHT = 85.0


def validate_tile(coordinate: TileCoordinate) -> None:
    """Reject tile coordinates outside the quad tree."""
    if coordinate.z < 0:
        raise InputError(f"Invalid zoom level: {coordinate.z}")
    limit = 2**coordinate.z
    if not (0 <= coordinate.x < limit and 0 <= coordinate.y < limit):
        raise InputError(f"Tile {coordinate.label()} is outside the zoom {coordinate.z} grid.")


def validate_request(request: TileRequest) -> None:
    """Reject malformed tile requests."""
    validate_tile(request.coordinate)
    if request.band < 1:
        raise InputError(f"Band index must be >= 1, got {request.band}")
    if request.tile_size < 1:
        raise InputError(f"Tile size must be positive, got {request.tile_size}")


def tile_to_web_mercator_bounds(x: int, y: int, z: int) -> Bounds:
    """Return EPSG:3857 bounds (meters) for a tile."""
    tile_width = (WEB_MERCATOR_HALF_EXTENT * 2.0) / (2.0**z)
    min_x = -WEB_MERCATOR_HALF_EXTENT + x * tile_width
    max_x = min_x + tile_width
    max_y = WEB_MERCATOR_HALF_EXTENT - y * tile_width
    min_y = max_y - tile_width
    return (min_x, min_y, max_x, max_y)


def _tile_latitude(y: int, n: float) -> float:
    return math.degrees(math.atan(math.sinh(math.pi * (1.0 - 2.0 * y / n))))


def tile_to_geo_bounds(x: int, y: int, z: int) -> Bounds:
    """Return (min_lon, min_lat, max_lon, max_lat) for a tile."""
    n = 2.0**z
    lon_min = (x / n) * 360.0 - 180.0
    lon_max = ((x + 1) / n) * 360.0 - 180.0
    lat_max = _tile_latitude(y, n)
    lat_min = _tile_latitude(y + 1, n)
    return (lon_min, lat_min, lon_max, lat_max)


def bounds_intersect(a: Bounds, b: Bounds) -> bool:
    """Return True when two boxes overlap; touching edges count."""
    return not (a[2] < b[0] or a[0] > b[2] or a[3] < b[1] or a[1] > b[3])


@dataclass(frozen=True)
class PixelWindow:
    """Source pixel rectangle read for one tile."""

    col: int
    row: int
    width: int
    height: int


@dataclass(frozen=True)
class PixelSpaceExtent:
    """Synthetic pseudo-geographic extent for non-georeferenced images.

    The image is centered on (0, 0) at 0.01 units per pixel. The vertical
    half extent is clamped to 85 units; when that happens the vertical scale
    is stretched so the image still maps edge to edge.
    """

    width: int
    height: int

    @property
    def half_width(self) -> float:
        return (self.width * PIXEL_SPACE_SCALE) / 2.0

    @property
    def raw_half_height(self) -> float:
        return (self.height * PIXEL_SPACE_SCALE) / 2.0

    @property
    def half_height(self) -> float:
        return min(self.raw_half_height, PIXEL_SPACE_MAX_HALF_HEIGHT)

    @property
    def scale_x(self) -> float:
        return PIXEL_SPACE_SCALE

    @property
    def scale_y(self) -> float:
        if self.raw_half_height > PIXEL_SPACE_MAX_HALF_HEIGHT:
            return (self.half_height * 2.0) / self.height
        return PIXEL_SPACE_SCALE

    @property
    def bounds(self) -> Bounds:
        return (-self.half_width, -self.half_height, self.half_width, self.half_height)

    def to_pixel(self, x: float, y: float) -> tuple[float, float]:
        """Map a synthetic coordinate to fractional source pixel coordinates."""
        return (x + self.half_width) / self.scale_x, (self.half_height - y) / self.scale_y

    def to_synthetic(self, col: float, row: float) -> tuple[float, float]:
        """Map fractional source pixel coordinates to the synthetic plane."""
        return -self.half_width + col * self.scale_x, self.half_height - row * self.scale_y

    def window_for(self, geo_bounds: Bounds) -> PixelWindow | None:
        """Return the clamped source window under a tile, or None when empty."""
        if not bounds_intersect(geo_bounds, self.bounds):
            return None
        start_x, start_y = self.to_pixel(geo_bounds[0], geo_bounds[3])
        end_x, end_y = self.to_pixel(geo_bounds[2], geo_bounds[1])
        col = int(math.floor(max(start_x, 0.0)))
        row = int(math.floor(max(start_y, 0.0)))
        col_end = int(math.ceil(min(end_x, float(self.width))))
        row_end = int(math.ceil(min(end_y, float(self.height))))
        if col >= self.width or row >= self.height:
            return None
        if col_end - col <= 0 or row_end - row <= 0:
            return None
        return PixelWindow(col=col, row=row, width=col_end - col, height=row_end - row)

"""Data models used by the tile and sampling pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Tuple

Bounds = Tuple[float, float, float, float]
PixelSize = Tuple[float, float]

DEFAULT_TILE_SIZE = 256


class SourceKind(str, Enum):
    """How a dataset maps onto the tile grid."""

    GEOREFERENCED = "georeferenced"
    PIXEL_SPACE = "pixel_space"


@dataclass(frozen=True)
class TileCoordinate:
    """One square tile of the slippy-map quad tree (y=0 is northernmost)."""

    z: int
    x: int
    y: int

    def label(self) -> str:
        return f"{self.z}/{self.x}/{self.y}"


@dataclass(frozen=True)
class TileRequest:
    """Single-band render request for one tile."""

    coordinate: TileCoordinate
    band: int = 1
    tile_size: int = DEFAULT_TILE_SIZE

    def with_band(self, band: int) -> "TileRequest":
        return TileRequest(coordinate=self.coordinate, band=band, tile_size=self.tile_size)


@dataclass(frozen=True)
class StretchParams:
    """Linear stretch window and gamma exponent for display."""

    min: float = 0.0
    max: float = 255.0
    gamma: float = 1.0


@dataclass(frozen=True)
class BandStats:
    """Per-band statistics; mean/std_dev are derived from min/max."""

    band: int
    min: float
    max: float
    mean: float
    std_dev: float

    @classmethod
    def from_min_max(cls, band: int, min_value: float, max_value: float) -> "BandStats":
        return cls(
            band=band,
            min=min_value,
            max=max_value,
            mean=(min_value + max_value) / 2.0,
            std_dev=(max_value - min_value) / 4.0,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class HistogramData:
    """Histogram counts and bin edges for one band."""

    band: int
    min: float
    max: float
    bin_count: int
    counts: tuple[int, ...]
    bin_edges: tuple[float, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "band": self.band,
            "min": self.min,
            "max": self.max,
            "bin_count": self.bin_count,
            "counts": list(self.counts),
            "bin_edges": list(self.bin_edges),
        }


@dataclass(frozen=True)
class BandValue:
    """Value of one band at a queried pixel."""

    band: int
    value: float
    is_nodata: bool


@dataclass(frozen=True)
class PixelQueryResult:
    """Values of every band at a queried pixel location."""

    x: int
    y: int
    is_valid: bool
    values: tuple[BandValue, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "is_valid": self.is_valid,
            "values": [asdict(value) for value in self.values],
        }


@dataclass(frozen=True)
class ProfilePoint:
    """One sample along an elevation profile."""

    distance: float
    elevation: float
    x: float
    y: float
    is_valid: bool


@dataclass(frozen=True)
class ProfileResult:
    """Sampled profile plus summary measurements."""

    points: tuple[ProfilePoint, ...]
    min_elevation: float
    max_elevation: float
    total_distance: float
    elevation_gain: float
    elevation_loss: float

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["points"] = [asdict(point) for point in self.points]
        return payload


@dataclass(frozen=True)
class RasterMetadata:
    """Description of an opened raster, returned to the viewer."""

    id: str
    path: str
    width: int
    height: int
    bands: int
    bounds: Bounds
    native_bounds: Bounds
    projection: str
    pixel_size: PixelSize
    nodata: float | None
    band_stats: tuple[BandStats, ...] = field(default_factory=tuple)
    is_georeferenced: bool = True

    @property
    def kind(self) -> SourceKind:
        if self.is_georeferenced:
            return SourceKind.GEOREFERENCED
        return SourceKind.PIXEL_SPACE

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "path": self.path,
            "width": self.width,
            "height": self.height,
            "bands": self.bands,
            "bounds": list(self.bounds),
            "native_bounds": list(self.native_bounds),
            "projection": self.projection,
            "pixel_size": list(self.pixel_size),
            "nodata": self.nodata,
            "band_stats": [stats.to_dict() for stats in self.band_stats],
            "is_georeferenced": self.is_georeferenced,
        }

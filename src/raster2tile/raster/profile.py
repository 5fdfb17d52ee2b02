"""Point queries and elevation profiles along polylines."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Sequence

from raster2tile.backends.base import RasterBackend, RasterDataset, invert_geotransform
from raster2tile.errors import InputError
from raster2tile.raster.crs import WGS84
from raster2tile.raster.models import BandValue, PixelQueryResult, ProfilePoint, ProfileResult
from raster2tile.raster.stretch import NODATA_TOLERANCE

EARTH_RADIUS_M = 6_371_000.0
DEFAULT_PROFILE_SAMPLES = 200

Point = tuple[float, float]


def haversine_distance(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    """Great-circle distance in meters between two lon/lat points."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def euclidean_distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """Planar distance between two points."""
    return math.hypot(x2 - x1, y2 - y1)


def _is_nodata(value: float, nodata: float | None) -> bool:
    return nodata is not None and abs(value - nodata) < NODATA_TOLERANCE


def _in_extent(dataset: RasterDataset, col: int, row: int) -> bool:
    return 0 <= col < dataset.width and 0 <= row < dataset.height


def _read_pixel(dataset: RasterDataset, band: int, col: int, row: int) -> float:
    return float(dataset.read_window(band, (col, row), (1, 1), (1, 1))[0, 0])


def geo_to_pixel(
    dataset: RasterDataset,
    backend: RasterBackend,
    lon: float,
    lat: float,
) -> tuple[float, float]:
    """Map a lon/lat coordinate to fractional pixel coordinates of the dataset."""
    x, y = lon, lat
    projection = dataset.projection
    if projection and not backend.is_geographic(projection):
        xs, ys = backend.transform_points(WGS84, projection, [lon], [lat])
        x, y = xs[0], ys[0]
    try:
        return invert_geotransform(dataset.geotransform, x, y)
    except ValueError as exc:
        raise InputError(f"Cannot map coordinates onto {dataset.path}: {exc}") from exc


def query_pixel(dataset: RasterDataset, col: int, row: int) -> PixelQueryResult:
    """Read every band at a pixel; outside the raster returns an invalid result."""
    if not _in_extent(dataset, col, row):
        return PixelQueryResult(x=col, y=row, is_valid=False)
    values = []
    for band in range(1, dataset.count + 1):
        value = _read_pixel(dataset, band, col, row)
        values.append(BandValue(band=band, value=value, is_nodata=_is_nodata(value, dataset.nodata(band))))
    return PixelQueryResult(x=col, y=row, is_valid=True, values=tuple(values))


def query_geo(
    dataset: RasterDataset,
    backend: RasterBackend,
    lon: float,
    lat: float,
) -> PixelQueryResult:
    """Read every band at a lon/lat coordinate."""
    col, row = geo_to_pixel(dataset, backend, lon, lat)
    return query_pixel(dataset, int(math.floor(col)), int(math.floor(row)))


@dataclass(frozen=True)
class ProfileSample:
    """Planned sample position along a polyline."""

    distance: float
    x: float
    y: float


def _cumulative_lengths(
    points: Sequence[Point],
    distance: Callable[[float, float, float, float], float],
) -> list[float]:
    cumulative = [0.0]
    for (x1, y1), (x2, y2) in zip(points, points[1:]):
        cumulative.append(cumulative[-1] + distance(x1, y1, x2, y2))
    return cumulative


def _interpolate(points: Sequence[Point], cumulative: list[float], target: float) -> Point:
    last = len(points) - 1
    for index in range(last):
        start, end = cumulative[index], cumulative[index + 1]
        if target <= end or index == last - 1:
            length = end - start
            t = 0.0 if length <= 0 else min(max((target - start) / length, 0.0), 1.0)
            x1, y1 = points[index]
            x2, y2 = points[index + 1]
            return x1 + (x2 - x1) * t, y1 + (y2 - y1) * t
    return points[last]


def plan_profile(
    points: Sequence[Point],
    num_samples: int = DEFAULT_PROFILE_SAMPLES,
    *,
    geographic: bool = True,
) -> list[ProfileSample]:
    """Return evenly spaced sample positions along a polyline.

    Geographic waypoints are (lon, lat) measured with the Haversine formula;
    pixel waypoints use planar distance.
    """
    waypoints = [(float(x), float(y)) for x, y in points]
    if len(waypoints) < 2:
        raise InputError("A profile line needs at least two points.")
    if num_samples < 2:
        raise InputError(f"Sample count must be >= 2, got {num_samples}")
    distance = haversine_distance if geographic else euclidean_distance
    cumulative = _cumulative_lengths(waypoints, distance)
    total = cumulative[-1]
    if not total > 0:
        raise InputError("Profile line has zero length.")
    step = total / (num_samples - 1)
    samples = []
    for index in range(num_samples):
        target = min(index * step, total)
        x, y = _interpolate(waypoints, cumulative, target)
        samples.append(ProfileSample(distance=target, x=x, y=y))
    return samples


def sample_profile(
    dataset: RasterDataset,
    samples: Sequence[ProfileSample],
    *,
    backend: RasterBackend | None = None,
    band: int = 1,
) -> ProfileResult:
    """Sample a band at planned positions and summarize gain, loss, and extrema.

    With a backend the positions are lon/lat; without one they are pixel
    coordinates. Gain and loss only accumulate between consecutive valid
    samples.
    """
    nodata = dataset.nodata(band)
    points: list[ProfilePoint] = []
    previous: float | None = None
    gain = loss = 0.0
    valid_values: list[float] = []
    for sample in samples:
        if backend is not None:
            col_f, row_f = geo_to_pixel(dataset, backend, sample.x, sample.y)
        else:
            col_f, row_f = sample.x, sample.y
        col, row = int(math.floor(col_f)), int(math.floor(row_f))
        value = 0.0
        valid = False
        if _in_extent(dataset, col, row):
            value = _read_pixel(dataset, band, col, row)
            valid = math.isfinite(value) and not _is_nodata(value, nodata)
        points.append(
            ProfilePoint(distance=sample.distance, elevation=value, x=sample.x, y=sample.y, is_valid=valid)
        )
        if not valid:
            previous = None
            continue
        valid_values.append(value)
        if previous is not None:
            delta = value - previous
            if delta > 0:
                gain += delta
            else:
                loss -= delta
        previous = value
    return ProfileResult(
        points=tuple(points),
        min_elevation=min(valid_values) if valid_values else 0.0,
        max_elevation=max(valid_values) if valid_values else 0.0,
        total_distance=samples[-1].distance if samples else 0.0,
        elevation_gain=gain,
        elevation_loss=loss,
    )

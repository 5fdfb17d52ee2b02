"""Raster inspection helpers: georeferencing, bounds, metadata."""

from __future__ import annotations

from raster2tile.backends.base import RasterBackend, RasterDataset
from raster2tile.raster.crs import WGS84
from raster2tile.raster.models import Bounds, RasterMetadata, SourceKind
from raster2tile.raster.stats import compute_band_stats, default_band_stats

_EPSILON = 1e-10


def _is_identity(geotransform: tuple[float, ...]) -> bool:
    gt0, gt1, gt2, gt3, gt4, gt5 = geotransform
    return (
        abs(gt0) < _EPSILON
        and abs(gt1 - 1.0) < _EPSILON
        and abs(gt2) < _EPSILON
        and abs(gt3) < _EPSILON
        and abs(gt4) < _EPSILON
        and (abs(gt5 + 1.0) < _EPSILON or abs(gt5 - 1.0) < _EPSILON)
    )


def is_georeferenced(dataset: RasterDataset) -> bool:
    """Return True when the dataset has a projection or a non-identity geotransform."""
    return bool(dataset.projection) or not _is_identity(dataset.geotransform)


def source_kind(dataset: RasterDataset) -> SourceKind:
    """Classify a dataset as georeferenced or pixel space."""
    if is_georeferenced(dataset):
        return SourceKind.GEOREFERENCED
    return SourceKind.PIXEL_SPACE


def native_bounds(dataset: RasterDataset) -> Bounds:
    """Return (min_x, min_y, max_x, max_y) in the dataset CRS."""
    gt = dataset.geotransform
    min_x = gt[0]
    max_x = gt[0] + dataset.width * gt[1]
    max_y = gt[3]
    min_y = gt[3] + dataset.height * gt[5]
    return (min(min_x, max_x), min(min_y, max_y), max(min_x, max_x), max(min_y, max_y))


def geographic_bounds(dataset: RasterDataset, backend: RasterBackend) -> Bounds:
    """Return dataset bounds in EPSG:4326 (lon/lat order)."""
    bounds = native_bounds(dataset)
    projection = dataset.projection
    if not projection or backend.is_geographic(projection):
        return bounds
    minx, miny, maxx, maxy = bounds
    xs, ys = backend.transform_points(
        projection,
        WGS84,
        [minx, maxx, minx, maxx],
        [miny, miny, maxy, maxy],
    )
    return (min(xs), min(ys), max(xs), max(ys))


def inspect_raster(
    dataset: RasterDataset,
    backend: RasterBackend,
    *,
    dataset_id: str,
    remote: bool = False,
) -> RasterMetadata:
    """Collect viewer metadata about an open dataset."""
    georeferenced = is_georeferenced(dataset)
    if georeferenced:
        native = native_bounds(dataset)
        bounds = geographic_bounds(dataset, backend)
        gt = dataset.geotransform
        pixel_size = (abs(gt[1]), abs(gt[5]))
    else:
        native = (0.0, 0.0, float(dataset.width), float(dataset.height))
        bounds = native
        pixel_size = (1.0, 1.0)
    band_stats = default_band_stats(dataset) if remote else compute_band_stats(dataset)
    return RasterMetadata(
        id=dataset_id,
        path=dataset.path,
        width=dataset.width,
        height=dataset.height,
        bands=dataset.count,
        bounds=bounds,
        native_bounds=native,
        projection=dataset.projection,
        pixel_size=pixel_size,
        nodata=dataset.nodata(1) if dataset.count else None,
        band_stats=tuple(band_stats),
        is_georeferenced=georeferenced,
    )

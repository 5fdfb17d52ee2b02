"""Band statistics and histograms."""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

import numpy as np

from raster2tile.backends.base import RasterDataset
from raster2tile.errors import InputError, SourceError
from raster2tile.raster.models import BandStats, HistogramData
from raster2tile.raster.stretch import NODATA_TOLERANCE

LOGGER = logging.getLogger(__name__)

DEFAULT_BIN_COUNT = 256
MAX_SAMPLE_DIM = 1024

# (min, max, mean, std_dev) used until real statistics are available.
DTYPE_DEFAULT_STATS: dict[str, tuple[float, float, float, float]] = {
    "uint8": (0.0, 255.0, 128.0, 64.0),
    "int8": (-128.0, 127.0, 0.0, 64.0),
    "uint16": (0.0, 10000.0, 3000.0, 2000.0),
    "int16": (-10000.0, 10000.0, 0.0, 2000.0),
    "uint32": (0.0, 10000.0, 3000.0, 2000.0),
    "float32": (0.0, 1.0, 0.3, 0.2),
    "float64": (0.0, 1.0, 0.3, 0.2),
}
FALLBACK_DEFAULT_STATS = (0.0, 10000.0, 3000.0, 2000.0)


def band_stats(dataset: RasterDataset, band: int) -> BandStats:
    """Return min/max based statistics for one band."""
    min_value, max_value = dataset.compute_min_max(band, approx_ok=True)
    return BandStats.from_min_max(band, min_value, max_value)


def compute_band_stats(dataset: RasterDataset) -> list[BandStats]:
    """Return statistics for every band, skipping bands that fail."""
    stats: list[BandStats] = []
    for band in range(1, dataset.count + 1):
        try:
            stats.append(band_stats(dataset, band))
        except SourceError as exc:
            LOGGER.debug("Skipping statistics for band %s: %s", band, exc)
    return stats


def _parse_float(tags: Mapping[str, str], key: str) -> float | None:
    value = tags.get(key)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def metadata_band_stats(dataset: RasterDataset, band: int) -> BandStats | None:
    """Return statistics embedded in band metadata, if min and max are present."""
    tags = dataset.tags(band)
    min_value = _parse_float(tags, "STATISTICS_MINIMUM")
    max_value = _parse_float(tags, "STATISTICS_MAXIMUM")
    if min_value is None or max_value is None:
        return None
    mean = _parse_float(tags, "STATISTICS_MEAN")
    std_dev = _parse_float(tags, "STATISTICS_STDDEV")
    return BandStats(
        band=band,
        min=min_value,
        max=max_value,
        mean=mean if mean is not None else (min_value + max_value) / 2.0,
        std_dev=std_dev if std_dev is not None else (max_value - min_value) / 4.0,
    )


def default_band_stats(dataset: RasterDataset) -> list[BandStats]:
    """Return instant statistics for streamed sources without reading pixels."""
    stats: list[BandStats] = []
    for band in range(1, dataset.count + 1):
        embedded = metadata_band_stats(dataset, band)
        if embedded is not None:
            stats.append(embedded)
            continue
        min_value, max_value, mean, std_dev = DTYPE_DEFAULT_STATS.get(
            dataset.dtype(band), FALLBACK_DEFAULT_STATS
        )
        stats.append(BandStats(band, min_value, max_value, mean, std_dev))
    return stats


def compute_histogram_bins(
    values: np.ndarray | Sequence[float],
    min_value: float,
    max_value: float,
    bin_count: int,
    nodata: float | None = None,
) -> tuple[list[int], list[float]]:
    """Bin sample values and return (counts, bin_edges)."""
    if bin_count < 1:
        raise InputError(f"Bin count must be >= 1, got {bin_count}")
    data = np.asarray(values, dtype="float64").ravel()
    counts = np.zeros(bin_count, dtype=np.int64)
    value_range = max_value - min_value

    with np.errstate(invalid="ignore"):
        if value_range > 0:
            keep = (data >= min_value) & (data <= max_value)
            if nodata is not None:
                keep &= ~(np.abs(data - nodata) < NODATA_TOLERANCE)
            kept = data[keep]
            indices = np.floor((kept - min_value) / value_range * (bin_count - 1)).astype(np.int64)
            indices = np.minimum(indices, bin_count - 1)
            counts += np.bincount(indices, minlength=bin_count)
        elif nodata is not None:
            counts[0] = int(np.count_nonzero(np.abs(data - nodata) >= NODATA_TOLERANCE))
        else:
            counts[0] = data.size

    bin_width = value_range / bin_count
    edges = [min_value + index * bin_width for index in range(bin_count + 1)]
    return [int(count) for count in counts], edges


def decimated_shape(width: int, height: int, max_dim: int = MAX_SAMPLE_DIM) -> tuple[int, int]:
    """Return the (rows, cols) to read so neither side exceeds max_dim."""
    if width <= max_dim and height <= max_dim:
        return height, width
    scale = min(1.0, max_dim / max(width, height))
    return max(1, int(height * scale)), max(1, int(width * scale))


def histogram(
    dataset: RasterDataset,
    band: int,
    *,
    bin_count: int = DEFAULT_BIN_COUNT,
    max_sample_dim: int = MAX_SAMPLE_DIM,
) -> HistogramData:
    """Compute a histogram of a band over its min/max range."""
    if bin_count < 1:
        raise InputError(f"Bin count must be >= 1, got {bin_count}")
    min_value, max_value = dataset.compute_min_max(band, approx_ok=True)
    out_shape = decimated_shape(dataset.width, dataset.height, max_sample_dim)
    data = dataset.read_window(
        band,
        (0, 0),
        (dataset.width, dataset.height),
        out_shape,
        resampling="nearest",
    )
    counts, edges = compute_histogram_bins(
        data,
        min_value,
        max_value,
        bin_count,
        dataset.nodata(band),
    )
    return HistogramData(
        band=band,
        min=min_value,
        max=max_value,
        bin_count=bin_count,
        counts=tuple(counts),
        bin_edges=tuple(edges),
    )

"""Linear stretch and gamma correction of raw samples to 8-bit intensity."""

from __future__ import annotations

import math

import numpy as np

from raster2tile.errors import InputError
from raster2tile.raster.models import StretchParams

NODATA_TOLERANCE = 1e-10


def validate_stretch(stretch: StretchParams) -> None:
    """Reject stretch parameters that cannot produce an image."""
    if not stretch.gamma > 0 or not math.isfinite(stretch.gamma):
        raise InputError(f"Gamma must be a positive number, got {stretch.gamma}")


def _stretch_range(stretch: StretchParams) -> float:
    return stretch.max - stretch.min if stretch.max > stretch.min else 1.0


def normalize(value: float, stretch: StretchParams, nodata: float | None) -> int | None:
    """Map a raw value to 0..255, or None when it should render transparent.

    Exact zero is always treated as empty, so unsampled tile regions never
    show up as black pixels.
    """
    if value == 0.0 or not math.isfinite(value):
        return None
    if nodata is not None and abs(value - nodata) < NODATA_TOLERANCE:
        return None
    normalized = (value - stretch.min) / _stretch_range(stretch)
    clamped = min(max(normalized, 0.0), 1.0)
    gamma_corrected = clamped ** (1.0 / stretch.gamma)
    return int(min(max(gamma_corrected * 255.0, 0.0), 255.0))


def valid_mask(grid: np.ndarray, nodata: float | None) -> np.ndarray:
    """Return True where samples render (finite, non-zero, not nodata)."""
    with np.errstate(invalid="ignore"):
        mask = np.isfinite(grid) & (grid != 0.0)
        if nodata is not None:
            mask &= ~(np.abs(grid - nodata) < NODATA_TOLERANCE)
    return mask


def normalize_grid(
    grid: np.ndarray,
    stretch: StretchParams,
    nodata: float | None,
) -> tuple[np.ndarray, np.ndarray]:
    """Vectorized `normalize`: return (uint8 intensities, validity mask)."""
    mask = valid_mask(grid, nodata)
    values = np.where(mask, grid, stretch.min).astype("float64", copy=False)
    normalized = np.clip((values - stretch.min) / _stretch_range(stretch), 0.0, 1.0)
    gamma_corrected = np.power(normalized, 1.0 / stretch.gamma)
    scaled = np.clip(gamma_corrected * 255.0, 0.0, 255.0)
    intensities = np.where(mask, np.trunc(scaled), 0.0).astype(np.uint8)
    return intensities, mask

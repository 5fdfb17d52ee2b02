"""Combine normalized channels into RGBA pixel buffers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from raster2tile.raster.models import StretchParams
from raster2tile.raster.stretch import normalize_grid, validate_stretch


@dataclass(frozen=True)
class Channel:
    """Raw samples of one display channel plus how to stretch them."""

    grid: np.ndarray
    stretch: StretchParams
    nodata: float | None = None


def empty_rgba(tile_size: int) -> np.ndarray:
    """Return a fully transparent RGBA buffer."""
    return np.zeros((tile_size, tile_size, 4), dtype=np.uint8)


def composite(channels: Sequence[Channel]) -> np.ndarray:
    """Merge one (grayscale) or three (RGB) channels into an RGBA buffer.

    A pixel is opaque when any channel holds a valid sample; channels without
    a valid sample contribute 0 to their color component.
    """
    if len(channels) not in (1, 3):
        raise ValueError(f"Expected 1 or 3 channels, got {len(channels)}")
    shape = channels[0].grid.shape
    if len(shape) != 2 or shape[0] != shape[1]:
        raise ValueError(f"Channel grids must be square, got {shape}")
    if any(channel.grid.shape != shape for channel in channels):
        raise ValueError("All channel grids must share a shape.")
    rgba = empty_rgba(shape[0])
    visible = np.zeros(shape, dtype=bool)
    normalized = []
    for channel in channels:
        validate_stretch(channel.stretch)
        intensities, mask = normalize_grid(channel.grid, channel.stretch, channel.nodata)
        normalized.append(intensities)
        visible |= mask
    if len(normalized) == 1:
        normalized = normalized * 3
    for index, intensities in enumerate(normalized):
        rgba[..., index] = intensities
    rgba[..., 3] = np.where(visible, 255, 0)
    return rgba

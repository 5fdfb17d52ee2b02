"""PNG encoding of RGBA tile buffers."""

from __future__ import annotations

from io import BytesIO

import numpy as np
from PIL import Image

from raster2tile.errors import SourceError
from raster2tile.raster.composite import empty_rgba


def encode_png(rgba: np.ndarray) -> bytes:
    """Serialize an (H, W, 4) uint8 buffer to PNG bytes."""
    if rgba.ndim != 3 or rgba.shape[2] != 4:
        raise ValueError(f"Expected an RGBA buffer, got shape {rgba.shape}")
    try:
        image = Image.fromarray(np.ascontiguousarray(rgba, dtype=np.uint8))
        buf = BytesIO()
        image.save(buf, format="PNG")
    except (OSError, ValueError) as exc:
        raise SourceError(f"Failed to encode PNG: {exc}") from exc
    return buf.getvalue()


def empty_tile(tile_size: int) -> bytes:
    """Return the fully transparent PNG tile of the given size."""
    return encode_png(empty_rgba(tile_size))

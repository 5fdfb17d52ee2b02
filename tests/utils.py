from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Tuple

import numpy as np
import rasterio
from rasterio.transform import from_bounds


def write_raster(
    path: Path,
    data: np.ndarray,
    *,
    bounds: Tuple[float, float, float, float] | None = None,
    crs: str | None = "EPSG:4326",
    nodata: float | None = None,
    tags: Mapping[int, Mapping[str, str]] | None = None,
) -> None:
    """Write a GeoTIFF; 2-D data is one band, 3-D data is (bands, rows, cols).

    Without bounds the file has no georeferencing at all.
    """
    stack = data[np.newaxis, ...] if data.ndim == 2 else data
    count, height, width = stack.shape
    profile = {
        "driver": "GTiff",
        "height": height,
        "width": width,
        "count": count,
        "dtype": stack.dtype,
        "nodata": nodata,
    }
    if bounds is not None:
        profile["transform"] = from_bounds(*bounds, width=width, height=height)
        profile["crs"] = crs
    path.parent.mkdir(parents=True, exist_ok=True)
    with rasterio.open(path, "w", **profile) as dataset:
        dataset.write(stack)
        for band, band_tags in (tags or {}).items():
            dataset.update_tags(band, **band_tags)


def with_src_env(base_env: dict[str, str] | None = None) -> dict[str, str]:
    """Return an environment with repo src/ on PYTHONPATH."""
    env = dict(base_env or os.environ)
    repo_root = Path(__file__).resolve().parents[1]
    src_path = repo_root / "src"
    if src_path.exists():
        existing = env.get("PYTHONPATH", "")
        entries = [entry for entry in existing.split(os.pathsep) if entry]
        src_str = str(src_path)
        if src_str not in entries:
            entries.insert(0, src_str)
        env["PYTHONPATH"] = os.pathsep.join(entries)
    return env

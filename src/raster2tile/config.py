"""Engine settings loaded from an optional JSON file."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping

import rasterio

from raster2tile.cache import DEFAULT_CACHE_CAPACITY
from raster2tile.raster.models import DEFAULT_TILE_SIZE
from raster2tile.raster.profile import DEFAULT_PROFILE_SAMPLES
from raster2tile.raster.stats import DEFAULT_BIN_COUNT, MAX_SAMPLE_DIM

ENV_CONFIG_PATH = "RASTER2TILE_CONFIG"
DEFAULT_CONFIG_NAME = "raster2tile.json"

LOGGER = logging.getLogger(__name__)


def default_gdal_options() -> dict[str, Any]:
    """Return GDAL options tuned for streaming cloud-optimized sources."""
    return {
        "GDAL_HTTP_USERAGENT": "raster2tile/1.0",
        "GDAL_DISABLE_READDIR_ON_OPEN": "EMPTY_DIR",
        "VSI_CACHE": "FALSE",
        "GDAL_HTTP_CONNECTTIMEOUT": "30",
    }


@dataclass(frozen=True)
class EngineSettings:
    """Tunables for rendering, statistics, and profiles."""

    tile_size: int = DEFAULT_TILE_SIZE
    cache_capacity: int = DEFAULT_CACHE_CAPACITY
    histogram_bins: int = DEFAULT_BIN_COUNT
    histogram_max_sample: int = MAX_SAMPLE_DIM
    profile_samples: int = DEFAULT_PROFILE_SAMPLES
    tile_jobs: int = 0
    backend: str = "rasterio"
    gdal_options: dict[str, Any] = field(default_factory=default_gdal_options)

    def as_dict(self) -> dict[str, Any]:
        return {
            "tile_size": self.tile_size,
            "cache_capacity": self.cache_capacity,
            "histogram_bins": self.histogram_bins,
            "histogram_max_sample": self.histogram_max_sample,
            "profile_samples": self.profile_samples,
            "tile_jobs": self.tile_jobs,
            "backend": self.backend,
            "gdal_options": dict(self.gdal_options),
        }


def settings_from_mapping(data: Mapping[str, Any]) -> EngineSettings:
    """Build settings from a mapping, ignoring unknown keys."""
    known = {item.name for item in fields(EngineSettings)}
    values: dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            LOGGER.debug("Ignoring unknown setting %s", key)
            continue
        values[key] = value
    if "gdal_options" in values:
        options = values["gdal_options"]
        if not isinstance(options, Mapping):
            raise ValueError("gdal_options must be a JSON object.")
        values["gdal_options"] = {**default_gdal_options(), **options}
    return replace(EngineSettings(), **values)


def _load_candidate(candidate: Path) -> EngineSettings | None:
    """Load settings from a single candidate path."""
    if not candidate.exists():
        return None
    try:
        data = json.loads(candidate.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        LOGGER.warning("Ignoring unreadable config %s: %s", candidate, exc)
        return EngineSettings()
    if not isinstance(data, dict):
        LOGGER.warning("Ignoring config %s: expected a JSON object", candidate)
        return EngineSettings()
    try:
        return settings_from_mapping(data)
    except (TypeError, ValueError) as exc:
        LOGGER.warning("Ignoring invalid config %s: %s", candidate, exc)
        return EngineSettings()


def load_settings(path: Path | None = None) -> EngineSettings:
    """Load settings from JSON config, if available."""
    if path:
        return _load_candidate(path) or EngineSettings()
    env_path = os.environ.get(ENV_CONFIG_PATH)
    if env_path:
        return _load_candidate(Path(env_path)) or EngineSettings()
    return _load_candidate(Path.cwd() / DEFAULT_CONFIG_NAME) or EngineSettings()


def gdal_env(options: Mapping[str, Any]) -> rasterio.Env:
    """Return a rasterio environment carrying GDAL configuration options."""
    return rasterio.Env(**dict(options))

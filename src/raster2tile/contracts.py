"""Schema validation helpers for metadata, statistics, query, and profile payloads."""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from typing import Any, Mapping

import jsonschema


@lru_cache(maxsize=None)
def _load_schema(name: str) -> dict[str, Any]:
    """Load a JSON schema bundled in the package."""
    with resources.files("raster2tile.schemas").joinpath(name).open("r", encoding="utf-8") as handle:
        return json.load(handle)


def validate_raster_metadata(payload: Mapping[str, Any]) -> None:
    """Validate an opened-raster description against the schema."""
    jsonschema.validate(payload, _load_schema("raster_metadata.schema.json"))


def validate_band_stats(payload: Mapping[str, Any]) -> None:
    """Validate one band's statistics against the schema."""
    jsonschema.validate(payload, _load_schema("band_stats.schema.json"))


def validate_histogram(payload: Mapping[str, Any]) -> None:
    """Validate a histogram payload, including the counts/edges length relation."""
    jsonschema.validate(payload, _load_schema("histogram.schema.json"))
    bins = payload["bin_count"]
    if len(payload["counts"]) != bins or len(payload["bin_edges"]) != bins + 1:
        raise jsonschema.ValidationError(
            f"Histogram with {bins} bins needs {bins} counts and {bins + 1} edges."
        )


def validate_pixel_query(payload: Mapping[str, Any]) -> None:
    """Validate a pixel query result against the schema."""
    jsonschema.validate(payload, _load_schema("pixel_query.schema.json"))


def validate_profile(payload: Mapping[str, Any]) -> None:
    """Validate an elevation profile against the schema."""
    jsonschema.validate(payload, _load_schema("profile.schema.json"))

"""CRS normalization and point transformation helpers."""

from __future__ import annotations

from typing import Sequence, Tuple

from pyproj import CRS, Transformer

Bounds = Tuple[float, float, float, float]

WGS84 = "EPSG:4326"
WEB_MERCATOR = "EPSG:3857"


def normalize_crs(value: str | CRS) -> CRS:
    """Normalize CRS input (EPSG code, WKT, PROJ string) into a pyproj CRS."""
    return CRS.from_user_input(value)


def transformer(src: str | CRS, dst: str | CRS) -> Transformer:
    """Return a transformer that respects lon/lat axis order."""
    return Transformer.from_crs(normalize_crs(src), normalize_crs(dst), always_xy=True)


def is_geographic(value: str | CRS) -> bool:
    """Return True when the CRS uses angular (lon/lat) coordinates."""
    return bool(normalize_crs(value).is_geographic)


def transform_points(
    src: str | CRS,
    dst: str | CRS,
    xs: Sequence[float],
    ys: Sequence[float],
) -> tuple[list[float], list[float]]:
    """Transform point arrays between CRSs in x/y (lon/lat) order."""
    out_xs, out_ys = transformer(src, dst).transform(list(xs), list(ys))
    return [float(x) for x in out_xs], [float(y) for y in out_ys]


"""Raster tile rendering and sampling engine."""

__version__ = "0.1.0"

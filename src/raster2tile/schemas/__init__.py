"""Bundled JSON schemas for raster2tile payloads."""

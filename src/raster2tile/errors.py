"""Exception types raised by the rendering engine."""

from __future__ import annotations


class Raster2TileError(Exception):
    """Base class for engine errors."""


class SourceError(Raster2TileError):
    """A dataset could not be opened, read, reprojected, or summarized."""


class DatasetNotFoundError(Raster2TileError, KeyError):
    """An opaque dataset id has no registered path."""

    def __init__(self, dataset_id: str, label: str = "Dataset") -> None:
        super().__init__(f"{label} not found: {dataset_id}")
        self.dataset_id = dataset_id

    def __str__(self) -> str:
        return str(self.args[0])


class InputError(Raster2TileError, ValueError):
    """A request was rejected before any I/O took place."""

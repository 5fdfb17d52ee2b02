from __future__ import annotations

import pytest

from raster2tile.backends.registry import get_backend, list_backends, refresh_backends
from raster2tile.backends.rasterio_backend import RasterioBackend
from tests.fakes import InMemoryBackend


class DummyBackend(InMemoryBackend):
    def __init__(self, env_options=None) -> None:
        super().__init__()
        self.env_options = env_options


def test_builtin_backend() -> None:
    backend = get_backend("rasterio", env_options={"VSI_CACHE": "FALSE"})
    assert isinstance(backend, RasterioBackend)
    assert backend.env_options == {"VSI_CACHE": "FALSE"}
    assert "rasterio" in list_backends()


def test_unknown_backend() -> None:
    with pytest.raises(KeyError, match="Unknown backend"):
        get_backend("missing")


def test_backend_entrypoints(monkeypatch) -> None:
    class DummyEntryPoint:
        name = "dummy"

        def load(self):
            return DummyBackend

    refresh_backends()
    monkeypatch.setattr(
        "raster2tile.backends.registry.metadata.entry_points",
        lambda group: [DummyEntryPoint()],
    )

    assert "dummy" in list_backends()
    backend = get_backend("dummy", env_options={"A": "1"})
    assert isinstance(backend, DummyBackend)
    assert backend.env_options == {"A": "1"}
    refresh_backends()


def test_backend_entrypoint_duplicate_skipped(monkeypatch) -> None:
    class DuplicateEntryPoint:
        name = "rasterio"

        def load(self):
            return DummyBackend

    refresh_backends()
    monkeypatch.setattr(
        "raster2tile.backends.registry.metadata.entry_points",
        lambda group: [DuplicateEntryPoint()],
    )

    assert isinstance(get_backend("rasterio"), RasterioBackend)
    refresh_backends()


def test_broken_entrypoint_is_ignored(monkeypatch) -> None:
    class BrokenEntryPoint:
        name = "broken"

        def load(self):
            raise ImportError("boom")

    refresh_backends()
    monkeypatch.setattr(
        "raster2tile.backends.registry.metadata.entry_points",
        lambda group: [BrokenEntryPoint()],
    )

    assert "broken" not in list_backends()
    refresh_backends()

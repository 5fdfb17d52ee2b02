"""High-level raster service: dataset registry plus tile, stats, and profile operations."""

from __future__ import annotations

import logging
import os
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

from raster2tile.backends.base import RasterBackend, RasterDataset
from raster2tile.backends.registry import get_backend
from raster2tile.cache import DatasetCache
from raster2tile.config import EngineSettings
from raster2tile.errors import DatasetNotFoundError, InputError
from raster2tile.raster.info import inspect_raster
from raster2tile.raster.models import (
    BandStats,
    HistogramData,
    PixelQueryResult,
    ProfileResult,
    RasterMetadata,
    StretchParams,
    TileCoordinate,
    TileRequest,
)
from raster2tile.raster.profile import Point, plan_profile, query_geo, query_pixel, sample_profile
from raster2tile.raster.render import (
    LayerBand,
    render_cross_layer_pixel_rgb_tile,
    render_cross_layer_rgb_tile,
    render_pixel_tile,
    render_rgb_tile,
    render_tile,
)
from raster2tile.raster.stats import compute_band_stats, histogram
from raster2tile.raster.stretch import validate_stretch
from raster2tile.raster.tiling import validate_request
from raster2tile.remote import remote_asset_path

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayerSpec:
    """One channel of a cross-layer composite: dataset id, band, and stretch."""

    dataset_id: str
    band: int = 1
    stretch: StretchParams = StretchParams()


def _worker_limit(tile_jobs: int, task_count: int) -> int:
    if tile_jobs < 0:
        raise ValueError("tile_jobs must be >= 0")
    limit = tile_jobs or (os.cpu_count() or 1)
    return max(1, min(limit, task_count))


class RasterService:
    """Open datasets by id and serve rendered tiles and analytics for them.

    Only dataset paths are kept between calls; every operation opens and
    closes its own handle, so methods are safe to call from worker threads.
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        *,
        backend: RasterBackend | None = None,
        cache: DatasetCache | None = None,
    ) -> None:
        self.settings = settings if settings is not None else EngineSettings()
        if backend is None:
            backend = get_backend(self.settings.backend, env_options=self.settings.gdal_options)
        self.backend = backend
        self.cache = cache if cache is not None else DatasetCache(self.settings.cache_capacity)

    # Dataset registry

    def _path_for(self, dataset_id: str) -> str:
        path = self.cache.get(dataset_id)
        if path is None:
            raise DatasetNotFoundError(dataset_id)
        return path

    @contextmanager
    def _open(self, dataset_id: str) -> Iterator[RasterDataset]:
        path = self._path_for(dataset_id)
        with self.backend.open(path) as dataset:
            yield dataset

    def _register(self, path: str, *, remote: bool) -> RasterMetadata:
        dataset_id = str(uuid.uuid4())
        with self.backend.open(path) as dataset:
            metadata = inspect_raster(dataset, self.backend, dataset_id=dataset_id, remote=remote)
        self.cache.put(dataset_id, path)
        LOGGER.info(
            "Opened %s as %s (%sx%s, %s bands, %s)",
            path,
            dataset_id,
            metadata.width,
            metadata.height,
            metadata.bands,
            metadata.kind.value,
        )
        return metadata

    def open_raster(self, path: str | os.PathLike[str]) -> RasterMetadata:
        """Open a local raster and register it under a new id."""
        return self._register(os.fspath(path), remote=False)

    def open_remote_raster(self, href: str) -> RasterMetadata:
        """Open a streamed HTTP(S)/S3 asset; statistics come from metadata or dtype defaults."""
        return self._register(remote_asset_path(href), remote=True)

    def close_dataset(self, dataset_id: str) -> None:
        self.cache.remove(dataset_id)
        LOGGER.debug("Closed dataset %s", dataset_id)

    # Tiles

    def _request(self, z: int, x: int, y: int, band: int = 1, tile_size: int | None = None) -> TileRequest:
        request = TileRequest(
            coordinate=TileCoordinate(z=z, x=x, y=y),
            band=band,
            tile_size=tile_size or self.settings.tile_size,
        )
        validate_request(request)
        return request

    def get_tile(
        self,
        dataset_id: str,
        z: int,
        x: int,
        y: int,
        band: int = 1,
        *,
        tile_size: int | None = None,
    ) -> bytes:
        """Render one band with a stretch over the band's own min/max."""
        request = self._request(z, x, y, band, tile_size)
        with self._open(dataset_id) as dataset:
            return render_tile(dataset, self.backend, request)

    def get_tile_stretched(
        self,
        dataset_id: str,
        z: int,
        x: int,
        y: int,
        band: int = 1,
        stretch: StretchParams = StretchParams(),
        *,
        tile_size: int | None = None,
    ) -> bytes:
        request = self._request(z, x, y, band, tile_size)
        validate_stretch(stretch)
        with self._open(dataset_id) as dataset:
            return render_tile(dataset, self.backend, request, stretch)

    def get_rgb_tile(
        self,
        dataset_id: str,
        z: int,
        x: int,
        y: int,
        bands: Sequence[int] = (1, 2, 3),
        stretches: Sequence[StretchParams] = (StretchParams(), StretchParams(), StretchParams()),
        *,
        tile_size: int | None = None,
    ) -> bytes:
        """Render three bands of one dataset as RGB."""
        request = self._request(z, x, y, 1, tile_size)
        if len(bands) != 3 or len(stretches) != 3:
            raise InputError("RGB tiles need exactly three bands and three stretches.")
        for band in bands:
            validate_request(request.with_band(band))
        for stretch in stretches:
            validate_stretch(stretch)
        with self._open(dataset_id) as dataset:
            return render_rgb_tile(dataset, self.backend, request, bands, stretches)

    @contextmanager
    def _open_layers(self, layers: Sequence[LayerSpec], request: TileRequest) -> Iterator[list[LayerBand]]:
        if len(layers) != 3:
            raise InputError(f"Expected 3 layers, got {len(layers)}")
        for layer in layers:
            validate_request(request.with_band(layer.band))
            validate_stretch(layer.stretch)
        paths = [self._path_for(layer.dataset_id) for layer in layers]
        with ExitStack() as stack:
            yield [
                LayerBand(
                    dataset=stack.enter_context(self.backend.open(path)),
                    band=layer.band,
                    stretch=layer.stretch,
                )
                for layer, path in zip(layers, paths)
            ]

    def get_cross_layer_rgb_tile(
        self,
        layers: Sequence[LayerSpec],
        z: int,
        x: int,
        y: int,
        *,
        tile_size: int | None = None,
    ) -> bytes:
        """Render an RGB tile whose channels come from three georeferenced datasets."""
        request = self._request(z, x, y, 1, tile_size)
        with self._open_layers(layers, request) as bands:
            return render_cross_layer_rgb_tile(bands, self.backend, request)

    def get_pixel_tile(
        self,
        dataset_id: str,
        z: int,
        x: int,
        y: int,
        band: int = 1,
        stretch: StretchParams | None = None,
        *,
        tile_size: int | None = None,
    ) -> bytes:
        """Render a tile of a non-georeferenced image on the synthetic pixel grid."""
        request = self._request(z, x, y, band, tile_size)
        if stretch is not None:
            validate_stretch(stretch)
        with self._open(dataset_id) as dataset:
            return render_pixel_tile(dataset, request, stretch)

    def get_cross_layer_pixel_rgb_tile(
        self,
        layers: Sequence[LayerSpec],
        z: int,
        x: int,
        y: int,
        *,
        tile_size: int | None = None,
    ) -> bytes:
        request = self._request(z, x, y, 1, tile_size)
        with self._open_layers(layers, request) as bands:
            return render_cross_layer_pixel_rgb_tile(bands, request)

    def render_tiles(
        self,
        dataset_id: str,
        coordinates: Iterable[TileCoordinate],
        band: int = 1,
        stretch: StretchParams | None = None,
        *,
        tile_size: int | None = None,
    ) -> dict[TileCoordinate, bytes]:
        """Render a batch of tiles, in parallel when tile_jobs allows it."""
        tasks = [self._request(coord.z, coord.x, coord.y, band, tile_size) for coord in coordinates]
        if stretch is not None:
            validate_stretch(stretch)
        path = self._path_for(dataset_id)
        results: dict[TileCoordinate, bytes] = {}
        if not tasks:
            return results

        def run_tile(request: TileRequest) -> bytes:
            with self.backend.open(path) as dataset:
                return render_tile(dataset, self.backend, request, stretch)

        worker_limit = _worker_limit(self.settings.tile_jobs, len(tasks))
        if worker_limit <= 1:
            for request in tasks:
                results[request.coordinate] = run_tile(request)
            return results
        with ThreadPoolExecutor(max_workers=worker_limit) as executor:
            futures = {executor.submit(run_tile, request): request.coordinate for request in tasks}
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        LOGGER.debug("Rendered %s tiles with %s workers", len(results), worker_limit)
        return results

    # Analytics

    def get_raster_stats(self, dataset_id: str) -> list[BandStats]:
        with self._open(dataset_id) as dataset:
            return compute_band_stats(dataset)

    def get_histogram(
        self,
        dataset_id: str,
        band: int = 1,
        bin_count: int | None = None,
    ) -> HistogramData:
        """Histogram of one band over its min/max range."""
        bins = bin_count if bin_count is not None else self.settings.histogram_bins
        with self._open(dataset_id) as dataset:
            return histogram(
                dataset,
                band,
                bin_count=bins,
                max_sample_dim=self.settings.histogram_max_sample,
            )

    def query_pixel_value(self, dataset_id: str, lon: float, lat: float) -> PixelQueryResult:
        """Values of every band at a lon/lat location."""
        with self._open(dataset_id) as dataset:
            return query_geo(dataset, self.backend, lon, lat)

    def query_pixel_value_at_pixel(self, dataset_id: str, x: int, y: int) -> PixelQueryResult:
        with self._open(dataset_id) as dataset:
            return query_pixel(dataset, x, y)

    def get_elevation_profile(
        self,
        dataset_id: str,
        coordinates: Sequence[Point],
        num_samples: int | None = None,
    ) -> ProfileResult:
        """Sample band 1 along a lon/lat polyline with Haversine distances in meters."""
        samples = plan_profile(
            coordinates,
            num_samples if num_samples is not None else self.settings.profile_samples,
            geographic=True,
        )
        with self._open(dataset_id) as dataset:
            return sample_profile(dataset, samples, backend=self.backend)

    def get_elevation_profile_pixels(
        self,
        dataset_id: str,
        coordinates: Sequence[Point],
        num_samples: int | None = None,
    ) -> ProfileResult:
        """Sample band 1 along a polyline given in pixel coordinates."""
        samples = plan_profile(
            coordinates,
            num_samples if num_samples is not None else self.settings.profile_samples,
            geographic=False,
        )
        with self._open(dataset_id) as dataset:
            return sample_profile(dataset, samples)

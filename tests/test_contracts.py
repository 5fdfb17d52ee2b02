from __future__ import annotations

import jsonschema
import numpy as np
import pytest

from raster2tile import contracts
from raster2tile.raster.info import inspect_raster
from raster2tile.raster.models import BandStats, HistogramData
from raster2tile.raster.profile import plan_profile, query_pixel, sample_profile
from tests.fakes import InMemoryBackend, InMemoryDataset


def test_raster_metadata_schema() -> None:
    dataset = InMemoryDataset(np.array([[1.0, 2.0], [3.0, 4.0]]), nodata=-9999.0)
    metadata = inspect_raster(dataset, InMemoryBackend(), dataset_id="abc")
    contracts.validate_raster_metadata(metadata.to_dict())


def test_band_stats_schema() -> None:
    contracts.validate_band_stats(BandStats.from_min_max(1, 0.0, 10.0).to_dict())
    with pytest.raises(jsonschema.ValidationError):
        contracts.validate_band_stats({"band": 0, "min": 0, "max": 1, "mean": 0.5, "std_dev": 0.25})


def test_histogram_schema_checks_lengths() -> None:
    histogram = HistogramData(band=1, min=0.0, max=2.0, bin_count=2, counts=(1, 3), bin_edges=(0.0, 1.0, 2.0))
    contracts.validate_histogram(histogram.to_dict())
    broken = histogram.to_dict()
    broken["bin_edges"] = [0.0, 2.0]
    with pytest.raises(jsonschema.ValidationError, match="edges"):
        contracts.validate_histogram(broken)


def test_pixel_query_schema() -> None:
    dataset = InMemoryDataset(np.array([[1.0, 2.0]]))
    contracts.validate_pixel_query(query_pixel(dataset, 1, 0).to_dict())
    contracts.validate_pixel_query(query_pixel(dataset, 9, 9).to_dict())


def test_profile_schema() -> None:
    dataset = InMemoryDataset(np.array([[1.0, 2.0, 3.0]]))
    samples = plan_profile([(0.5, 0.5), (2.5, 0.5)], 3, geographic=False)
    contracts.validate_profile(sample_profile(dataset, samples).to_dict())

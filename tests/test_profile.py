from __future__ import annotations

import math

import numpy as np
import pytest

from raster2tile.errors import InputError
from raster2tile.raster.profile import (
    EARTH_RADIUS_M,
    haversine_distance,
    plan_profile,
    query_geo,
    query_pixel,
    sample_profile,
)
from tests.fakes import InMemoryBackend, InMemoryDataset, geotransform_for


def _dem(data: np.ndarray, **kwargs) -> InMemoryDataset:
    height, width = data.shape[-2:]
    return InMemoryDataset(
        data,
        geotransform=geotransform_for((0.0, 0.0, float(width), float(height)), width, height),
        projection="EPSG:4326",
        **kwargs,
    )


def test_haversine_quarter_meridian() -> None:
    assert haversine_distance(0.0, 0.0, 0.0, 90.0) == pytest.approx(math.pi / 2 * EARTH_RADIUS_M)
    assert haversine_distance(10.0, 10.0, 10.0, 10.0) == 0.0


def test_plan_profile_rejects_degenerate_lines() -> None:
    with pytest.raises(InputError, match="two points"):
        plan_profile([(0.0, 0.0)], 10)
    with pytest.raises(InputError, match="Sample count"):
        plan_profile([(0.0, 0.0), (1.0, 1.0)], 1)
    with pytest.raises(InputError, match="zero length"):
        plan_profile([(5.0, 5.0), (5.0, 5.0)], 10)


def test_plan_profile_evenly_spaced_pixels() -> None:
    samples = plan_profile([(0.0, 0.0), (10.0, 0.0)], 6, geographic=False)

    assert [sample.distance for sample in samples] == pytest.approx([0.0, 2.0, 4.0, 6.0, 8.0, 10.0])
    assert [sample.x for sample in samples] == pytest.approx([0.0, 2.0, 4.0, 6.0, 8.0, 10.0])
    assert samples[-1].distance == 10.0


def test_plan_profile_walks_segments() -> None:
    samples = plan_profile([(0.0, 0.0), (4.0, 0.0), (4.0, 4.0)], 5, geographic=False)

    xs = [sample.x for sample in samples]
    ys = [sample.y for sample in samples]
    assert xs == pytest.approx([0.0, 2.0, 4.0, 4.0, 4.0])
    assert ys == pytest.approx([0.0, 0.0, 0.0, 2.0, 4.0])


def test_sample_profile_pixels_gain_and_loss() -> None:
    dem = InMemoryDataset(np.array([[10.0, 30.0, 20.0, 25.0]]))
    samples = plan_profile([(0.5, 0.5), (3.5, 0.5)], 4, geographic=False)

    result = sample_profile(dem, samples)

    assert [point.elevation for point in result.points] == [10.0, 30.0, 20.0, 25.0]
    assert result.elevation_gain == 25.0
    assert result.elevation_loss == 10.0
    assert result.min_elevation == 10.0
    assert result.max_elevation == 30.0
    assert result.total_distance == pytest.approx(3.0)


def test_invalid_sample_resets_gain_reference() -> None:
    dem = InMemoryDataset(np.array([[10.0, -9999.0, 50.0, 40.0]]), nodata=-9999.0)
    samples = plan_profile([(0.5, 0.5), (3.5, 0.5)], 4, geographic=False)

    result = sample_profile(dem, samples)

    assert [point.is_valid for point in result.points] == [True, False, True, True]
    assert result.elevation_gain == 0.0
    assert result.elevation_loss == 10.0
    assert result.min_elevation == 10.0
    assert result.max_elevation == 50.0


def test_profile_outside_extent_is_invalid() -> None:
    dem = InMemoryDataset(np.array([[10.0, 20.0]]))
    samples = plan_profile([(-5.0, 0.5), (-1.0, 0.5)], 3, geographic=False)

    result = sample_profile(dem, samples)

    assert not any(point.is_valid for point in result.points)
    assert result.min_elevation == 0.0
    assert result.max_elevation == 0.0


def test_geographic_profile_reads_band_one() -> None:
    dem = _dem(np.array([[5.0, 6.0], [7.0, 8.0]]))
    samples = plan_profile([(0.5, 1.5), (1.5, 1.5)], 2)

    result = sample_profile(dem, samples, backend=InMemoryBackend())

    assert [point.elevation for point in result.points] == [5.0, 6.0]
    assert result.total_distance == pytest.approx(haversine_distance(0.5, 1.5, 1.5, 1.5))
    assert result.to_dict()["points"][1]["x"] == pytest.approx(1.5)


def test_query_pixel_reads_all_bands() -> None:
    data = np.stack([np.array([[1.0, 2.0]]), np.array([[-1.0, 4.0]])])
    dataset = InMemoryDataset(data, nodata=[None, -1.0])

    result = query_pixel(dataset, 0, 0)

    assert result.is_valid
    assert [(value.band, value.value, value.is_nodata) for value in result.values] == [
        (1, 1.0, False),
        (2, -1.0, True),
    ]


def test_query_pixel_outside_extent() -> None:
    result = query_pixel(InMemoryDataset(np.ones((2, 2))), 5, 0)
    assert result.is_valid is False
    assert result.values == ()
    assert result.to_dict() == {"x": 5, "y": 0, "is_valid": False, "values": []}


def test_query_geo_floors_coordinates() -> None:
    dem = _dem(np.array([[5.0, 6.0], [7.0, 8.0]]))

    result = query_geo(dem, InMemoryBackend(), 1.9, 0.2)

    assert (result.x, result.y) == (1, 1)
    assert result.values[0].value == 8.0


def test_query_geo_projected_dataset() -> None:
    half = 20037508.342789244
    dataset = InMemoryDataset(
        np.array([[1.0, 2.0], [3.0, 4.0]]),
        geotransform=geotransform_for((0.0, 0.0, half / 2, half / 2), 2, 2),
        projection="EPSG:3857",
    )

    result = query_geo(dataset, InMemoryBackend(), 80.0, 10.0)

    assert (result.x, result.y) == (1, 1)
    assert result.values[0].value == 4.0

from __future__ import annotations

import math

import numpy as np
import pytest

from raster2tile.errors import InputError
from raster2tile.raster.models import StretchParams
from raster2tile.raster.stretch import normalize, normalize_grid, valid_mask, validate_stretch

DEFAULT = StretchParams()


def test_zero_is_transparent() -> None:
    assert normalize(0.0, DEFAULT, None) is None
    assert normalize(0.0, StretchParams(min=-10.0, max=10.0), None) is None


def test_nodata_and_non_finite_are_transparent() -> None:
    assert normalize(-9999.0, DEFAULT, -9999.0) is None
    assert normalize(-9999.0 + 1e-12, DEFAULT, -9999.0) is None
    assert normalize(math.nan, DEFAULT, None) is None
    assert normalize(math.inf, DEFAULT, None) is None


def test_saturation() -> None:
    assert normalize(1000.0, DEFAULT, None) == 255
    assert normalize(255.0, DEFAULT, None) == 255
    assert normalize(-5.0, DEFAULT, None) == 0


def test_linear_stretch_truncates() -> None:
    assert normalize(127.5, DEFAULT, None) == 127
    assert normalize(150.0, StretchParams(min=100.0, max=200.0), None) == 127


def test_degenerate_range_uses_unit_width() -> None:
    assert normalize(10.5, StretchParams(min=10.0, max=10.0), None) == 127
    assert normalize(12.0, StretchParams(min=10.0, max=5.0), None) == 255


def test_gamma_brightens_midtones() -> None:
    linear = normalize(64.0, DEFAULT, None)
    brighter = normalize(64.0, StretchParams(gamma=2.0), None)
    darker = normalize(64.0, StretchParams(gamma=0.5), None)
    assert darker < linear < brighter


def test_validate_stretch_rejects_bad_gamma() -> None:
    validate_stretch(StretchParams(gamma=0.1))
    with pytest.raises(InputError, match="Gamma"):
        validate_stretch(StretchParams(gamma=0.0))
    with pytest.raises(InputError, match="Gamma"):
        validate_stretch(StretchParams(gamma=-1.0))


def test_normalize_grid_matches_scalar() -> None:
    rng = np.random.default_rng(7)
    grid = rng.uniform(-50.0, 300.0, size=(16, 16))
    grid[0, 0] = 0.0
    grid[1, 1] = -1.0
    grid[2, 2] = math.nan
    stretch = StretchParams(min=10.0, max=250.0, gamma=1.7)

    intensities, mask = normalize_grid(grid, stretch, -1.0)

    for (row, col), value in np.ndenumerate(grid):
        expected = normalize(float(value), stretch, -1.0)
        if expected is None:
            assert not mask[row, col]
            assert intensities[row, col] == 0
        else:
            assert mask[row, col]
            assert intensities[row, col] == expected


def test_valid_mask() -> None:
    grid = np.array([[0.0, 1.0], [math.inf, 5.0]])
    assert valid_mask(grid, 5.0).tolist() == [[False, True], [False, False]]

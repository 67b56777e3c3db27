"""Tests for terrain value objects."""

from __future__ import annotations

import math

import numpy as np
import pytest

from domain.terrain.value_objects import (
    BoundingBox,
    CartesianPoint,
    GeographicPoint,
    TerrainGrid,
)


# ===========================================================================
# GeographicPoint
# ===========================================================================
@pytest.mark.parametrize(
    "longitude, latitude",
    [(-180.5, 0.0), (180.5, 0.0), (0.0, -90.5), (0.0, 90.5)],
)
def test_geographic_point_rejects_out_of_range(longitude, latitude):
    with pytest.raises(ValueError):
        GeographicPoint(longitude=longitude, latitude=latitude)


def test_geographic_point_accepts_limits():
    point = GeographicPoint(longitude=-180, latitude=90)

    assert point.height_m == 0.0


def test_geographic_point_is_frozen():
    point = GeographicPoint(longitude=10.0, latitude=47.0)

    with pytest.raises(ValueError):
        point.latitude = 48.0


def test_with_height_keeps_horizontal_position():
    point = GeographicPoint(longitude=10.0, latitude=47.0, height_m=5.0)

    raised = point.with_height(1201.6)

    assert (raised.longitude, raised.latitude, raised.height_m) == (10.0, 47.0, 1201.6)
    assert point.height_m == 5.0


# ===========================================================================
# CartesianPoint
# ===========================================================================
def test_cartesian_subtract_and_distance():
    a = CartesianPoint(x=4.0, y=6.0, z=3.0)
    b = CartesianPoint(x=1.0, y=2.0, z=3.0)

    assert a - b == CartesianPoint(x=3.0, y=4.0, z=0.0)
    assert a.distance_squared(b) == 25.0
    assert b.distance_squared(a) == 25.0


def test_cartesian_normalized_is_unit_length():
    unit = CartesianPoint(x=0.0, y=3.0, z=4.0).normalized()

    assert unit == CartesianPoint(x=0.0, y=0.6, z=0.8)
    assert math.isclose(unit.magnitude_squared(), 1.0)


def test_cartesian_normalize_zero_raises():
    with pytest.raises(ValueError, match="zero-length"):
        CartesianPoint(x=0.0, y=0.0, z=0.0).normalized()


def test_cartesian_array_conversion():
    point = CartesianPoint.from_array(np.array([1.5, -2.0, 3.25]))

    assert point == CartesianPoint(x=1.5, y=-2.0, z=3.25)
    np.testing.assert_array_equal(point.as_array(), [1.5, -2.0, 3.25])


# ===========================================================================
# BoundingBox / TerrainGrid
# ===========================================================================
def test_bounding_box_rejects_inverted_ordering():
    with pytest.raises(ValueError, match="x ordering"):
        BoundingBox(min_x=11.0, min_y=47.0, max_x=10.0, max_y=48.0)


def test_bounding_box_contains_is_inclusive():
    bounds = BoundingBox(min_x=10.0, min_y=47.0, max_x=11.0, max_y=48.0)

    assert bounds.contains(GeographicPoint(longitude=10.0, latitude=48.0))
    assert not bounds.contains(GeographicPoint(longitude=11.01, latitude=47.5))


def test_terrain_grid_is_read_only_copy():
    source = np.full((4, 4), 100.0, dtype=np.float32)
    grid = TerrainGrid(
        data=source,
        bounds=BoundingBox(min_x=10.0, min_y=47.0, max_x=10.4, max_y=47.4),
        crs="EPSG:4326",
        resolution=(0.1, 0.1),
    )

    assert source.flags.writeable
    with pytest.raises(ValueError):
        grid.data[0, 0] = 5.0


def test_terrain_grid_rejects_all_nodata():
    with pytest.raises(ValueError, match="NoData"):
        TerrainGrid(
            data=np.full((2, 2), np.nan, dtype=np.float32),
            bounds=BoundingBox(min_x=10.0, min_y=47.0, max_x=10.2, max_y=47.2),
            crs="EPSG:4326",
            resolution=(0.1, 0.1),
        )

"""Tests for WGS84 geodesy and grid interpolation services."""

from __future__ import annotations

import math

import numpy as np
import pytest

from domain.terrain.services import (
    MIN_STEP_M,
    Wgs84Geodesy,
    bilinear_interpolate,
    bilinear_interpolate_many,
    derive_step_m,
    geodesic_distance,
    normalize_bearing,
)
from domain.terrain.value_objects import (
    BoundingBox,
    CartesianPoint,
    GeographicPoint,
    TerrainGrid,
)

WGS84_A = 6378137.0
WGS84_B = 6356752.314245


@pytest.fixture(scope="module")
def geodesy() -> Wgs84Geodesy:
    return Wgs84Geodesy()


def make_grid(data, min_x=10.0, max_y=47.4, res=0.1) -> TerrainGrid:
    data = np.asarray(data, dtype=np.float32)
    height, width = data.shape
    return TerrainGrid(
        data=data,
        bounds=BoundingBox(
            min_x=min_x,
            min_y=max_y - height * res,
            max_x=min_x + width * res,
            max_y=max_y,
        ),
        crs="EPSG:4326",
        resolution=(res, res),
    )


# ===========================================================================
# Projection
# ===========================================================================
def test_equator_prime_meridian_projects_to_semi_major_axis(geodesy):
    point = geodesy.project_to_cartesian(GeographicPoint(longitude=0.0, latitude=0.0))

    assert point.x == pytest.approx(WGS84_A, abs=1e-3)
    assert point.y == pytest.approx(0.0, abs=1e-3)
    assert point.z == pytest.approx(0.0, abs=1e-3)


def test_north_pole_projects_to_semi_minor_axis(geodesy):
    point = geodesy.project_to_cartesian(GeographicPoint(longitude=0.0, latitude=90.0))

    assert point.z == pytest.approx(WGS84_B, abs=1e-3)


def test_height_moves_point_outward(geodesy):
    ground = geodesy.project_to_cartesian(GeographicPoint(longitude=90.0, latitude=0.0))
    raised = geodesy.project_to_cartesian(
        GeographicPoint(longitude=90.0, latitude=0.0, height_m=1000.0)
    )

    assert raised.y - ground.y == pytest.approx(1000.0, abs=1e-3)


def test_projection_round_trip(geodesy):
    original = GeographicPoint(longitude=12.6939, latitude=47.0745, height_m=3798.0)

    back = geodesy.to_geographic(geodesy.project_to_cartesian(original))

    assert back.longitude == pytest.approx(original.longitude, abs=1e-9)
    assert back.latitude == pytest.approx(original.latitude, abs=1e-9)
    assert back.height_m == pytest.approx(original.height_m, abs=1e-4)


def test_to_geographic_many_matches_scalar(geodesy):
    points = [
        geodesy.project_to_cartesian(GeographicPoint(longitude=lon, latitude=47.0, height_m=h))
        for lon, h in ((10.0, 0.0), (10.5, 1500.0))
    ]

    lons, lats, heights = geodesy.to_geographic_many(np.stack([p.as_array() for p in points]))

    np.testing.assert_allclose(lons, [10.0, 10.5], atol=1e-9)
    np.testing.assert_allclose(lats, [47.0, 47.0], atol=1e-9)
    np.testing.assert_allclose(heights, [0.0, 1500.0], atol=1e-4)


# ===========================================================================
# Bearing
# ===========================================================================
@pytest.mark.parametrize(
    "end, expected",
    [
        ((0.0, 1.0), 0.0),
        ((1.0, 0.0), 90.0),
        ((0.0, -1.0), 180.0),
        ((-1.0, 0.0), 270.0),
    ],
)
def test_bearing_cardinal_directions(geodesy, end, expected):
    start = GeographicPoint(longitude=0.0, latitude=0.0)

    bearing = geodesy.bearing_between(start, GeographicPoint(longitude=end[0], latitude=end[1]))

    assert bearing == pytest.approx(expected, abs=1e-9)
    assert 0.0 <= bearing < 360.0


def test_bearing_ignores_height(geodesy):
    start = GeographicPoint(longitude=10.0, latitude=47.0, height_m=2000.0)
    end = GeographicPoint(longitude=10.1, latitude=47.1)

    assert geodesy.bearing_between(start, end) == pytest.approx(
        geodesy.bearing_between(start.with_height(0.0), end)
    )


@pytest.mark.parametrize(
    "value, expected",
    [(-90.0, 270.0), (360.0, 0.0), (725.0, 5.0), (-1e-17, 0.0)],
)
def test_normalize_bearing(value, expected):
    assert normalize_bearing(value) == pytest.approx(expected)
    assert normalize_bearing(value) < 360.0


def test_geodesic_distance_one_degree_latitude():
    a = GeographicPoint(longitude=10.0, latitude=47.0)
    b = GeographicPoint(longitude=10.0, latitude=48.0)

    assert geodesic_distance(a, b) == pytest.approx(111_200.0, rel=2e-3)


# ===========================================================================
# Interpolation
# ===========================================================================
def test_bilinear_constant_grid():
    grid = make_grid(np.full((4, 4), 1000.0))

    elevation, is_nodata = bilinear_interpolate(
        grid, GeographicPoint(longitude=10.17, latitude=47.23)
    )

    assert elevation == pytest.approx(1000.0)
    assert is_nodata is False


def test_bilinear_interpolates_between_columns():
    grid = make_grid([[0.0, 100.0], [0.0, 100.0]])

    elevation, _ = bilinear_interpolate(grid, GeographicPoint(longitude=10.05, latitude=47.35))

    assert elevation == pytest.approx(50.0)


def test_bilinear_nodata_neighbor_flags_nodata():
    grid = make_grid([[np.nan, 100.0], [100.0, 100.0]])

    elevation, is_nodata = bilinear_interpolate(
        grid, GeographicPoint(longitude=10.05, latitude=47.35)
    )

    assert is_nodata is True
    assert math.isnan(elevation)


def test_bilinear_many_matches_scalar():
    rng = np.random.default_rng(7)
    grid = make_grid(rng.random((5, 5)) * 1000)
    lons = np.array([10.01, 10.22, 10.37])
    lats = np.array([47.39, 47.21, 47.02])

    many = bilinear_interpolate_many(grid, lons, lats)

    for lon, lat, value in zip(lons, lats, many):
        scalar, _ = bilinear_interpolate(grid, GeographicPoint(longitude=lon, latitude=lat))
        assert value == pytest.approx(scalar)


def test_derive_step_uses_finer_resolution():
    grid = make_grid(np.zeros((10, 10)), res=0.001)

    step = derive_step_m(grid)

    # One 0.001 degree cell of longitude at ~47 N is ~76 m
    assert 70.0 < step < 80.0
    assert step >= MIN_STEP_M


def test_cartesian_point_type(geodesy):
    assert isinstance(
        geodesy.project_to_cartesian(GeographicPoint(longitude=1.0, latitude=1.0)),
        CartesianPoint,
    )

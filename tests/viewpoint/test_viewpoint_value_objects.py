"""Tests for viewpoint value objects."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from domain.terrain.value_objects import CartesianPoint, GeographicPoint
from domain.viewpoint.value_objects import (
    CameraOrientation,
    Landmark,
    ObserverResolution,
)
from tests.doubles import make_landmark


def make_resolution(**overrides) -> ObserverResolution:
    fields = dict(
        landmark=make_landmark(1, 12.7, 47.1, 3000.0),
        distance_m=1500.0,
        bearing_deg=10.0,
        is_view_blocked=False,
        observer_cartesian=CartesianPoint(x=1.0, y=2.0, z=3.0),
        observer=GeographicPoint(longitude=12.6, latitude=47.0, height_m=801.6),
    )
    fields.update(overrides)
    return ObserverResolution(**fields)


def test_landmark_requires_a_name():
    with pytest.raises(ValidationError):
        Landmark(
            id=1,
            name="",
            coordinates=GeographicPoint(longitude=12.7, latitude=47.1),
            elevation_m=3000.0,
        )


def test_landmark_target_point_adds_offset():
    summit = make_landmark("gg", 12.6939, 47.0745, 3798.0)

    target = summit.target_point(1.0)

    assert target.height_m == 3799.0
    assert (target.longitude, target.latitude) == (12.6939, 47.0745)
    assert summit.coordinates.height_m == 0.0


def test_camera_snapshot_orientation(home_camera):
    assert home_camera.orientation == CameraOrientation(heading=12.5, pitch=-35.0, roll=0.25)


def test_resolution_accepts_valid_fields():
    resolution = make_resolution()

    assert resolution.landmark.id == 1
    assert resolution.observer.height_m == 801.6


@pytest.mark.parametrize("bearing", [-0.1, 360.0])
def test_resolution_rejects_bearing_outside_range(bearing):
    with pytest.raises(ValidationError):
        make_resolution(bearing_deg=bearing)


def test_resolution_rejects_negative_distance():
    with pytest.raises(ValidationError):
        make_resolution(distance_m=-1.0)


def test_resolution_is_frozen():
    resolution = make_resolution()

    with pytest.raises(ValidationError):
        resolution.is_view_blocked = True

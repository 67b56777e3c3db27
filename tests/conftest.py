"""Root pytest configuration for all tests.

Imports resolve through ``pythonpath = [".", "src"]`` in pyproject.toml, so
tests use ``domain.*``, ``application.*`` and ``infrastructure.*`` exactly
as installed code does.
"""

from __future__ import annotations

import pytest

from domain.terrain.value_objects import CartesianPoint
from domain.viewpoint.value_objects import CameraSnapshot
from tests.doubles import make_landmark


@pytest.fixture
def scenario_landmarks():
    """Three landmarks at squared distances 100, 50 and 200 from the origin.

    Distances hold under PlanarGeodesy with an observer clicked at (0, 0).
    """
    return [
        make_landmark(1, 10.0, 0.0),  # d2 = 100
        make_landmark(2, 5.0, 5.0),  # d2 = 50
        make_landmark(3, -10.0, 10.0),  # d2 = 200, off the ray through id 2
    ]


@pytest.fixture
def home_camera() -> CameraSnapshot:
    return CameraSnapshot(
        position=CartesianPoint(x=4_200_000.0, y=1_100_000.0, z=4_700_000.0),
        heading=12.5,
        pitch=-35.0,
        roll=0.25,
    )

"""Viewpoint Bounded Context - Value Objects.

Immutable data structures for landmarks, camera state and resolution
results. All validation occurs at construction time via Pydantic.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from domain.terrain.value_objects import CartesianPoint, GeographicPoint


# ---------------------------------------------------------------------------
# Landmark
# ---------------------------------------------------------------------------
class Landmark(BaseModel):
    """Named point of interest that can be the target of a viewpoint.

    coordinates carries the horizontal position; elevation_m is the
    landmark's own altitude (a summit's height), used when projecting it
    as a line-of-sight target.
    """

    id: int | str
    name: str = Field(min_length=1)
    coordinates: GeographicPoint
    elevation_m: float
    area: str | None = None  # Mountain range or region label

    model_config = ConfigDict(frozen=True)

    def target_point(self, vertical_offset_m: float = 0.0) -> GeographicPoint:
        """Geographic point at the landmark's elevation plus an offset."""
        return self.coordinates.with_height(self.elevation_m + vertical_offset_m)


# ---------------------------------------------------------------------------
# Camera
# ---------------------------------------------------------------------------
class CameraOrientation(BaseModel):
    """Camera heading, pitch and roll in degrees."""

    heading: float
    pitch: float = 0.0
    roll: float = 0.0

    model_config = ConfigDict(frozen=True)


class CameraSnapshot(BaseModel):
    """Camera position and orientation captured when a resolution starts.

    Consumed exactly once, by the restore that ends the viewing state.
    """

    position: CartesianPoint
    heading: float
    pitch: float
    roll: float

    model_config = ConfigDict(frozen=True)

    @property
    def orientation(self) -> CameraOrientation:
        return CameraOrientation(heading=self.heading, pitch=self.pitch, roll=self.roll)


# ---------------------------------------------------------------------------
# ObserverResolution
# ---------------------------------------------------------------------------
class ObserverResolution(BaseModel):
    """Outcome of one visibility resolution (Value Object).

    Invariants:
        distance_m >= 0
        bearing_deg in [0, 360)

    is_view_blocked is True when no landmark had a clear line of sight and
    the nearest one was chosen as a fallback. That is a valid result, not a
    failure.
    """

    landmark: Landmark
    distance_m: float = Field(ge=0)
    bearing_deg: float = Field(ge=0, lt=360)
    is_view_blocked: bool
    observer_cartesian: CartesianPoint
    observer: GeographicPoint  # Height-adjusted observer (terrain + eye height)

    model_config = ConfigDict(frozen=True)

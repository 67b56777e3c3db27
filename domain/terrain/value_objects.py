"""Terrain Bounded Context - Value Objects.

Immutable data structures representing geographic concepts.
All validation occurs at construction time via Pydantic.
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field, model_validator


class BoundingBox(BaseModel):
    """Geographic extent in EPSG:4326 (Value Object).

    Invariants are enforced at construction time - invalid BoundingBox
    cannot be instantiated.
    """

    min_x: float  # Western boundary (longitude)
    min_y: float  # Southern boundary (latitude)
    max_x: float  # Eastern boundary (longitude)
    max_y: float  # Northern boundary (latitude)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_bounds(self) -> "BoundingBox":
        for name in ("min_x", "max_x"):
            value = getattr(self, name)
            if not (-180 <= value <= 180):
                raise ValueError(f"{name} longitude out of range: {value}")
        for name in ("min_y", "max_y"):
            value = getattr(self, name)
            if not (-90 <= value <= 90):
                raise ValueError(f"{name} latitude out of range: {value}")
        if not (self.min_x < self.max_x):
            raise ValueError(
                f"Invalid x ordering: min_x={self.min_x} >= max_x={self.max_x}"
            )
        if not (self.min_y < self.max_y):
            raise ValueError(
                f"Invalid y ordering: min_y={self.min_y} >= max_y={self.max_y}"
            )
        return self

    def contains(self, point: "GeographicPoint") -> bool:
        """Inclusive containment test on the horizontal coordinates."""
        return (
            self.min_x <= point.longitude <= self.max_x
            and self.min_y <= point.latitude <= self.max_y
        )


class TerrainGrid(BaseModel):
    """Immutable elevation grid with geographic metadata (Value Object).

    Row 0 is the northern edge. NaN marks NoData. The array is copied and
    frozen at construction, so caller arrays are never mutated and the grid
    cannot be modified afterwards.
    """

    data: NDArray[np.float32]  # 2D float32 array (height x width), read-only
    bounds: BoundingBox  # Geographic extent in EPSG:4326
    crs: str  # Always "EPSG:4326"
    resolution: tuple[float, float]  # (x_res, y_res) absolute values in degrees
    source_crs: str | None = None  # Original CRS before normalization

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def validate_grid(self) -> "TerrainGrid":
        if self.data.ndim != 2:
            raise ValueError(f"Data must be 2D, got {self.data.ndim}D")
        if self.data.shape[0] == 0 or self.data.shape[1] == 0:
            raise ValueError(f"Data cannot be empty: {self.data.shape}")
        if self.data.dtype != np.float32:
            raise ValueError(f"Data must be float32, got {self.data.dtype}")
        if self.crs != "EPSG:4326":
            raise ValueError(f"CRS must be EPSG:4326, got {self.crs}")
        if self.resolution[0] <= 0 or self.resolution[1] <= 0:
            raise ValueError(f"Resolution must be positive: {self.resolution}")
        if np.isnan(self.data).all():
            raise ValueError("Grid contains 100% NoData")

        immutable = np.array(self.data, dtype=np.float32, copy=True, order="C")
        immutable.flags.writeable = False
        object.__setattr__(self, "data", immutable)

        return self


# ---------------------------------------------------------------------------
# GeographicPoint
# ---------------------------------------------------------------------------
class GeographicPoint(BaseModel):
    """Geographic coordinate on the WGS84 ellipsoid (Value Object).

    Invariants:
        longitude in [-180, 180]
        latitude in [-90, 90]

    height_m is the ellipsoidal height in meters. Points produced by a screen
    click sit at ground level (height 0) until terrain is sampled.
    """

    longitude: float = Field(ge=-180, le=180)
    latitude: float = Field(ge=-90, le=90)
    height_m: float = 0.0

    model_config = ConfigDict(frozen=True)

    def with_height(self, height_m: float) -> "GeographicPoint":
        """Return the same horizontal position at another height."""
        return GeographicPoint(
            longitude=self.longitude, latitude=self.latitude, height_m=height_m
        )


# ---------------------------------------------------------------------------
# CartesianPoint
# ---------------------------------------------------------------------------
class CartesianPoint(BaseModel):
    """Earth-centered cartesian coordinate in meters (Value Object).

    Only the arithmetic needed for ranking and ray casting is provided; the
    projection itself belongs to a Geodesy implementation.
    """

    x: float
    y: float
    z: float

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_array(cls, values: NDArray[np.float64]) -> "CartesianPoint":
        return cls(x=float(values[0]), y=float(values[1]), z=float(values[2]))

    def as_array(self) -> NDArray[np.float64]:
        return np.array((self.x, self.y, self.z), dtype=np.float64)

    def __sub__(self, other: "CartesianPoint") -> "CartesianPoint":
        return CartesianPoint(
            x=self.x - other.x, y=self.y - other.y, z=self.z - other.z
        )

    def magnitude_squared(self) -> float:
        return self.x * self.x + self.y * self.y + self.z * self.z

    def distance_squared(self, other: "CartesianPoint") -> float:
        return (self - other).magnitude_squared()

    def normalized(self) -> "CartesianPoint":
        """Return the unit vector in this direction.

        Raises:
            ValueError: If this is the zero vector.
        """
        magnitude = math.sqrt(self.magnitude_squared())
        if magnitude == 0:
            raise ValueError("Cannot normalize a zero-length vector")
        return CartesianPoint(
            x=self.x / magnitude, y=self.y / magnitude, z=self.z / magnitude
        )

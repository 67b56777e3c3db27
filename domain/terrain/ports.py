"""Domain Port(s) for the Terrain context.

Defines interfaces (Protocols) that infrastructure adapters and external
collaborators must implement. No concrete I/O here.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from .value_objects import CartesianPoint, GeographicPoint, TerrainGrid


class TerrainRepository(Protocol):
    """Port for obtaining terrain grids from external sources.

    Implementations live in infrastructure (e.g., GeoTIFF adapter).
    """

    def load_dem(self, file_path: Path | str) -> TerrainGrid:
        """Load a DEM and return a normalized TerrainGrid in EPSG:4326."""
        ...


class TerrainQuery(Protocol):
    """Port for height sampling and line-of-sight tests against terrain.

    sample_terrain_height may suspend (tile fetch, remote service) and may
    fail; cast_ray_hits_terrain is synchronous.
    """

    async def sample_terrain_height(self, point: GeographicPoint) -> GeographicPoint:
        """Return ``point`` with height_m set to the most detailed terrain height."""
        ...

    def cast_ray_hits_terrain(
        self,
        origin: CartesianPoint,
        direction: CartesianPoint,
        max_distance_m: float | None = None,
    ) -> bool:
        """Return True if the ray from origin along direction meets terrain.

        direction is a unit vector. When max_distance_m is given, only the
        segment up to that distance is considered.
        """
        ...


class Geodesy(Protocol):
    """Port for the ellipsoid math the visibility engine relies on."""

    def project_to_cartesian(self, point: GeographicPoint) -> CartesianPoint:
        ...

    def to_geographic(self, point: CartesianPoint) -> GeographicPoint:
        ...

    def bearing_between(self, start: GeographicPoint, end: GeographicPoint) -> float:
        """Initial compass bearing from start to end, degrees clockwise from north."""
        ...

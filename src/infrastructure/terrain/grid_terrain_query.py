"""TerrainQuery backed by an in-memory TerrainGrid.

Heights are bilinearly interpolated from the grid. Rays are marched in
fixed steps in the earth-centered frame; each sample is converted back to
geographic coordinates and compared against the terrain height below it.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path

import numpy as np

from domain.terrain.errors import NoDataError, PointOutOfBoundsError
from domain.terrain.services import (
    Wgs84Geodesy,
    bilinear_interpolate,
    bilinear_interpolate_many,
    derive_step_m,
    geodesic_distance,
)
from domain.terrain.value_objects import CartesianPoint, GeographicPoint, TerrainGrid

from .geotiff_adapter import GeoTiffTerrainAdapter

logger = logging.getLogger(__name__)

# Heights climbed by a ray before leaving the grid are capped here; above
# this no terrain on Earth can block it.
MAX_TERRAIN_HEIGHT_M = 9000.0


class GridTerrainQuery:
    """TerrainQuery implementation over a DEM.

    Parameters
    ----------
    grid: TerrainGrid
        Elevation model in EPSG:4326.
    geodesy: Wgs84Geodesy | None
        Converter for ray samples. Defaults to a new Wgs84Geodesy.
    step_m: float | None
        Ray-march step. Defaults to one grid cell (floor 1m).
    """

    def __init__(
        self,
        grid: TerrainGrid,
        geodesy: Wgs84Geodesy | None = None,
        step_m: float | None = None,
    ) -> None:
        if step_m is not None and step_m <= 0:
            raise ValueError("step_m must be positive")
        self.grid = grid
        self.geodesy = geodesy if geodesy is not None else Wgs84Geodesy()
        self.step_m = step_m if step_m is not None else derive_step_m(grid)

        bounds = grid.bounds
        # Longest straight run possible inside the grid footprint
        self._max_range_m = geodesic_distance(
            GeographicPoint(longitude=bounds.min_x, latitude=bounds.min_y),
            GeographicPoint(longitude=bounds.max_x, latitude=bounds.max_y),
        )

    @classmethod
    def from_geotiff(
        cls, file_path: Path | str, max_bytes: int | None = None
    ) -> "GridTerrainQuery":
        return cls(GeoTiffTerrainAdapter(max_bytes=max_bytes).load_dem(file_path))

    async def sample_terrain_height(self, point: GeographicPoint) -> GeographicPoint:
        """Return point at the interpolated terrain height.

        Raises:
            PointOutOfBoundsError: If point is outside the grid
            NoDataError: If the grid has no data around point
        """
        if not self.grid.bounds.contains(point):
            raise PointOutOfBoundsError(point, self.grid.bounds)
        elevation, is_nodata = bilinear_interpolate(self.grid, point)
        if is_nodata:
            raise NoDataError(point)
        return point.with_height(elevation)

    def cast_ray_hits_terrain(
        self,
        origin: CartesianPoint,
        direction: CartesianPoint,
        max_distance_m: float | None = None,
    ) -> bool:
        """March along the ray and report whether any sample is underground.

        The origin itself is not tested. Marching stops at max_distance_m
        (or the grid diagonal) and as soon as the ray leaves the grid or
        climbs above MAX_TERRAIN_HEIGHT_M. A sample falling on NoData
        never counts as a hit.
        """
        limit = self._max_range_m
        if max_distance_m is not None:
            limit = min(limit, max_distance_m)
        # Samples strictly before the limit; the target itself is not tested
        count = int(math.ceil(limit / self.step_m)) - 1
        if count < 1:
            return False

        distances = np.arange(1, count + 1, dtype=np.float64) * self.step_m
        samples = origin.as_array() + distances[:, None] * direction.as_array()
        lons, lats, heights = self.geodesy.to_geographic_many(samples)

        bounds = self.grid.bounds
        inside = (
            (lons >= bounds.min_x)
            & (lons <= bounds.max_x)
            & (lats >= bounds.min_y)
            & (lats <= bounds.max_y)
            & (heights <= MAX_TERRAIN_HEIGHT_M)
        )
        # Only the run before the ray first leaves the grid is relevant
        outside = np.flatnonzero(~inside)
        end = int(outside[0]) if outside.size else count
        if end == 0:
            return False

        terrain = bilinear_interpolate_many(self.grid, lons[:end], lats[:end])
        # NaN terrain compares False
        underground = heights[:end] <= terrain
        hits = np.flatnonzero(underground)
        if hits.size:
            logger.debug(
                "Ray blocked %.0fm from origin", float(distances[int(hits[0])])
            )
            return True
        return False


"""Terrain Bounded Context - Domain Services.

Pure domain logic for terrain calculations.
NO I/O operations - file loading is implemented by infrastructure adapters
under `src/infrastructure/terrain/geotiff_adapter.py` via domain ports.
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray
from pyproj import Geod, Transformer

from domain.terrain.value_objects import CartesianPoint, GeographicPoint, TerrainGrid

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
MIN_STEP_M = 1.0  # Minimum ray-march step in meters

# WGS84 ellipsoid for geodesic calculations (same as GPS, EPSG:4326)
_geod = Geod(ellps="WGS84")

# EPSG:4979 is WGS84 geographic 3D (lon, lat, ellipsoidal height);
# EPSG:4978 is WGS84 geocentric (ECEF) in meters.
_GEOGRAPHIC_3D = "EPSG:4979"
_GEOCENTRIC = "EPSG:4978"


# ---------------------------------------------------------------------------
# WGS84 Geodesy
# ---------------------------------------------------------------------------
class Wgs84Geodesy:
    """Geodesy port implementation backed by pyproj.

    Projects between geographic coordinates and earth-centered cartesian
    coordinates on the WGS84 ellipsoid, and computes geodesic bearings.
    The array variants let callers transform many points in one call.
    """

    def __init__(self) -> None:
        self._forward = Transformer.from_crs(_GEOGRAPHIC_3D, _GEOCENTRIC, always_xy=True)
        self._inverse = Transformer.from_crs(_GEOCENTRIC, _GEOGRAPHIC_3D, always_xy=True)

    def project_to_cartesian(self, point: GeographicPoint) -> CartesianPoint:
        x, y, z = self._forward.transform(point.longitude, point.latitude, point.height_m)
        return CartesianPoint(x=float(x), y=float(y), z=float(z))

    def to_geographic(self, point: CartesianPoint) -> GeographicPoint:
        lon, lat, height = self._inverse.transform(point.x, point.y, point.z)
        return GeographicPoint(
            longitude=float(lon), latitude=float(lat), height_m=float(height)
        )

    def to_geographic_many(
        self, points: NDArray[np.float64]
    ) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
        """Convert an (n, 3) cartesian array to (lons, lats, heights) arrays."""
        lons, lats, heights = self._inverse.transform(
            points[:, 0], points[:, 1], points[:, 2]
        )
        return np.asarray(lons), np.asarray(lats), np.asarray(heights)

    def bearing_between(self, start: GeographicPoint, end: GeographicPoint) -> float:
        """Initial geodesic azimuth from start to end in [0, 360)."""
        azimuth, _, _ = _geod.inv(
            start.longitude, start.latitude, end.longitude, end.latitude
        )
        return normalize_bearing(float(azimuth))


def normalize_bearing(bearing_deg: float) -> float:
    """Wrap a bearing into [0, 360)."""
    wrapped = bearing_deg % 360.0
    # A tiny negative input wraps to exactly 360.0 in floating point
    return 0.0 if wrapped >= 360.0 else wrapped


# ---------------------------------------------------------------------------
# Geodesic Distance
# ---------------------------------------------------------------------------
def geodesic_distance(start: GeographicPoint, end: GeographicPoint) -> float:
    """Calculate geodesic distance between two points in meters.

    Heights are ignored; the distance is measured on the ellipsoid.
    """
    _, _, distance = _geod.inv(
        start.longitude, start.latitude, end.longitude, end.latitude
    )
    return float(abs(distance))


# ---------------------------------------------------------------------------
# Step Size Derivation
# ---------------------------------------------------------------------------
def derive_step_m(grid: TerrainGrid) -> float:
    """Derive a sampling step from the grid resolution at its center.

    Measures the ground size of one grid cell with pyproj instead of a
    cos(lat) approximation.

    Returns:
        Step size in meters, minimum MIN_STEP_M (1m).
    """
    mid_lon = (grid.bounds.min_x + grid.bounds.max_x) / 2
    mid_lat = (grid.bounds.min_y + grid.bounds.max_y) / 2

    _, _, x_res_m = _geod.inv(mid_lon, mid_lat, mid_lon + grid.resolution[0], mid_lat)
    _, _, y_res_m = _geod.inv(mid_lon, mid_lat, mid_lon, mid_lat - grid.resolution[1])

    return float(max(MIN_STEP_M, min(abs(x_res_m), abs(y_res_m))))


# ---------------------------------------------------------------------------
# Bilinear Interpolation
# ---------------------------------------------------------------------------
def bilinear_interpolate(grid: TerrainGrid, point: GeographicPoint) -> tuple[float, bool]:
    """Interpolate elevation at arbitrary point using 4 nearest pixels.

    Returns (elevation, is_nodata).
    If any of the 4 neighbors is NaN, returns (NaN, True).

    Points exactly on grid boundaries use clamped indices, so bilinear
    degrades to linear on edges and nearest on corners.
    """
    elevations = bilinear_interpolate_many(
        grid, np.array([point.longitude]), np.array([point.latitude])
    )
    elevation = float(elevations[0])
    if math.isnan(elevation):
        return (float("nan"), True)
    return (elevation, False)


def bilinear_interpolate_many(
    grid: TerrainGrid, lons: NDArray[np.float64], lats: NDArray[np.float64]
) -> NDArray[np.float64]:
    """Vectorized bilinear interpolation; NaN where any neighbor is NoData.

    Callers are responsible for restricting lons/lats to the grid bounds;
    indices are clamped, not validated.
    """
    # Row 0 = north edge (max_y), so y is inverted
    px = (np.asarray(lons, dtype=np.float64) - grid.bounds.min_x) / grid.resolution[0]
    py = (grid.bounds.max_y - np.asarray(lats, dtype=np.float64)) / grid.resolution[1]

    height, width = grid.data.shape

    fx = px - np.floor(px)
    fy = py - np.floor(py)

    x0 = np.clip(np.floor(px).astype(np.int64), 0, width - 1)
    y0 = np.clip(np.floor(py).astype(np.int64), 0, height - 1)
    x1 = np.clip(x0 + 1, 0, width - 1)
    y1 = np.clip(y0 + 1, 0, height - 1)

    data = grid.data
    q11 = data[y0, x0].astype(np.float64)  # top-left
    q21 = data[y0, x1].astype(np.float64)  # top-right
    q12 = data[y1, x0].astype(np.float64)  # bottom-left
    q22 = data[y1, x1].astype(np.float64)  # bottom-right

    # NaN in any corner propagates through the sum (no infill)
    return (
        q11 * (1 - fx) * (1 - fy)
        + q21 * fx * (1 - fy)
        + q12 * (1 - fx) * fy
        + q22 * fx * fy
    )

"""Viewpoint Bounded Context - Visibility Resolver.

Finds the closest landmark with an unobstructed line of sight from a
clicked point on the terrain.

Algorithm:
1) Sample terrain height under the click (the only suspension point)
2) Raise the observer by the eye height and project it to cartesian
3) Project every landmark (elevation + small offset) into a scratch buffer
4) Rank by squared cartesian distance, stable on ties
5) Walk nearest outward, ray-casting toward each candidate; the first
   unobstructed one wins, otherwise the nearest is returned as blocked
6) Compute distance and bearing once, for the winner only
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field

from domain.terrain.ports import Geodesy, TerrainQuery
from domain.terrain.services import Wgs84Geodesy, normalize_bearing
from domain.terrain.value_objects import CartesianPoint, GeographicPoint
from domain.viewpoint.errors import NoCandidatesError, TerrainUnavailableError
from domain.viewpoint.value_objects import Landmark, ObserverResolution

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
OBSERVER_HEIGHT_M = 1.6  # Eye height above sampled terrain
TARGET_OFFSET_M = 1.0  # Lift above a landmark so it does not occlude itself


class ResolverSettings(BaseModel):
    """Tunable heights used by the VisibilityResolver."""

    observer_height_m: float = Field(default=OBSERVER_HEIGHT_M, ge=0)
    target_offset_m: float = Field(default=TARGET_OFFSET_M, ge=0)

    model_config = ConfigDict(frozen=True)


class CandidateBuffer:
    """Caller-owned scratch space for projected candidate positions.

    Holds an (n, 3) float64 array that grows on demand and is reused across
    resolutions. A buffer must not be shared by resolutions running at the
    same time.
    """

    def __init__(self, capacity: int = 0) -> None:
        self._data: NDArray[np.float64] = np.empty((capacity, 3), dtype=np.float64)

    @property
    def capacity(self) -> int:
        return self._data.shape[0]

    def reserve(self, count: int) -> NDArray[np.float64]:
        """Return a writable (count, 3) view, reallocating if too small."""
        if count > self.capacity:
            self._data = np.empty((count, 3), dtype=np.float64)
        return self._data[:count]


class VisibilityResolver:
    """Ranks landmarks by distance and picks the closest visible one.

    Parameters
    ----------
    geodesy: Geodesy | None
        Projection and bearing primitives. Defaults to Wgs84Geodesy.
    settings: ResolverSettings | None
        Observer eye height and target offset.
    """

    def __init__(
        self,
        geodesy: Geodesy | None = None,
        settings: ResolverSettings | None = None,
    ) -> None:
        self.geodesy = geodesy if geodesy is not None else Wgs84Geodesy()
        self.settings = settings if settings is not None else ResolverSettings()

    async def resolve(
        self,
        click: GeographicPoint,
        landmarks: Sequence[Landmark],
        terrain_query: TerrainQuery,
        scratch: CandidateBuffer | None = None,
    ) -> ObserverResolution:
        """Resolve the closest visible landmark as seen from ``click``.

        Args:
            click: Ground point picked by the user (height is ignored)
            landmarks: Immutable candidate set, read-only for this call
            terrain_query: Terrain sampling and ray-casting primitives
            scratch: Reusable projection buffer; a fresh one if omitted

        Returns:
            ObserverResolution for the winning landmark

        Raises:
            NoCandidatesError: If landmarks is empty
            TerrainUnavailableError: If the terrain primitives fail
        """
        if not landmarks:
            raise NoCandidatesError()

        try:
            ground = await terrain_query.sample_terrain_height(click)
        except Exception as e:
            raise TerrainUnavailableError(f"Terrain sampling failed: {e}") from e

        observer = ground.with_height(ground.height_m + self.settings.observer_height_m)
        observer_cartesian = self.geodesy.project_to_cartesian(observer)

        buffer = scratch if scratch is not None else CandidateBuffer()
        deltas = self._project_candidates(landmarks, observer_cartesian, buffer)
        distances_sq = np.einsum("ij,ij->i", deltas, deltas)
        order = np.argsort(distances_sq, kind="stable")

        winner_index, is_blocked = self._closest_visible(
            order, deltas, distances_sq, observer_cartesian, terrain_query
        )

        landmark = landmarks[winner_index]
        if is_blocked:
            logger.warning(
                "No landmark visible from (%.5f, %.5f), falling back to closest: %s",
                observer.latitude,
                observer.longitude,
                landmark.name,
            )

        bearing = normalize_bearing(
            self.geodesy.bearing_between(observer, landmark.coordinates)
        )
        distance = math.sqrt(float(distances_sq[winner_index]))

        logger.info(
            "Closest %s landmark: %s at %.0fm, bearing %.1f",
            "blocked" if is_blocked else "visible",
            landmark.name,
            distance,
            bearing,
        )
        return ObserverResolution(
            landmark=landmark,
            distance_m=distance,
            bearing_deg=bearing,
            is_view_blocked=is_blocked,
            observer_cartesian=observer_cartesian,
            observer=observer,
        )

    def _project_candidates(
        self,
        landmarks: Sequence[Landmark],
        observer: CartesianPoint,
        buffer: CandidateBuffer,
    ) -> NDArray[np.float64]:
        """Fill the buffer with candidate-minus-observer vectors."""
        positions = buffer.reserve(len(landmarks))
        offset = self.settings.target_offset_m
        for i, landmark in enumerate(landmarks):
            target = self.geodesy.project_to_cartesian(landmark.target_point(offset))
            positions[i, 0] = target.x
            positions[i, 1] = target.y
            positions[i, 2] = target.z
        positions -= observer.as_array()
        return positions

    def _closest_visible(
        self,
        order: NDArray[np.intp],
        deltas: NDArray[np.float64],
        distances_sq: NDArray[np.float64],
        observer: CartesianPoint,
        terrain_query: TerrainQuery,
    ) -> tuple[int, bool]:
        """Return (index, is_blocked) of the first unobstructed candidate.

        Falls back to the nearest candidate with is_blocked=True.
        """
        for index in order:
            index = int(index)
            length = math.sqrt(float(distances_sq[index]))
            if length == 0:
                # Observer stands on the candidate
                return index, False

            direction = CartesianPoint.from_array(deltas[index] / length)
            try:
                blocked = terrain_query.cast_ray_hits_terrain(
                    observer, direction, max_distance_m=length
                )
            except Exception as e:
                raise TerrainUnavailableError(f"Ray cast failed: {e}") from e

            logger.debug("Candidate %d at %.0fm blocked=%s", index, length, blocked)
            if not blocked:
                return index, False

        return int(order[0]), True

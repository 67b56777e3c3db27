"""Camera side effects of the viewpoint workflow.

Translates "look from the observer toward the landmark" and "put the
camera back" into calls on the host's CameraService. Camera movement is
presentation only: failures are logged and never reach the state machine.
"""

from __future__ import annotations

import logging

from domain.terrain.value_objects import CartesianPoint
from domain.viewpoint.errors import MissingCapabilityError
from domain.viewpoint.ports import CameraService
from domain.viewpoint.value_objects import CameraOrientation, CameraSnapshot

logger = logging.getLogger(__name__)


class CameraCoordinator:
    """Adapter between viewpoint effects and the external camera service."""

    def __init__(self, camera_service: CameraService) -> None:
        if camera_service is None:
            raise MissingCapabilityError("camera_service")
        self._camera_service = camera_service

    def capture(self) -> CameraSnapshot | None:
        """Snapshot the current camera, to be restored after viewing.

        Returns None if the camera service fails.
        """
        try:
            return self._camera_service.get_current_camera()
        except Exception:
            logger.exception("Camera capture failed")
            return None

    def set_camera(self, observer_cartesian: CartesianPoint, bearing_deg: float) -> None:
        """Fly to the observer, facing the bearing with level pitch and roll."""
        self._fly(observer_cartesian, CameraOrientation(heading=bearing_deg))

    def restore_camera(self, snapshot: CameraSnapshot) -> None:
        """Fly back to exactly the captured position and orientation."""
        self._fly(snapshot.position, snapshot.orientation)

    def _fly(self, position: CartesianPoint, orientation: CameraOrientation) -> None:
        try:
            self._camera_service.fly_camera_to(position, orientation)
        except Exception:
            logger.exception(
                "Camera flight to heading %.1f failed", orientation.heading
            )

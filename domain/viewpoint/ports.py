"""Domain Port(s) for the Viewpoint context.

Interfaces (Protocols) for the side-effect consumers driven by the
viewpoint state machine. Hosts supply implementations; none live here.
"""

from __future__ import annotations

from typing import Protocol

from domain.terrain.value_objects import CartesianPoint

from .value_objects import CameraOrientation, CameraSnapshot, ObserverResolution


class CameraService(Protocol):
    """Port for reading and moving the scene camera."""

    def get_current_camera(self) -> CameraSnapshot:
        ...

    def fly_camera_to(
        self, position: CartesianPoint, orientation: CameraOrientation
    ) -> None:
        """Start moving the camera; completion is not reported back."""
        ...


class Presenter(Protocol):
    """Port for showing a resolved viewpoint to the user.

    The host wires its dismiss action (e.g. an "Exit" button) to
    ViewpointSession.explore().
    """

    def present(self, resolution: ObserverResolution) -> None:
        ...

    def dismiss(self) -> None:
        ...


class GroundIndicator(Protocol):
    """Port for the exploring affordance (e.g. a ground-hover marker)."""

    def show(self) -> None:
        ...

    def hide(self) -> None:
        ...

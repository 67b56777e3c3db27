"""Application Layer.

Services that orchestrate domain logic: the viewpoint session that runs
state machine effects, the camera coordinator and result presentation.
"""

from .camera_coordinator import CameraCoordinator
from .presentation import LoggingPresenter, describe_resolution
from .viewpoint_session import ViewpointSession

__all__ = [
    "CameraCoordinator",
    "LoggingPresenter",
    "ViewpointSession",
    "describe_resolution",
]

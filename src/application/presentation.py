"""Result presentation helpers."""

from __future__ import annotations

import logging

from domain.viewpoint.value_objects import ObserverResolution

logger = logging.getLogger(__name__)


def describe_resolution(resolution: ObserverResolution) -> str:
    """Render a one-line, user-facing summary of a resolution.

    Example:
        "Closest summit is Großglockner (Glockner Group), 12.3 km at 245°"
    """
    landmark = resolution.landmark
    name = f"{landmark.name} ({landmark.area})" if landmark.area else landmark.name
    message = (
        f"Closest summit is {name}, "
        f"{resolution.distance_m / 1000:.1f} km at {resolution.bearing_deg:.0f}°"
    )
    if resolution.is_view_blocked:
        message += " - view blocked by terrain"
    return message


class LoggingPresenter:
    """Presenter that writes results to the log instead of a UI."""

    def present(self, resolution: ObserverResolution) -> None:
        logger.info("%s", describe_resolution(resolution))

    def dismiss(self) -> None:
        logger.debug("Viewpoint presentation dismissed")

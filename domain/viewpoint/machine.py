"""Viewpoint Bounded Context - State Machine.

Pure transition function for the viewpoint workflow:

    Exploring --View--> CheckingViewpoint --succeeded--> Viewing
        ^                  |        |                       |
        +----failed--------+        |                       |
        +----Explore (cancel)-------+                       |
        +----Explore (restore camera)-----------------------+

transition() never performs side effects. It returns the next state and
a tuple of effect descriptors which the application layer executes.

Each state carries only the data valid in it, plus ``cycle``: the number
of resolution cycles started so far. The cycle of CheckingViewpoint is the
handle of the resolution in flight; result events carrying any other cycle
are stale and ignored.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Union

from pydantic import BaseModel, ConfigDict, Field

from domain.terrain.value_objects import CartesianPoint, GeographicPoint
from domain.viewpoint.value_objects import CameraSnapshot, ObserverResolution

logger = logging.getLogger(__name__)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# States
# ---------------------------------------------------------------------------
class Exploring(_Frozen):
    """Idle; the user is moving around the terrain."""

    cycle: int = Field(default=0, ge=0)


class CheckingViewpoint(_Frozen):
    """A resolution is in flight for ``click``."""

    cycle: int = Field(ge=1)
    click: GeographicPoint
    camera: CameraSnapshot


class Viewing(_Frozen):
    """The camera shows the resolved viewpoint."""

    cycle: int = Field(ge=1)
    click: GeographicPoint
    camera: CameraSnapshot
    resolution: ObserverResolution


ViewpointState = Union[Exploring, CheckingViewpoint, Viewing]


class ViewpointContext(_Frozen):
    """Working set of the current cycle, as seen from outside the machine."""

    click: GeographicPoint | None = None
    camera: CameraSnapshot | None = None
    resolution: ObserverResolution | None = None


def context_of(state: ViewpointState) -> ViewpointContext:
    if isinstance(state, Viewing):
        return ViewpointContext(
            click=state.click, camera=state.camera, resolution=state.resolution
        )
    if isinstance(state, CheckingViewpoint):
        return ViewpointContext(click=state.click, camera=state.camera)
    return ViewpointContext()


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------
class View(_Frozen):
    """User picked a ground point; camera is the view to restore later."""

    click: GeographicPoint
    camera: CameraSnapshot


class Explore(_Frozen):
    """User leaves the viewpoint (or abandons a pending one)."""


class ResolutionSucceeded(_Frozen):
    cycle: int
    resolution: ObserverResolution


class ResolutionFailed(_Frozen):
    cycle: int
    reason: str = ""


ViewpointEvent = Union[View, Explore, ResolutionSucceeded, ResolutionFailed]


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------
class HideGroundIndicator(_Frozen):
    pass


class ShowGroundIndicator(_Frozen):
    pass


class StartResolution(_Frozen):
    cycle: int
    click: GeographicPoint


class CancelResolution(_Frozen):
    cycle: int


class SetCamera(_Frozen):
    observer_cartesian: CartesianPoint
    bearing_deg: float


class PresentResolution(_Frozen):
    resolution: ObserverResolution


class DismissPresentation(_Frozen):
    pass


class RestoreCamera(_Frozen):
    snapshot: CameraSnapshot


Effect = Union[
    HideGroundIndicator,
    ShowGroundIndicator,
    StartResolution,
    CancelResolution,
    SetCamera,
    PresentResolution,
    DismissPresentation,
    RestoreCamera,
]


class Transition(_Frozen):
    """Result of feeding one event to the machine.

    handled is False when the event has no meaning in the current state; the
    state is then returned unchanged and no effects are produced.
    """

    state: ViewpointState
    effects: tuple[Effect, ...] = ()
    handled: bool = True


# ---------------------------------------------------------------------------
# Transition handlers
# ---------------------------------------------------------------------------
def _start_checking(state: Exploring, event: View) -> Transition:
    cycle = state.cycle + 1
    return Transition(
        state=CheckingViewpoint(cycle=cycle, click=event.click, camera=event.camera),
        effects=(HideGroundIndicator(), StartResolution(cycle=cycle, click=event.click)),
    )


def _enter_viewing(state: CheckingViewpoint, event: ResolutionSucceeded) -> Transition:
    if event.cycle != state.cycle:
        return _ignore(state, event)
    resolution = event.resolution
    return Transition(
        state=Viewing(
            cycle=state.cycle,
            click=state.click,
            camera=state.camera,
            resolution=resolution,
        ),
        effects=(
            SetCamera(
                observer_cartesian=resolution.observer_cartesian,
                bearing_deg=resolution.bearing_deg,
            ),
            PresentResolution(resolution=resolution),
        ),
    )


def _resolution_failed(state: CheckingViewpoint, event: ResolutionFailed) -> Transition:
    if event.cycle != state.cycle:
        return _ignore(state, event)
    return Transition(state=Exploring(cycle=state.cycle), effects=(ShowGroundIndicator(),))


def _abandon_checking(state: CheckingViewpoint, event: Explore) -> Transition:
    return Transition(
        state=Exploring(cycle=state.cycle),
        effects=(CancelResolution(cycle=state.cycle), ShowGroundIndicator()),
    )


def _leave_viewing(state: Viewing, event: Explore) -> Transition:
    return Transition(
        state=Exploring(cycle=state.cycle),
        effects=(
            RestoreCamera(snapshot=state.camera),
            DismissPresentation(),
            ShowGroundIndicator(),
        ),
    )


def _ignore(state: ViewpointState, event: ViewpointEvent) -> Transition:
    return Transition(state=state, handled=False)


TRANSITIONS: dict[tuple[type, type], Callable[..., Transition]] = {
    (Exploring, View): _start_checking,
    (CheckingViewpoint, ResolutionSucceeded): _enter_viewing,
    (CheckingViewpoint, ResolutionFailed): _resolution_failed,
    (CheckingViewpoint, Explore): _abandon_checking,
    (Viewing, Explore): _leave_viewing,
}


def transition(state: ViewpointState, event: ViewpointEvent) -> Transition:
    """Compute the next state and effects for ``event`` in ``state``."""
    handler = TRANSITIONS.get((type(state), type(event)), _ignore)
    result = handler(state, event)
    if not result.handled:
        logger.debug(
            "Ignored %s in %s", type(event).__name__, type(state).__name__
        )
    return result


def state_name(state: ViewpointState) -> str:
    return type(state).__name__

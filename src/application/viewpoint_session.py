"""Viewpoint session: runs the viewpoint state machine against the host.

The session owns the machine state and executes the effects returned by
each transition. Events are processed one at a time in arrival order; an
event sent while another is being processed (e.g. by a presenter reacting
synchronously) is queued behind it.

Resolutions run as asyncio tasks, so the session must be driven from a
running event loop; a View outside one fails its cycle straight away.
At most one task exists at a time: View events are dropped while a
resolution is pending, and abandoning the pending state cancels its task.

Presenter and indicator callbacks are best effort: their errors are
logged and the transition carries on.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Callable, Iterable

from domain.terrain.ports import TerrainQuery
from domain.terrain.value_objects import GeographicPoint
from domain.viewpoint.errors import MissingCapabilityError, ResolutionError
from domain.viewpoint.machine import (
    CancelResolution,
    DismissPresentation,
    Effect,
    Explore,
    Exploring,
    HideGroundIndicator,
    PresentResolution,
    ResolutionFailed,
    ResolutionSucceeded,
    RestoreCamera,
    SetCamera,
    ShowGroundIndicator,
    StartResolution,
    View,
    ViewpointContext,
    ViewpointEvent,
    ViewpointState,
    context_of,
    state_name,
    transition,
)
from domain.viewpoint.ports import CameraService, GroundIndicator, Presenter
from domain.viewpoint.resolver import CandidateBuffer, VisibilityResolver
from domain.viewpoint.value_objects import Landmark

from .camera_coordinator import CameraCoordinator
from .presentation import LoggingPresenter

logger = logging.getLogger(__name__)


class ViewpointSession:
    """Effect runner for one user session.

    Parameters
    ----------
    landmarks: Iterable[Landmark]
        Candidate set, frozen into a tuple and shared by every cycle.
    terrain_query: TerrainQuery
        Required. Height sampling and ray casting.
    camera_service: CameraService
        Required. Camera capture and flights.
    resolver: VisibilityResolver | None
        Defaults to a WGS84 resolver with default settings.
    presenter: Presenter | None
        Defaults to LoggingPresenter.
    indicator: GroundIndicator | None
        Optional exploring affordance.
    """

    def __init__(
        self,
        landmarks: Iterable[Landmark],
        terrain_query: TerrainQuery,
        camera_service: CameraService,
        *,
        resolver: VisibilityResolver | None = None,
        presenter: Presenter | None = None,
        indicator: GroundIndicator | None = None,
    ) -> None:
        if terrain_query is None:
            raise MissingCapabilityError("terrain_query")
        if camera_service is None:
            raise MissingCapabilityError("camera_service")

        self._landmarks = tuple(landmarks)
        self._terrain_query = terrain_query
        self._camera = CameraCoordinator(camera_service)
        self._resolver = resolver if resolver is not None else VisibilityResolver()
        self._presenter = presenter if presenter is not None else LoggingPresenter()
        self._indicator = indicator

        self._state: ViewpointState = Exploring()
        self._queue: deque[ViewpointEvent] = deque()
        self._dispatching = False
        self._pending: tuple[int, asyncio.Task[None]] | None = None
        self._scratch = CandidateBuffer()

    # -----------------------------------------------------------------------
    # Introspection
    # -----------------------------------------------------------------------
    @property
    def state(self) -> ViewpointState:
        return self._state

    @property
    def context(self) -> ViewpointContext:
        return context_of(self._state)

    @property
    def landmarks(self) -> tuple[Landmark, ...]:
        return self._landmarks

    # -----------------------------------------------------------------------
    # Input
    # -----------------------------------------------------------------------
    def on_map_click(self, click: GeographicPoint) -> bool:
        """Capture the camera and request a viewpoint at ``click``.

        Returns False without changing state if the camera cannot be
        captured, since there would be nothing to restore.
        """
        camera = self._camera.capture()
        if camera is None:
            return False
        return self.send(View(click=click, camera=camera))

    def explore(self) -> bool:
        """Leave the viewpoint, or abandon the pending one."""
        return self.send(Explore())

    def send(self, event: ViewpointEvent) -> bool:
        """Feed an event to the machine and run the resulting effects.

        Returns True if the event was handled immediately. Events sent while
        another event is being processed are queued and return False here;
        they are processed before the outer send() returns.
        """
        self._queue.append(event)
        if self._dispatching:
            return False

        self._dispatching = True
        try:
            handled = self._dispatch(self._queue.popleft())
            while self._queue:
                self._dispatch(self._queue.popleft())
        finally:
            self._dispatching = False
        return handled

    def _dispatch(self, event: ViewpointEvent) -> bool:
        step = transition(self._state, event)
        if not step.handled:
            return False

        previous, self._state = self._state, step.state
        if type(previous) is not type(step.state):
            logger.info(
                "Viewpoint transition: %s -> %s (cycle %d)",
                state_name(previous),
                state_name(step.state),
                step.state.cycle,
            )
        for effect in step.effects:
            self._run_effect(effect)
        return True

    # -----------------------------------------------------------------------
    # Effects
    # -----------------------------------------------------------------------
    def _run_effect(self, effect: Effect) -> None:
        if isinstance(effect, StartResolution):
            self._start_resolution(effect)
        elif isinstance(effect, CancelResolution):
            self._cancel_resolution(effect.cycle)
        elif isinstance(effect, SetCamera):
            self._camera.set_camera(effect.observer_cartesian, effect.bearing_deg)
        elif isinstance(effect, RestoreCamera):
            self._camera.restore_camera(effect.snapshot)
        elif isinstance(effect, PresentResolution):
            self._notify(self._presenter.present, effect.resolution)
        elif isinstance(effect, DismissPresentation):
            self._notify(self._presenter.dismiss)
        elif isinstance(effect, ShowGroundIndicator):
            if self._indicator is not None:
                self._notify(self._indicator.show)
        elif isinstance(effect, HideGroundIndicator):
            if self._indicator is not None:
                self._notify(self._indicator.hide)
        else:
            raise TypeError(f"Unknown effect: {effect!r}")

    def _notify(self, callback: Callable[..., None], *args: object) -> None:
        # Host UI hooks never interrupt a transition
        try:
            callback(*args)
        except Exception:
            logger.exception("Viewpoint UI callback %s failed", callback.__qualname__)

    def _start_resolution(self, effect: StartResolution) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error(
                "Viewpoint resolution %d not started: no running event loop",
                effect.cycle,
            )
            # Processed right after this dispatch, returning to Exploring
            self._queue.append(
                ResolutionFailed(cycle=effect.cycle, reason="no running event loop")
            )
            return
        task = loop.create_task(
            self._resolve(effect.cycle, effect.click),
            name=f"viewpoint-resolution-{effect.cycle}",
        )
        self._pending = (effect.cycle, task)

    def _cancel_resolution(self, cycle: int) -> None:
        if self._pending is None or self._pending[0] != cycle:
            return
        _, task = self._pending
        self._pending = None
        task.cancel()
        logger.info("Viewpoint resolution %d cancelled", cycle)

    async def _resolve(self, cycle: int, click: GeographicPoint) -> None:
        try:
            resolution = await self._resolver.resolve(
                click, self._landmarks, self._terrain_query, scratch=self._scratch
            )
        except ResolutionError as e:
            logger.info("Viewpoint resolution %d failed: %s", cycle, e)
            self._finish(cycle, ResolutionFailed(cycle=cycle, reason=str(e)))
            return
        except Exception:
            # Logged with traceback; the cycle fails like any other failure
            logger.exception("Viewpoint resolution %d crashed", cycle)
            self._finish(cycle, ResolutionFailed(cycle=cycle, reason="internal error"))
            return
        self._finish(cycle, ResolutionSucceeded(cycle=cycle, resolution=resolution))

    def _finish(self, cycle: int, event: ViewpointEvent) -> None:
        if self._pending is not None and self._pending[0] == cycle:
            self._pending = None
        self.send(event)

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------
    async def wait_idle(self) -> None:
        """Wait until no resolution is in flight."""
        while self._pending is not None:
            _, task = self._pending
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise

    def close(self) -> None:
        """Cancel any in-flight resolution. The state is left as is."""
        if self._pending is not None:
            self._cancel_resolution(self._pending[0])

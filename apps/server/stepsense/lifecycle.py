"""Permission negotiation and motion-stream subscription lifecycle.

Three trigger paths can lead to tracking: auto-start / immediate negotiation
from :meth:`TrackingLifecycle.initialize`, the one-shot gesture listener
(:meth:`TrackingLifecycle.on_user_gesture`) and manual retry
(:meth:`TrackingLifecycle.request_permission`).  They all converge on
``_start_tracking``, which is guarded by :meth:`TrackingContext.try_claim_start`
so the filter reset, step-count reset and subscription happen exactly once.

Permission state machine::

    idle    --request-->            pending --granted--> granted
    idle    --request-->            pending --other-->   denied
    idle    --no consent gate-->    granted
    pending --GestureRequiredError--> idle   (gesture listener armed)
    pending --other exception-->    denied
    denied  --manual retry-->       pending
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from .motion import MotionSample
from .motion_source import MotionSource, Subscription
from .permission import (
    GRANTED,
    MSG_CAPABILITY_MISSING,
    MSG_CAPABILITY_UNSUPPORTED,
    MSG_CONSENT_DENIED,
    MSG_CONSENT_REQUEST_FAILED,
    Capabilities,
    ConsentGate,
    ErrorKind,
    GestureRequiredError,
    PermissionState,
)
from .step_detector import StepDetector
from .tracking_context import TrackingContext

LOGGER = logging.getLogger(__name__)


def wall_clock_ms() -> float:
    return time.time() * 1000.0


async def _reraise(exc: BaseException) -> str:
    raise exc


class TrackingLifecycle:
    def __init__(
        self,
        context: TrackingContext,
        detector: StepDetector,
        capabilities: Capabilities,
        *,
        motion_source: MotionSource | None = None,
        consent_gate: ConsentGate | None = None,
        clock: Callable[[], float] = wall_clock_ms,
    ):
        if capabilities.has_motion_api and motion_source is None:
            raise ValueError("motion_source is required when has_motion_api is true")
        if capabilities.has_consent_gate and consent_gate is None:
            raise ValueError("consent_gate is required when has_consent_gate is true")
        self.context = context
        self.detector = detector
        self.capabilities = capabilities
        self._motion_source = motion_source
        self._consent_gate = consent_gate
        self._clock = clock
        self._subscription: Subscription | None = None
        self._pending: asyncio.Task[PermissionState] | None = None
        self._stop_epoch = 0
        self._request_epoch = 0
        self._gesture_armed = False
        self._initialized = False
        self._closed = False

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def tracking_active(self) -> bool:
        return self.context.tracking_active

    @property
    def permission_state(self) -> PermissionState:
        return self.context.permission_state

    @property
    def step_count(self) -> int:
        return self.context.step_count

    @property
    def error(self) -> str | None:
        return self.context.error

    @property
    def gesture_armed(self) -> bool:
        return self._gesture_armed

    @property
    def request_in_flight(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def snapshot(self) -> dict[str, Any]:
        out = self.context.snapshot()
        out["gesture_armed"] = self._gesture_armed
        out["request_in_flight"] = self.request_in_flight
        return out

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    async def initialize(self) -> PermissionState:
        """Auto-start or negotiate immediately; later calls are no-ops."""
        if self._initialized or self._closed:
            return self.context.permission_state
        self._initialized = True
        if not self.capabilities.has_motion_api:
            self.context.set_error(ErrorKind.capability_missing, MSG_CAPABILITY_MISSING)
            LOGGER.warning("Motion capability missing; tracking unavailable")
            return self.context.permission_state
        if not self.capabilities.has_consent_gate:
            self._grant()
            return self.context.permission_state
        if self.context.permission_state is PermissionState.granted:
            self._start_tracking()
            return self.context.permission_state
        return await self._issue_request()

    def on_user_gesture(self) -> asyncio.Task[PermissionState] | None:
        """Deliver a user touch/click to the one-shot retry listener.

        The consent gate is invoked before this method returns, i.e. within
        the gesture's own call stack.  Returns the request task, or ``None``
        when no listener was armed.
        """
        if not self._gesture_armed:
            return None
        self._gesture_armed = False
        if self._closed or self.context.permission_state is not PermissionState.idle:
            return None
        LOGGER.debug("User gesture received; retrying motion permission request")
        return self._issue_request()

    def begin_request(self) -> asyncio.Task[PermissionState] | None:
        """Synchronous half of a manual retry.

        Returns the in-flight request task (joining one that is already
        pending), or ``None`` when the outcome was decided without asking
        the consent gate.
        """
        if self._closed:
            return None
        if not self.capabilities.has_motion_api:
            self.context.set_error(ErrorKind.capability_missing, MSG_CAPABILITY_UNSUPPORTED)
            return None
        if not self.capabilities.has_consent_gate:
            self._grant()
            return None
        if self.context.permission_state is PermissionState.granted:
            self._start_tracking()
            return None
        self.context.clear_error()
        return self._issue_request()

    async def request_permission(self) -> PermissionState:
        """Manual retry, available whenever permission is not yet granted."""
        task = self.begin_request()
        if task is not None:
            return await task
        return self.context.permission_state

    async def start(self) -> PermissionState:
        """Manual entry point; idempotent once tracking is active."""
        if self.context.tracking_active:
            return self.context.permission_state
        return await self.request_permission()

    def stop(self) -> None:
        """Unsubscribe and mark tracking inactive; the step count is kept.

        A request still in flight may record a grant but will not restart
        tracking; a later trigger does.
        """
        was_active = self.context.tracking_active
        self._stop_epoch += 1
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self.context.tracking_active = False
        self.context.release_start()
        if was_active:
            LOGGER.info("Motion tracking stopped at step_count=%d", self.context.step_count)

    def close(self) -> None:
        """Tear down for good; late permission resolutions are discarded."""
        if self._closed:
            return
        self._closed = True
        self._gesture_armed = False
        self.context.generation += 1
        self.stop()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _issue_request(self) -> asyncio.Task[PermissionState]:
        self._request_epoch = self._stop_epoch
        if self._pending is not None and not self._pending.done():
            return self._pending
        assert self._consent_gate is not None
        self._gesture_armed = False
        self.context.permission_state = PermissionState.pending
        generation = self.context.generation
        LOGGER.info("Requesting motion permission")
        try:
            call: Awaitable[str] = self._consent_gate.request()
        except Exception as exc:
            call = _reraise(exc)
        task = asyncio.ensure_future(self._resolve(call, generation))
        self._pending = task
        return task

    async def _resolve(self, call: Awaitable[str], generation: int) -> PermissionState:
        try:
            status = await call
        except GestureRequiredError:
            if self._is_stale(generation):
                return self.context.permission_state
            self.context.permission_state = PermissionState.idle
            self._gesture_armed = True
            LOGGER.info("Motion permission needs a user gesture; waiting for first interaction")
            return self.context.permission_state
        except Exception:
            if self._is_stale(generation):
                return self.context.permission_state
            LOGGER.warning("Motion permission request failed", exc_info=True)
            self.context.permission_state = PermissionState.denied
            self.context.set_error(ErrorKind.consent_request_failed, MSG_CONSENT_REQUEST_FAILED)
            return self.context.permission_state

        if self._is_stale(generation):
            return self.context.permission_state
        if status == GRANTED:
            self._grant(start=self._request_epoch == self._stop_epoch)
        else:
            self.context.permission_state = PermissionState.denied
            self.context.set_error(ErrorKind.consent_denied, MSG_CONSENT_DENIED)
            LOGGER.info("Motion permission not granted (status=%r)", status)
        return self.context.permission_state

    def _is_stale(self, generation: int) -> bool:
        if self._closed or generation != self.context.generation:
            LOGGER.debug("Discarding stale motion permission resolution")
            return True
        return False

    def _grant(self, *, start: bool = True) -> None:
        if self.context.permission_state is not PermissionState.granted:
            LOGGER.info("Motion permission granted")
        self.context.permission_state = PermissionState.granted
        self.context.clear_error()
        if start:
            self._start_tracking()
        else:
            LOGGER.info("Motion tracking was stopped while the request was pending; not starting")

    def _start_tracking(self) -> bool:
        if self._closed or not self.context.try_claim_start():
            return False
        assert self._motion_source is not None
        self.detector.reset()
        self.context.step_count = self.context.start_steps
        try:
            self._subscription = self._motion_source.subscribe(self._on_sample)
        except Exception:
            self.context.release_start()
            raise
        self.context.tracking_active = True
        LOGGER.info("Motion tracking started")
        return True

    def _on_sample(self, sample: MotionSample) -> None:
        if not self.context.tracking_active:
            return
        self.detector.process(sample, self._clock())

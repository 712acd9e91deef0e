"""Tracking lifecycle controls: start/retry, stop, gesture and consent answers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException

from ..api_models import (
    ConsentAnswerRequest,
    ConsentAnswerResponse,
    GestureResponse,
    TrackingStatusResponse,
)

if TYPE_CHECKING:
    from ..app import RuntimeState

LOGGER = logging.getLogger(__name__)


def create_tracking_routes(state: RuntimeState) -> APIRouter:
    router = APIRouter()

    @router.post("/api/tracking/start", response_model=TrackingStatusResponse)
    async def start_tracking() -> TrackingStatusResponse:
        if not state.context.tracking_active:
            state.track_task(state.lifecycle.begin_request())
        return state.status_payload()

    @router.post("/api/tracking/stop", response_model=TrackingStatusResponse)
    async def stop_tracking() -> TrackingStatusResponse:
        state.lifecycle.stop()
        return state.status_payload()

    @router.post("/api/tracking/gesture", response_model=GestureResponse)
    async def user_gesture() -> GestureResponse:
        task = state.lifecycle.on_user_gesture()
        state.track_task(task)
        return {
            "retried": task is not None,
            "permission_state": state.context.permission_state.value,
        }

    @router.post("/api/tracking/consent", response_model=ConsentAnswerResponse)
    async def consent_answer(req: ConsentAnswerRequest) -> ConsentAnswerResponse:
        if state.consent_gate is None:
            raise HTTPException(status_code=409, detail="No consent gate is configured")
        accepted = state.consent_gate.resolve(req.status)
        LOGGER.debug("Consent answer %r accepted=%s", req.status, accepted)
        return {"accepted": accepted}

    return router

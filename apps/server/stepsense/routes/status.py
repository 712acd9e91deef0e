"""Read-only status endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter

from ..api_models import ChatContextResponse, HealthResponse, TrackingStatusResponse

if TYPE_CHECKING:
    from ..app import RuntimeState


def create_status_routes(state: RuntimeState) -> APIRouter:
    router = APIRouter()

    @router.get("/api/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return {"status": "ok", "tracking_active": state.context.tracking_active}

    @router.get("/api/status", response_model=TrackingStatusResponse)
    async def status() -> TrackingStatusResponse:
        return state.status_payload()

    @router.get("/api/chat/context", response_model=ChatContextResponse)
    async def chat_context() -> ChatContextResponse:
        return state.chat_context()

    return router

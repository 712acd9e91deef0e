"""WebSocket endpoint for device motion ingestion."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..motion import MotionSample

if TYPE_CHECKING:
    from ..app import RuntimeState

LOGGER = logging.getLogger(__name__)


def create_websocket_routes(state: RuntimeState) -> APIRouter:
    router = APIRouter()

    @router.websocket("/ws/motion")
    async def motion_endpoint(ws: WebSocket) -> None:
        await ws.accept()
        LOGGER.info("Motion stream connected")
        try:
            while True:
                message = await ws.receive_text()
                try:
                    payload = json.loads(message)
                except json.JSONDecodeError:
                    LOGGER.debug("Ignoring malformed motion frame (not valid JSON)")
                    continue
                if not isinstance(payload, dict):
                    LOGGER.debug("Ignoring motion frame that is not a JSON object")
                    continue
                state.motion_source.publish(MotionSample.from_payload(payload))
        except WebSocketDisconnect:
            LOGGER.info("Motion stream disconnected")
        except Exception:
            LOGGER.warning("Motion WebSocket handler error", exc_info=True)

    return router

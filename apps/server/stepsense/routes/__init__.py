"""FastAPI routers, one module per concern."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter

from .status import create_status_routes
from .tracking import create_tracking_routes
from .websocket import create_websocket_routes

if TYPE_CHECKING:
    from ..app import RuntimeState


def create_router(state: RuntimeState) -> APIRouter:
    """Merge the route groups into one flat router.

    Routes are copied rather than nested with ``include_router`` so that
    ``router.routes`` lists every endpoint with its path.
    """
    router = APIRouter()
    for group in (
        create_status_routes(state),
        create_tracking_routes(state),
        create_websocket_routes(state),
    ):
        router.routes.extend(group.routes)
    return router

"""Pydantic request/response models for the StepSense HTTP API.

Separated from the route modules to keep routing logic distinct from data
contracts.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class ConsentAnswerRequest(BaseModel):
    status: str = Field(min_length=1, max_length=32)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    tracking_active: bool


class TrackingStatusResponse(BaseModel):
    step_count: int
    permission_state: str
    tracking_active: bool
    error: str | None = None
    error_kind: str | None = None
    gesture_armed: bool
    request_in_flight: bool
    goal_steps: int
    progress_pct: float
    avatar_state: str
    formatted_steps: str
    formatted_goal: str


class GestureResponse(BaseModel):
    retried: bool
    permission_state: str


class ConsentAnswerResponse(BaseModel):
    accepted: bool


class ChatContextResponse(BaseModel):
    stepCount: int
    goal: int
    avatarState: str

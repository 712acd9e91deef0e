"""Step-derived progress values for presentation and the chat assistant."""

from __future__ import annotations

from typing import Any, Literal

from .constants import FIT_GOAL_MULTIPLIER, MAX_PROGRESS_PCT

AvatarState = Literal["fat", "normal", "fit"]


def avatar_state(steps: int, goal: int) -> AvatarState:
    """Category label: below goal, up to twice the goal, or beyond."""
    if steps < goal:
        return "fat"
    if steps < goal * FIT_GOAL_MULTIPLIER:
        return "normal"
    return "fit"


def progress_pct(steps: int, goal: int) -> float:
    if goal <= 0:
        return MAX_PROGRESS_PCT
    return min(steps / goal * 100.0, MAX_PROGRESS_PCT)


def format_steps(steps: int) -> str:
    return f"{steps:,}"


def chat_context(steps: int, goal: int) -> dict[str, Any]:
    """Context fields the chat collaborator sends alongside its messages."""
    return {
        "stepCount": steps,
        "goal": goal,
        "avatarState": avatar_state(steps, goal),
    }


def progress_payload(steps: int, goal: int) -> dict[str, Any]:
    return {
        "goal_steps": goal,
        "progress_pct": round(progress_pct(steps, goal), 2),
        "avatar_state": avatar_state(steps, goal),
        "formatted_steps": format_steps(steps),
        "formatted_goal": format_steps(goal),
    }

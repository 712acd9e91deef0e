"""Explicit shared state for one tracking session owner."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .permission import ErrorKind, PermissionState
from .step_detector import FilterState


@dataclass(slots=True)
class TrackingContext:
    """Everything the detector and the lifecycle share.

    Owned by the application shell and handed to both components; nothing
    here is module-global.
    """

    start_steps: int = 0
    filter_state: FilterState = field(default_factory=FilterState)
    step_count: int = 0
    permission_state: PermissionState = PermissionState.idle
    tracking_active: bool = False
    has_started: bool = False
    error: str | None = None
    error_kind: ErrorKind | None = None
    generation: int = 0

    def try_claim_start(self) -> bool:
        """Check-and-set the start guard; only the first caller gets ``True``."""
        if self.has_started or self.tracking_active:
            return False
        self.has_started = True
        return True

    def release_start(self) -> None:
        self.has_started = False

    def set_error(self, kind: ErrorKind, message: str) -> None:
        self.error_kind = kind
        self.error = message

    def clear_error(self) -> None:
        self.error_kind = None
        self.error = None

    def snapshot(self) -> dict[str, Any]:
        """Return a JSON-serializable view without side effects."""
        return {
            "step_count": self.step_count,
            "permission_state": self.permission_state.value,
            "tracking_active": self.tracking_active,
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind is not None else None,
        }

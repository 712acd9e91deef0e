"""Permission states, platform capability descriptor and error taxonomy."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Protocol

GRANTED: str = "granted"
"""The only consent-gate result that counts as permission granted."""

MSG_CAPABILITY_MISSING = "Device Motion API is not available in this browser."
MSG_CAPABILITY_UNSUPPORTED = "Device Motion API is not supported in this context."
MSG_CONSENT_DENIED = "Motion access was not granted."
MSG_CONSENT_REQUEST_FAILED = "Motion permission request failed."


class PermissionState(enum.StrEnum):
    idle = "idle"
    pending = "pending"
    granted = "granted"
    denied = "denied"


class ErrorKind(enum.StrEnum):
    capability_missing = "capability_missing"
    consent_denied = "consent_denied"
    consent_request_failed = "consent_request_failed"


class GestureRequiredError(Exception):
    """Raised by a consent gate that refuses to prompt outside a user gesture.

    Not a user decision: the lifecycle answers it by arming the gesture
    listener instead of surfacing an error.
    """


@dataclass(frozen=True, slots=True)
class Capabilities:
    """Platform features, resolved once at startup."""

    has_motion_api: bool
    has_consent_gate: bool = False


class ConsentGate(Protocol):
    async def request(self) -> str:
        """Return ``"granted"`` or any other string for a refusal."""
        ...

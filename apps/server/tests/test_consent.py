from __future__ import annotations

import asyncio

import pytest

from stepsense.consent import ConsentRequestError, DeviceConsentGate
from stepsense.lifecycle import TrackingLifecycle
from stepsense.motion_source import BroadcastMotionSource
from stepsense.permission import (
    MSG_CONSENT_REQUEST_FAILED,
    Capabilities,
    GestureRequiredError,
    PermissionState,
)
from stepsense.step_detector import StepDetector
from stepsense.tracking_context import TrackingContext


async def _started_request(gate: DeviceConsentGate) -> asyncio.Task[str]:
    task = asyncio.ensure_future(gate.request())
    await asyncio.sleep(0)
    assert gate.awaiting is True
    return task


@pytest.mark.asyncio
async def test_device_answer_is_returned() -> None:
    gate = DeviceConsentGate()
    task = await _started_request(gate)
    assert gate.resolve("granted") is True
    assert await task == "granted"
    assert gate.awaiting is False
    assert gate.request_count == 1


@pytest.mark.asyncio
async def test_gesture_required_answer_raises() -> None:
    gate = DeviceConsentGate()
    task = await _started_request(gate)
    gate.resolve("gesture_required")
    with pytest.raises(GestureRequiredError):
        await task


@pytest.mark.asyncio
async def test_error_answer_raises_request_error() -> None:
    gate = DeviceConsentGate()
    task = await _started_request(gate)
    gate.resolve("error")
    with pytest.raises(ConsentRequestError):
        await task


def test_answer_without_outstanding_request_is_ignored() -> None:
    assert DeviceConsentGate().resolve("granted") is False


def test_non_positive_timeout_means_wait_forever() -> None:
    assert DeviceConsentGate(timeout_s=0).timeout_s is None


@pytest.mark.asyncio
async def test_unanswered_request_times_out_as_request_failure() -> None:
    context = TrackingContext()
    gate = DeviceConsentGate(timeout_s=0.01)
    lifecycle = TrackingLifecycle(
        context,
        StepDetector(context),
        Capabilities(has_motion_api=True, has_consent_gate=True),
        motion_source=BroadcastMotionSource(),
        consent_gate=gate,
    )
    assert await lifecycle.initialize() is PermissionState.denied
    assert lifecycle.error == MSG_CONSENT_REQUEST_FAILED

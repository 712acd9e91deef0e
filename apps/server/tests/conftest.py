"""Shared test helpers for the stepsense test suite."""

from __future__ import annotations

import asyncio
import os
import time

# Tests build their own apps; skip the module-level instance in stepsense.app.
os.environ.setdefault("STEPSENSE_DISABLE_AUTO_APP", "1")


async def async_wait_until(predicate, timeout_s: float = 2.0, step_s: float = 0.01) -> bool:
    """Poll *predicate*, yielding to the event loop between polls."""
    deadline = time.monotonic() + timeout_s
    while time.monotonic() < deadline:
        if predicate():
            return True
        await asyncio.sleep(step_s)
    return False

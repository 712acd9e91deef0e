"""Consent gate answered by the connected device.

The browser on the phone owns the real permission prompt.  When the
lifecycle asks for consent, the request parks on a future until the device
reports the outcome through ``POST /api/tracking/consent``.
"""

from __future__ import annotations

import asyncio
import logging

from .permission import GestureRequiredError

LOGGER = logging.getLogger(__name__)

GESTURE_REQUIRED_STATUS = "gesture_required"
ERROR_STATUS = "error"


class ConsentRequestError(RuntimeError):
    """The device reported that its permission API itself failed."""


class DeviceConsentGate:
    def __init__(self, timeout_s: float | None = None):
        self.timeout_s = timeout_s if timeout_s and timeout_s > 0 else None
        self._waiter: asyncio.Future[str] | None = None
        self.request_count = 0

    @property
    def awaiting(self) -> bool:
        return self._waiter is not None and not self._waiter.done()

    async def request(self) -> str:
        loop = asyncio.get_running_loop()
        waiter: asyncio.Future[str] = loop.create_future()
        self._waiter = waiter
        self.request_count += 1
        LOGGER.debug("Waiting for device consent answer (timeout=%s)", self.timeout_s)
        try:
            return await asyncio.wait_for(waiter, timeout=self.timeout_s)
        finally:
            if self._waiter is waiter:
                self._waiter = None

    def resolve(self, status: str) -> bool:
        """Answer the outstanding request; ``False`` when nothing is waiting."""
        waiter = self._waiter
        if waiter is None or waiter.done():
            LOGGER.debug("Ignoring consent answer %r with no request outstanding", status)
            return False
        if status == GESTURE_REQUIRED_STATUS:
            waiter.set_exception(GestureRequiredError())
        elif status == ERROR_STATUS:
            waiter.set_exception(ConsentRequestError("device permission API failed"))
        else:
            waiter.set_result(status)
        return True

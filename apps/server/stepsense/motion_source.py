from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Protocol

from .motion import MotionSample

LOGGER = logging.getLogger(__name__)

MotionCallback = Callable[[MotionSample], None]

_CALLBACK_ERROR_LOG_INTERVAL_S: float = 10.0
"""Minimum interval between logged subscriber-error warnings to avoid log spam."""


class Subscription:
    """Handle returned by :meth:`MotionSource.subscribe`; unsubscribing is idempotent."""

    def __init__(self, release: Callable[[], None]):
        self._release: Callable[[], None] | None = release

    @property
    def active(self) -> bool:
        return self._release is not None

    def unsubscribe(self) -> None:
        release, self._release = self._release, None
        if release is not None:
            release()


class MotionSource(Protocol):
    def subscribe(self, callback: MotionCallback) -> Subscription: ...


class BroadcastMotionSource:
    """In-process fan-out of motion samples to subscribed callbacks.

    Samples published with no subscriber are dropped, which is how the
    stream behaves while tracking is inactive.
    """

    def __init__(self) -> None:
        self._subscribers: dict[int, MotionCallback] = {}
        self._next_token = 0
        self._last_error_log_ts = 0.0
        self.published_count = 0
        self.dropped_count = 0

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: MotionCallback) -> Subscription:
        token = self._next_token
        self._next_token += 1
        self._subscribers[token] = callback
        LOGGER.debug("Motion subscriber %d added (total=%d)", token, len(self._subscribers))

        def _release() -> None:
            self._subscribers.pop(token, None)
            LOGGER.debug(
                "Motion subscriber %d removed (total=%d)", token, len(self._subscribers)
            )

        return Subscription(_release)

    def publish(self, sample: MotionSample) -> int:
        """Deliver *sample* to every subscriber; return how many received it."""
        self.published_count += 1
        subscribers = list(self._subscribers.values())
        if not subscribers:
            self.dropped_count += 1
            return 0
        delivered = 0
        for callback in subscribers:
            try:
                callback(sample)
                delivered += 1
            except Exception:
                now = time.monotonic()
                if (now - self._last_error_log_ts) >= _CALLBACK_ERROR_LOG_INTERVAL_S:
                    self._last_error_log_ts = now
                    LOGGER.warning("Motion subscriber raised; sample skipped.", exc_info=True)
        return delivered

"""Low-pass filter and debounced step counter.

The detector keeps a single-pole exponential estimate of the acceleration
magnitude.  A step is a sample whose magnitude deviates from that estimate by
more than ``threshold``, provided the refractory interval since the previous
step has strictly elapsed.  The filter update happens on every usable sample,
step or not, so the baseline keeps tracking slow drift such as the device
being turned over between steps.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .constants import (
    GRAVITY_MPS2,
    MIN_STEP_INTERVAL_MS,
    NO_STEP_YET_MS,
    SMOOTHING_ALPHA,
    STEP_THRESHOLD_MPS2,
)

if TYPE_CHECKING:
    from .motion import MotionSample
    from .tracking_context import TrackingContext

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class FilterState:
    filtered_magnitude: float = GRAVITY_MPS2
    last_step_at_ms: float = NO_STEP_YET_MS

    def reset(self, gravity: float = GRAVITY_MPS2) -> None:
        self.filtered_magnitude = gravity
        self.last_step_at_ms = NO_STEP_YET_MS


@dataclass(frozen=True, slots=True)
class StepDetectorSettings:
    smoothing: float = SMOOTHING_ALPHA
    threshold: float = STEP_THRESHOLD_MPS2
    min_step_interval_ms: float = MIN_STEP_INTERVAL_MS
    gravity: float = GRAVITY_MPS2
    step_increment: int = 1


class StepDetector:
    """Turns motion samples into step increments on a :class:`TrackingContext`."""

    def __init__(self, context: TrackingContext, settings: StepDetectorSettings | None = None):
        self.context = context
        self.settings = settings or StepDetectorSettings()
        self.last_delta: float | None = None

    def reset(self) -> None:
        """Re-seed the filter as if tracking had just started cold."""
        self.context.filter_state.reset(self.settings.gravity)
        self.last_delta = None

    def process(self, sample: MotionSample, now_ms: float) -> bool:
        """Feed one sample; return ``True`` when it was counted as a step.

        Never raises for sample content: samples without acceleration data or
        with a non-finite magnitude are dropped without touching the filter.
        """
        magnitude = sample.magnitude()
        if magnitude is None:
            return False

        state = self.context.filter_state
        alpha = self.settings.smoothing
        filtered = alpha * state.filtered_magnitude + (1.0 - alpha) * magnitude
        if not math.isfinite(filtered):
            return False
        state.filtered_magnitude = filtered

        delta = abs(magnitude - filtered)
        self.last_delta = delta
        if delta <= self.settings.threshold:
            return False
        if not math.isfinite(now_ms):
            return False
        if not (now_ms - state.last_step_at_ms > self.settings.min_step_interval_ms):
            return False

        state.last_step_at_ms = now_ms
        self.context.step_count += self.settings.step_increment
        LOGGER.debug(
            "Step detected delta=%.3f filtered=%.3f count=%d",
            delta,
            filtered,
            self.context.step_count,
        )
        return True

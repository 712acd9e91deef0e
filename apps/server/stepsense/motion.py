"""Motion sample types and payload parsing.

Samples arrive as browser-style ``devicemotion`` payloads.  Parsing is
lenient: anything that is not a finite number is treated as an absent axis,
and a sample with no usable axis at all yields no magnitude.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

_INCLUDING_GRAVITY_KEYS: tuple[str, ...] = (
    "accelerationIncludingGravity",
    "acceleration_including_gravity",
)
_WITHOUT_GRAVITY_KEYS: tuple[str, ...] = ("acceleration",)
_AXES: tuple[str, ...] = ("x", "y", "z")


def _finite_or_none(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    out = float(value)
    if not math.isfinite(out):
        return None
    return out


@dataclass(frozen=True, slots=True)
class AxisReading:
    x: float | None = None
    y: float | None = None
    z: float | None = None

    @classmethod
    def from_mapping(cls, payload: object) -> AxisReading | None:
        if not isinstance(payload, dict):
            return None
        return cls(*(_finite_or_none(payload.get(axis)) for axis in _AXES))

    @property
    def is_empty(self) -> bool:
        return self.x is None and self.y is None and self.z is None

    def magnitude(self) -> float:
        """Euclidean norm, with missing components counted as zero."""
        x = self.x or 0.0
        y = self.y or 0.0
        z = self.z or 0.0
        return math.sqrt(x * x + y * y + z * z)


@dataclass(frozen=True, slots=True)
class MotionSample:
    including_gravity: AxisReading | None = None
    without_gravity: AxisReading | None = None
    timestamp_ms: float | None = None

    @classmethod
    def from_xyz(
        cls,
        x: float,
        y: float,
        z: float,
        timestamp_ms: float | None = None,
    ) -> MotionSample:
        return cls(including_gravity=AxisReading(x, y, z), timestamp_ms=timestamp_ms)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> MotionSample:
        """Build a sample from a decoded JSON payload.

        Accepts ``accelerationIncludingGravity`` / ``acceleration`` objects
        (camelCase or snake_case) or a flat ``{"x", "y", "z"}`` object, which
        is treated as gravity-inclusive.
        """
        including = None
        for key in _INCLUDING_GRAVITY_KEYS:
            if key in payload:
                including = AxisReading.from_mapping(payload[key])
                break
        without = None
        for key in _WITHOUT_GRAVITY_KEYS:
            if key in payload:
                without = AxisReading.from_mapping(payload[key])
                break
        if including is None and without is None and any(axis in payload for axis in _AXES):
            including = AxisReading.from_mapping(payload)
        timestamp = _finite_or_none(payload.get("timestamp_ms"))
        return cls(including_gravity=including, without_gravity=without, timestamp_ms=timestamp)

    def reading(self) -> AxisReading | None:
        """Return the preferred reading: gravity-inclusive first.

        An empty gravity-inclusive reading falls back to the gravity-exclusive
        one; ``None`` means the sample carries no acceleration data.
        """
        for candidate in (self.including_gravity, self.without_gravity):
            if candidate is not None and not candidate.is_empty:
                return candidate
        return None

    def magnitude(self) -> float | None:
        reading = self.reading()
        if reading is None:
            return None
        try:
            value = reading.magnitude()
        except OverflowError:
            return None
        return value if math.isfinite(value) else None

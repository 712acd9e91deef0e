"""Synthetic walking accelerometer signal.

Each footstep is a Gaussian heel-strike impulse on the vertical axis, on top
of gravity, a slow body sway and white sensor noise.  Used by the replay CLI
and the test-suite to exercise the detector with a known number of steps.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .constants import GRAVITY_MPS2
from .motion import MotionSample

_IMPACT_SPAN_SIGMAS: float = 3.0
"""Impulses closer than this many widths to the end of the window are not emitted."""


@dataclass(frozen=True, slots=True)
class GaitProfile:
    cadence_hz: float = 1.8
    rate_hz: float = 50.0
    impact_mps2: float = 4.0
    impact_width_ms: float = 30.0
    sway_mps2: float = 0.3
    noise_mps2: float = 0.05
    gravity: float = GRAVITY_MPS2

    def __post_init__(self) -> None:
        if self.cadence_hz <= 0 or self.rate_hz <= 0:
            raise ValueError("cadence_hz and rate_hz must be positive")


def impact_times_s(duration_s: float, profile: GaitProfile) -> np.ndarray:
    """Heel-strike instants, half a stride in from the start of the window."""
    period = 1.0 / profile.cadence_hz
    margin = _IMPACT_SPAN_SIGMAS * profile.impact_width_ms / 1000.0
    times = np.arange(period / 2.0, max(0.0, duration_s - margin), period)
    return times[times + margin <= duration_s]


def expected_steps(duration_s: float, profile: GaitProfile) -> int:
    """Number of heel strikes in the window.

    Only meaningful while the stride period exceeds the detector's refractory
    interval (cadence below 2.5 Hz with the default 400 ms).
    """
    return int(impact_times_s(duration_s, profile).size)


def synthesize_axes(
    duration_s: float,
    profile: GaitProfile | None = None,
    *,
    seed: int = 0,
) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(t_s, xyz)`` where ``xyz`` has shape ``(n, 3)``."""
    profile = profile or GaitProfile()
    n = max(0, int(duration_s * profile.rate_hz))
    t = np.arange(n, dtype=np.float64) / profile.rate_hz
    rng = np.random.default_rng(seed)

    width_s = profile.impact_width_ms / 1000.0
    vertical = np.full(n, profile.gravity, dtype=np.float64)
    for t_impact in impact_times_s(duration_s, profile):
        vertical += profile.impact_mps2 * np.exp(-((t - t_impact) ** 2) / (2.0 * width_s**2))
    vertical += profile.sway_mps2 * np.sin(np.pi * profile.cadence_hz * t)

    xyz = np.empty((n, 3), dtype=np.float64)
    xyz[:, 0] = rng.normal(0.0, profile.noise_mps2, n)
    xyz[:, 1] = rng.normal(0.0, profile.noise_mps2, n)
    xyz[:, 2] = vertical + rng.normal(0.0, profile.noise_mps2, n)
    return t, xyz


def synthesize_gait(
    duration_s: float,
    profile: GaitProfile | None = None,
    *,
    seed: int = 0,
    start_ms: float = 1_000_000.0,
) -> list[MotionSample]:
    t, xyz = synthesize_axes(duration_s, profile, seed=seed)
    return [
        MotionSample.from_xyz(float(x), float(y), float(z), timestamp_ms=start_ms + ts * 1000.0)
        for ts, (x, y, z) in zip(t, xyz, strict=True)
    ]

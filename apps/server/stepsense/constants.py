"""Shared physical and step-detection constants, single source of truth.

Every numeric literal that appears in more than one module should live here
so that a change only needs to happen in one place.
"""

from __future__ import annotations

from typing import Final

# ---------------------------------------------------------------------------
# Physics
# ---------------------------------------------------------------------------
GRAVITY_MPS2: Final[float] = 9.81
"""Standard gravity; seed value for the smoothed magnitude estimate."""

# ---------------------------------------------------------------------------
# Step detection
# ---------------------------------------------------------------------------
SMOOTHING_ALPHA: Final[float] = 0.8
"""Weight retained from the previous filtered magnitude (EMA smoothing)."""

STEP_THRESHOLD_MPS2: Final[float] = 1.1
"""Deviation from the smoothed baseline that must be exceeded for a step."""

MIN_STEP_INTERVAL_MS: Final[float] = 400.0
"""Refractory interval; one physical footstep oscillates across the
threshold several times within this window."""

NO_STEP_YET_MS: Final[float] = 0.0
"""Sentinel for ``last_step_at_ms`` meaning no step has been accepted."""

# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------
DEFAULT_GOAL_STEPS: Final[int] = 10_000
MAX_PROGRESS_PCT: Final[float] = 200.0
"""Progress is reported up to twice the goal (the "fit" band)."""

FIT_GOAL_MULTIPLIER: Final[int] = 2

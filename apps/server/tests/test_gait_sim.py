from __future__ import annotations

import numpy as np
import pytest

from stepsense.gait_sim import GaitProfile, expected_steps, synthesize_axes, synthesize_gait
from stepsense.step_detector import StepDetector
from stepsense.tracking_context import TrackingContext


def _count_steps(samples) -> int:
    detector = StepDetector(TrackingContext())
    for sample in samples:
        detector.process(sample, sample.timestamp_ms)
    return detector.context.step_count


def test_axes_shape_and_gravity_baseline() -> None:
    t, xyz = synthesize_axes(4.0, GaitProfile(rate_hz=50.0), seed=1)
    assert t.shape == (200,)
    assert xyz.shape == (200, 3)
    assert np.median(xyz[:, 2]) == pytest.approx(9.81, abs=0.5)


def test_same_seed_is_deterministic() -> None:
    _, a = synthesize_axes(2.0, seed=5)
    _, b = synthesize_axes(2.0, seed=5)
    np.testing.assert_array_equal(a, b)


def test_expected_steps_counts_heel_strikes_in_window() -> None:
    assert expected_steps(20.0, GaitProfile(cadence_hz=1.8)) == 36
    assert expected_steps(0.1, GaitProfile()) == 0


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_detector_counts_every_synthetic_step(seed: int) -> None:
    profile = GaitProfile(cadence_hz=1.8)
    samples = synthesize_gait(20.0, profile, seed=seed)
    assert _count_steps(samples) == expected_steps(20.0, profile)


def test_cadence_above_refractory_rate_is_undercounted() -> None:
    profile = GaitProfile(cadence_hz=3.0)
    samples = synthesize_gait(10.0, profile, seed=0)
    counted = _count_steps(samples)
    assert 0 < counted < expected_steps(10.0, profile)


def test_invalid_profile_is_rejected() -> None:
    with pytest.raises(ValueError):
        GaitProfile(rate_hz=0)

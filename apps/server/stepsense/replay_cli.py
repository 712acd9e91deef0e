from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from .config import AppConfig, load_config
from .gait_sim import GaitProfile, expected_steps, synthesize_gait
from .lifecycle import TrackingLifecycle
from .motion import MotionSample
from .motion_source import BroadcastMotionSource
from .permission import Capabilities
from .progress import progress_payload
from .step_detector import StepDetector
from .tracking_context import TrackingContext

LOGGER = logging.getLogger(__name__)

DEFAULT_RATE_HZ = 50.0
REPLAY_EPOCH_MS = 1_000_000.0
"""Timestamp given to the first untimestamped line; far from the no-step sentinel."""


def iter_jsonl_samples(path: Path, *, rate_hz: float = DEFAULT_RATE_HZ) -> Iterator[MotionSample]:
    """Yield samples from a JSONL file, one ``devicemotion`` payload per line.

    Lines without ``timestamp_ms`` are stamped at ``rate_hz`` from the
    previous sample, starting at ``REPLAY_EPOCH_MS``.
    """
    step_ms = 1000.0 / rate_hz
    last_ts: float | None = None
    with path.open("r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            if not line.strip():
                continue
            payload = json.loads(line)
            if not isinstance(payload, dict):
                raise ValueError(f"line {line_no}: expected a JSON object")
            sample = MotionSample.from_payload(payload)
            if sample.timestamp_ms is None:
                ts = REPLAY_EPOCH_MS if last_ts is None else last_ts + step_ms
                sample = MotionSample(
                    including_gravity=sample.including_gravity,
                    without_gravity=sample.without_gravity,
                    timestamp_ms=ts,
                )
            last_ts = sample.timestamp_ms
            yield sample


async def replay_samples(samples: Iterable[MotionSample], config: AppConfig) -> dict[str, Any]:
    """Run *samples* through a fresh tracking session and summarize it."""
    now_ms = 0.0
    context = TrackingContext(start_steps=config.tracking.start_steps)
    source = BroadcastMotionSource()
    lifecycle = TrackingLifecycle(
        context,
        StepDetector(context, config.tracking.detector_settings()),
        Capabilities(has_motion_api=True),
        motion_source=source,
        clock=lambda: now_ms,
    )
    await lifecycle.initialize()

    total = 0
    unusable = 0
    try:
        for sample in samples:
            total += 1
            if sample.magnitude() is None:
                unusable += 1
            now_ms = sample.timestamp_ms if sample.timestamp_ms is not None else now_ms
            source.publish(sample)
    finally:
        lifecycle.close()

    summary: dict[str, Any] = {
        "samples": total,
        "unusable_samples": unusable,
        "step_count": context.step_count,
    }
    summary.update(progress_payload(context.step_count, config.goal.goal_steps))
    return summary


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay motion samples through the step detector")
    parser.add_argument("input", type=Path, nargs="?", help="Input sample file (.jsonl)")
    parser.add_argument("--config", type=Path, default=None, help="Path to config YAML")
    parser.add_argument(
        "--simulate",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Replay a synthetic walk of this duration instead of a file",
    )
    parser.add_argument("--cadence-hz", type=float, default=1.8, help="Synthetic steps per second")
    parser.add_argument(
        "--rate-hz",
        type=float,
        default=DEFAULT_RATE_HZ,
        help="Sample rate for synthetic walks and for untimestamped file lines",
    )
    parser.add_argument("--seed", type=int, default=0, help="Noise seed for synthetic walks")
    parser.add_argument(
        "--summary-json",
        type=Path,
        default=None,
        help="Optional path to write the replay summary JSON",
    )
    parser.add_argument("--log-level", default=None, help="Override logging.level from config")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if args.rate_hz <= 0:
        print("Error: --rate-hz must be positive", file=sys.stderr)
        return 1
    try:
        config = load_config(args.config)
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    logging.basicConfig(
        level=(args.log_level or config.logging.level).upper(),
        format="%(levelname)s: %(message)s",
    )

    expected: int | None = None
    if args.simulate is not None:
        try:
            profile = GaitProfile(cadence_hz=args.cadence_hz, rate_hz=args.rate_hz)
        except ValueError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        samples: Iterable[MotionSample] = synthesize_gait(args.simulate, profile, seed=args.seed)
        expected = expected_steps(args.simulate, profile)
    elif args.input is None:
        print("Error: an input file or --simulate is required", file=sys.stderr)
        return 1
    elif not args.input.exists():
        print(f"Error: input file not found: {args.input}", file=sys.stderr)
        return 1
    else:
        samples = iter_jsonl_samples(args.input, rate_hz=args.rate_hz)

    try:
        summary = asyncio.run(replay_samples(samples, config))
    except json.JSONDecodeError as exc:
        print(f"Error: input file contains invalid JSON: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    if expected is not None:
        summary["expected_steps"] = expected

    print(
        f"steps: {summary['formatted_steps']} / {summary['formatted_goal']}"
        f" ({summary['progress_pct']}%, {summary['avatar_state']})"
    )
    if args.summary_json is not None:
        args.summary_json.parent.mkdir(parents=True, exist_ok=True)
        args.summary_json.write_text(json.dumps(summary, indent=2), encoding="utf-8")
        print(f"wrote summary: {args.summary_json}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

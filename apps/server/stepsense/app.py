"""Runtime orchestration for motion ingestion -> step detection -> API.

Boundary note for maintainers:
- Keep this module focused on wiring, not algorithm details.
- Filter and step math belongs in `step_detector.py`.
- Permission negotiation belongs in `lifecycle.py`.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import uvicorn
from fastapi import FastAPI

from .config import AppConfig, load_config
from .consent import DeviceConsentGate
from .lifecycle import TrackingLifecycle
from .motion_source import BroadcastMotionSource
from .permission import Capabilities, PermissionState
from .progress import chat_context, progress_payload
from .routes import create_router
from .step_detector import StepDetector
from .tracking_context import TrackingContext

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class RuntimeState:
    config: AppConfig
    context: TrackingContext
    motion_source: BroadcastMotionSource
    lifecycle: TrackingLifecycle
    consent_gate: DeviceConsentGate | None = None
    tasks: set[asyncio.Task] = field(default_factory=set)

    def track_task(self, task: asyncio.Task[PermissionState] | None) -> None:
        """Hold a reference to a background request until it finishes."""
        if task is None or task.done():
            return
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)

    def status_payload(self) -> dict[str, Any]:
        out = self.lifecycle.snapshot()
        out.update(progress_payload(self.context.step_count, self.config.goal.goal_steps))
        return out

    def chat_context(self) -> dict[str, Any]:
        return chat_context(self.context.step_count, self.config.goal.goal_steps)


def build_runtime(config: AppConfig) -> RuntimeState:
    tracking = config.tracking
    context = TrackingContext(start_steps=tracking.start_steps, step_count=tracking.start_steps)
    motion_source = BroadcastMotionSource()
    consent_gate = (
        DeviceConsentGate(timeout_s=tracking.consent_timeout_s)
        if tracking.has_consent_gate
        else None
    )
    lifecycle = TrackingLifecycle(
        context,
        StepDetector(context, tracking.detector_settings()),
        Capabilities(
            has_motion_api=tracking.has_motion_api,
            has_consent_gate=consent_gate is not None,
        ),
        motion_source=motion_source if tracking.has_motion_api else None,
        consent_gate=consent_gate,
    )
    return RuntimeState(
        config=config,
        context=context,
        motion_source=motion_source,
        lifecycle=lifecycle,
        consent_gate=consent_gate,
    )


def create_app(config_path: Path | None = None) -> FastAPI:
    config = load_config(config_path)
    runtime = build_runtime(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Initialization may park on the device's consent answer, so it runs
        # in the background rather than blocking startup.
        runtime.track_task(asyncio.ensure_future(runtime.lifecycle.initialize()))
        try:
            yield
        finally:
            runtime.lifecycle.close()
            for task in list(runtime.tasks):
                task.cancel()
            if runtime.tasks:
                await asyncio.gather(*runtime.tasks, return_exceptions=True)
            LOGGER.info("Shutdown complete at step_count=%d", runtime.context.step_count)

    app = FastAPI(title="StepSense", lifespan=lifespan)
    app.state.runtime = runtime
    app.include_router(create_router(runtime))
    return app


app: FastAPI | None = (
    create_app()
    if __name__ != "__main__" and os.getenv("STEPSENSE_DISABLE_AUTO_APP", "0") != "1"
    else None
)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run StepSense server")
    parser.add_argument("--config", type=Path, default=None, help="Path to config YAML")
    args = parser.parse_args()

    runtime_app = create_app(config_path=args.config)
    runtime: RuntimeState = runtime_app.state.runtime
    logging.basicConfig(
        level=runtime.config.logging.level,
        format="%(levelname)s: %(message)s",
    )
    uvicorn.run(
        runtime_app,
        host=runtime.config.server.host,
        port=runtime.config.server.port,
        log_level=runtime.config.logging.level.lower(),
    )


if __name__ == "__main__":
    main()

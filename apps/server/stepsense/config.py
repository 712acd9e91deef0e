from __future__ import annotations

import logging
import math
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .constants import (
    DEFAULT_GOAL_STEPS,
    GRAVITY_MPS2,
    MIN_STEP_INTERVAL_MS,
    SMOOTHING_ALPHA,
    STEP_THRESHOLD_MPS2,
)
from .step_detector import StepDetectorSettings

SERVER_DIR = Path(__file__).resolve().parents[1]
"""Root of the ``apps/server/`` package tree."""

LOGGER = logging.getLogger(__name__)

VALID_LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR")

_NON_NEGATIVE_TRACKING_FIELDS: tuple[str, ...] = (
    "step_threshold",
    "min_step_interval_ms",
    "gravity",
    "consent_timeout_s",
)

DEFAULT_CONFIG: dict[str, Any] = {
    "tracking": {
        "smoothing": SMOOTHING_ALPHA,
        "step_threshold": STEP_THRESHOLD_MPS2,
        "min_step_interval_ms": MIN_STEP_INTERVAL_MS,
        "gravity": GRAVITY_MPS2,
        "step_increment": 1,
        "start_steps": 0,
        "has_motion_api": True,
        "has_consent_gate": False,
        "consent_timeout_s": 60.0,
    },
    "goal": {"goal_steps": DEFAULT_GOAL_STEPS},
    "server": {"host": "0.0.0.0", "port": 8000},
    "logging": {"level": "INFO"},
}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@dataclass(slots=True)
class TrackingConfig:
    smoothing: float
    step_threshold: float
    min_step_interval_ms: float
    gravity: float
    step_increment: int
    start_steps: int
    has_motion_api: bool
    has_consent_gate: bool
    consent_timeout_s: float

    def __post_init__(self) -> None:
        defaults = DEFAULT_CONFIG["tracking"]
        if not math.isfinite(self.smoothing) or not (0.0 <= self.smoothing < 1.0):
            LOGGER.warning(
                "tracking.smoothing=%s outside [0, 1); reset to %s",
                self.smoothing,
                defaults["smoothing"],
            )
            object.__setattr__(self, "smoothing", float(defaults["smoothing"]))
        for field_name in _NON_NEGATIVE_TRACKING_FIELDS:
            val = getattr(self, field_name)
            if not math.isfinite(val) or val < 0:
                LOGGER.warning(
                    "tracking.%s=%s is not a non-negative number; reset to %s",
                    field_name,
                    val,
                    defaults[field_name],
                )
                object.__setattr__(self, field_name, float(defaults[field_name]))
        if self.step_increment < 1:
            LOGGER.warning(
                "tracking.step_increment=%s is below minimum 1; clamped to 1",
                self.step_increment,
            )
            object.__setattr__(self, "step_increment", 1)
        if self.start_steps < 0:
            LOGGER.warning(
                "tracking.start_steps=%s is negative; clamped to 0",
                self.start_steps,
            )
            object.__setattr__(self, "start_steps", 0)

    def detector_settings(self) -> StepDetectorSettings:
        return StepDetectorSettings(
            smoothing=self.smoothing,
            threshold=self.step_threshold,
            min_step_interval_ms=self.min_step_interval_ms,
            gravity=self.gravity,
            step_increment=self.step_increment,
        )


@dataclass(slots=True)
class GoalConfig:
    goal_steps: int

    def __post_init__(self) -> None:
        if self.goal_steps < 1:
            LOGGER.warning("goal.goal_steps=%s is below minimum 1; clamped to 1", self.goal_steps)
            object.__setattr__(self, "goal_steps", 1)


@dataclass(slots=True)
class ServerConfig:
    host: str
    port: int

    def __post_init__(self) -> None:
        if not isinstance(self.port, int) or not (1 <= self.port <= 65535):
            raise ValueError(f"ServerConfig.port must be 1-65535, got {self.port!r}")


@dataclass(slots=True)
class LoggingConfig:
    level: str

    def __post_init__(self) -> None:
        level = str(self.level).upper()
        if level not in VALID_LOG_LEVELS:
            LOGGER.warning("logging.level=%r is not recognised; using INFO", self.level)
            level = "INFO"
        object.__setattr__(self, "level", level)


@dataclass(slots=True)
class AppConfig:
    tracking: TrackingConfig
    goal: GoalConfig
    server: ServerConfig
    logging: LoggingConfig
    config_path: Path


def _require_bool(section: dict[str, Any], key: str) -> bool:
    value = section[key]
    if not isinstance(value, bool):
        raise ValueError(f"tracking.{key} must be true or false, got {value!r}")
    return value


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a YAML object at the top level.")
        return data


def documented_default_config() -> dict[str, Any]:
    """Return runtime defaults in the shape accepted by ``load_config``."""
    return deepcopy(DEFAULT_CONFIG)


def load_config(config_path: Path | None = None) -> AppConfig:
    path = config_path or (SERVER_DIR / "config.yaml")
    path = path.resolve()
    override = _read_config_file(path)
    merged = _deep_merge(DEFAULT_CONFIG, override)
    for section in DEFAULT_CONFIG:
        if not isinstance(merged.get(section), dict):
            raise ValueError(f"{section} must be a YAML object, got {merged.get(section)!r}")

    tracking_cfg = merged["tracking"]
    server_port = int(merged["server"]["port"])
    if not 1 <= server_port <= 65535:
        raise ValueError(f"server.port must be 1-65535, got {server_port}")

    app_config = AppConfig(
        tracking=TrackingConfig(
            smoothing=float(tracking_cfg["smoothing"]),
            step_threshold=float(tracking_cfg["step_threshold"]),
            min_step_interval_ms=float(tracking_cfg["min_step_interval_ms"]),
            gravity=float(tracking_cfg["gravity"]),
            step_increment=int(tracking_cfg["step_increment"]),
            start_steps=int(tracking_cfg["start_steps"]),
            has_motion_api=_require_bool(tracking_cfg, "has_motion_api"),
            has_consent_gate=_require_bool(tracking_cfg, "has_consent_gate"),
            consent_timeout_s=float(tracking_cfg["consent_timeout_s"]),
        ),
        goal=GoalConfig(goal_steps=int(merged["goal"]["goal_steps"])),
        server=ServerConfig(
            host=str(merged["server"]["host"]),
            port=server_port,
        ),
        logging=LoggingConfig(level=str(merged["logging"]["level"])),
        config_path=path,
    )
    LOGGER.info(
        "Loaded config=%s goal_steps=%d step_increment=%d",
        app_config.config_path,
        app_config.goal.goal_steps,
        app_config.tracking.step_increment,
    )
    return app_config

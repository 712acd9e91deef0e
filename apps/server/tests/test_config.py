from __future__ import annotations

import logging
from pathlib import Path

import pytest
import yaml

from stepsense.config import documented_default_config, load_config


def _write(path: Path, data: object) -> Path:
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "absent.yaml")
    assert cfg.tracking.smoothing == 0.8
    assert cfg.tracking.step_threshold == 1.1
    assert cfg.tracking.min_step_interval_ms == 400.0
    assert cfg.tracking.gravity == 9.81
    assert cfg.tracking.step_increment == 1
    assert cfg.tracking.start_steps == 0
    assert cfg.tracking.has_motion_api is True
    assert cfg.tracking.has_consent_gate is False
    assert cfg.goal.goal_steps == 10_000
    assert cfg.server.port == 8000
    assert cfg.logging.level == "INFO"


def test_overrides_are_deep_merged(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "config.yaml",
        {"tracking": {"step_increment": 1000}, "goal": {"goal_steps": 100}},
    )
    cfg = load_config(path)
    assert cfg.tracking.step_increment == 1000
    assert cfg.tracking.smoothing == 0.8
    assert cfg.goal.goal_steps == 100
    assert cfg.config_path == path.resolve()


def test_detector_settings_follow_tracking_section(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "config.yaml",
        {"tracking": {"smoothing": 0.9, "step_threshold": 1.5, "min_step_interval_ms": 300}},
    )
    settings = load_config(path).tracking.detector_settings()
    assert settings.smoothing == 0.9
    assert settings.threshold == 1.5
    assert settings.min_step_interval_ms == 300.0


def test_out_of_range_tunables_are_clamped_with_warning(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    path = _write(
        tmp_path / "config.yaml",
        {
            "tracking": {
                "smoothing": 1.5,
                "step_threshold": -1,
                "step_increment": 0,
                "start_steps": -5,
            },
            "goal": {"goal_steps": 0},
            "logging": {"level": "chatty"},
        },
    )
    with caplog.at_level(logging.WARNING, logger="stepsense.config"):
        cfg = load_config(path)
    assert cfg.tracking.smoothing == 0.8
    assert cfg.tracking.step_threshold == 1.1
    assert cfg.tracking.step_increment == 1
    assert cfg.tracking.start_steps == 0
    assert cfg.goal.goal_steps == 1
    assert cfg.logging.level == "INFO"
    assert "tracking.smoothing" in caplog.text


def test_invalid_port_raises(tmp_path: Path) -> None:
    path = _write(tmp_path / "config.yaml", {"server": {"port": 70000}})
    with pytest.raises(ValueError, match="server.port"):
        load_config(path)


def test_non_mapping_top_level_raises(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError, match="YAML object"):
        load_config(path)


def test_non_mapping_section_raises(tmp_path: Path) -> None:
    path = _write(tmp_path / "config.yaml", {"tracking": 3})
    with pytest.raises(ValueError, match="tracking"):
        load_config(path)


def test_example_config_matches_defaults() -> None:
    example = Path(__file__).resolve().parents[1] / "config.example.yaml"
    data = yaml.safe_load(example.read_text(encoding="utf-8"))
    defaults = documented_default_config()
    assert set(data) == set(defaults)
    for section, values in defaults.items():
        assert set(data[section]) == set(values), section


@pytest.mark.parametrize("key", ["has_motion_api", "has_consent_gate"])
@pytest.mark.parametrize("value", ["false", 0, None])
def test_capability_flags_must_be_booleans(tmp_path: Path, key: str, value: object) -> None:
    path = _write(tmp_path / "config.yaml", {"tracking": {key: value}})
    with pytest.raises(ValueError, match=f"tracking.{key}"):
        load_config(path)


def test_capability_flags_accept_yaml_booleans(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("tracking:\n  has_motion_api: no\n  has_consent_gate: yes\n", encoding="utf-8")
    cfg = load_config(path)
    assert cfg.tracking.has_motion_api is False
    assert cfg.tracking.has_consent_gate is True

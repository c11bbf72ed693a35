from __future__ import annotations

import json
from pathlib import Path

import pytest

from visual_analysis.config import EngineConfig, Thresholds, load_config
from visual_analysis.errors import ConfigError


def test_defaults() -> None:
    config = EngineConfig()

    assert config.analysis.enable_pixel_analysis is True
    assert config.analysis.enable_layout_analysis is True
    assert (config.thresholds.critical, config.thresholds.warning, config.thresholds.minor) == (
        5.0,
        2.0,
        0.5,
    )


def test_partial_camel_case_mapping_merges_per_field() -> None:
    config = EngineConfig.from_mapping({"analysis": {"enablePixelAnalysis": False}})

    assert config.analysis.enable_pixel_analysis is False
    assert config.analysis.enable_color_analysis is True
    assert config.thresholds == Thresholds()


def test_snake_case_thresholds_are_coerced_to_float() -> None:
    config = EngineConfig.from_mapping({"thresholds": {"critical": 10, "warning": 3}})

    assert config.thresholds.critical == 10.0
    assert isinstance(config.thresholds.critical, float)
    assert config.thresholds.minor == 0.5


@pytest.mark.parametrize(
    "mapping",
    [
        {"analysis": {"enableEverything": True}},
        {"output": {}},
        {"analysis": {"enablePixelAnalysis": "yes"}},
        {"thresholds": {"critical": "high"}},
        {"thresholds": {"critical": True}},
        {"thresholds": {"critical": 1.0}},
        {"analysis": ["enablePixelAnalysis"]},
    ],
)
def test_invalid_mappings_are_rejected(mapping: dict) -> None:
    with pytest.raises(ConfigError):
        EngineConfig.from_mapping(mapping)


def test_threshold_order_is_validated() -> None:
    with pytest.raises(ValueError):
        Thresholds(critical=1.0, warning=2.0, minor=0.5)


def test_load_config_from_file(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"analysis": {"enableLayoutAnalysis": False}, "thresholds": {"minor": 1}}),
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.analysis.enable_layout_analysis is False
    assert config.thresholds.minor == 1.0


def test_load_config_reports_bad_json(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(path)

"""Engine configuration with explicit, field-by-field merging."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping

from .errors import ConfigError

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


@dataclass(frozen=True, slots=True)
class AnalysisOptions:
    """Toggles for the four comparison sub-metrics."""

    enable_pixel_analysis: bool = True
    enable_structural_similarity: bool = True
    enable_color_analysis: bool = True
    enable_layout_analysis: bool = True


@dataclass(frozen=True, slots=True)
class Thresholds:
    """Mismatch percentages separating critical, warning and minor severities."""

    critical: float = 5.0
    warning: float = 2.0
    minor: float = 0.5

    def __post_init__(self) -> None:
        if not 0.0 <= self.minor <= self.warning <= self.critical:
            raise ConfigError(
                "Thresholds must satisfy 0 <= minor <= warning <= critical "
                f"(got minor={self.minor}, warning={self.warning}, critical={self.critical})"
            )


@dataclass(frozen=True, slots=True)
class EngineConfig:
    analysis: AnalysisOptions = field(default_factory=AnalysisOptions)
    thresholds: Thresholds = field(default_factory=Thresholds)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | None) -> "EngineConfig":
        """Build a config from a nested mapping, rejecting unknown keys.

        Keys may be camelCase (``enablePixelAnalysis``) as sent by the
        dashboard, or snake_case. Sections that are absent keep their defaults.
        """
        if not mapping:
            return cls()
        if not isinstance(mapping, Mapping):
            raise ConfigError(f"Configuration must be a mapping, not {type(mapping).__name__}")

        sections = {_snake_case(key): value for key, value in mapping.items()}
        unknown = set(sections) - {"analysis", "thresholds"}
        if unknown:
            raise ConfigError(f"Unknown configuration section(s): {', '.join(sorted(unknown))}")

        analysis = _merge_section(AnalysisOptions(), sections.get("analysis"), bool, "analysis")
        thresholds = _merge_section(Thresholds(), sections.get("thresholds"), float, "thresholds")
        return cls(analysis=analysis, thresholds=thresholds)


def load_config(path: str | Path) -> EngineConfig:
    """Read a JSON configuration file."""
    config_path = Path(path)
    try:
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot read configuration {config_path}: {exc}") from exc
    return EngineConfig.from_mapping(payload)


def _merge_section(defaults: Any, overrides: Any, value_type: type, section: str) -> Any:
    if overrides is None:
        return defaults
    if not isinstance(overrides, Mapping):
        raise ConfigError(f"Configuration section '{section}' must be a mapping")

    known = {f.name for f in fields(defaults)}
    changes: dict[str, Any] = {}
    for raw_key, value in overrides.items():
        key = _snake_case(raw_key)
        if key not in known:
            raise ConfigError(f"Unknown option '{section}.{raw_key}'")
        changes[key] = _coerce(value, value_type, f"{section}.{raw_key}")
    return replace(defaults, **changes)


def _coerce(value: Any, value_type: type, name: str) -> Any:
    if value_type is bool:
        if not isinstance(value, bool):
            raise ConfigError(f"Option '{name}' must be a boolean")
        return value
    # bool is an int subclass; a flag is never a valid percentage
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"Option '{name}' must be a number")
    return float(value)


def _snake_case(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", str(key)).lower()

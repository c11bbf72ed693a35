"""Output helpers for persisting analysis results and artifacts."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
from PIL import Image

from ..errors import WriteError
from .models import SuiteReport, to_dict

DIFFERENCE_MAP_NAME = "difference-map.png"


def write_report(path: Path, report: Any) -> Path:
    """Write any report model to *path* as camelCase JSON and return the path."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(to_dict(report), indent=2), encoding="utf-8")
    except OSError as exc:
        raise WriteError(path, str(exc)) from exc
    return path


def write_difference_map(pixels: np.ndarray, output_dir: str | Path) -> Path:
    """Save an ``(H, W, 3)`` difference map as PNG inside *output_dir*."""
    out_path = Path(output_dir) / DIFFERENCE_MAP_NAME
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        image = Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))
        try:
            image.save(out_path, format="PNG")
        finally:
            image.close()
    except (OSError, ValueError) as exc:
        raise WriteError(out_path, str(exc)) from exc
    return out_path


def suite_table(report: SuiteReport) -> pd.DataFrame:
    """Flatten the per-test analyses of *report* into one row per test."""
    rows: list[dict[str, Any]] = []
    for entry in report.detailed_analysis:
        region_types = [region.type for region in entry.regions if region.type]
        rows.append(
            {
                "test_id": entry.test_id,
                "viewport": entry.viewport,
                "diff_percentage": entry.diff_percentage,
                "severity": entry.severity,
                "region_count": len(entry.regions),
                "region_types": ",".join(sorted(set(region_types))),
                "cause_count": len(entry.possible_causes),
                "maintenance_effort": entry.performance.maintenance_effort
                if entry.performance
                else None,
            }
        )
    columns = [
        "test_id",
        "viewport",
        "diff_percentage",
        "severity",
        "region_count",
        "region_types",
        "cause_count",
        "maintenance_effort",
    ]
    return pd.DataFrame(rows, columns=columns)


def write_suite_table(path: Path, report: SuiteReport) -> Path:
    df = suite_table(report)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        df.to_parquet(path, index=False, engine="pyarrow")
    except OSError as exc:
        raise WriteError(path, str(exc)) from exc
    return path

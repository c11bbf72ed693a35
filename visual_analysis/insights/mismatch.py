"""Suite-level analysis of BackstopJS test results."""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any, List, Mapping, Sequence

from tqdm import tqdm

from ..compare.regions import analyze_difference_image
from ..config import EngineConfig, Thresholds
from ..errors import ReportFormatError
from ..io.models import (
    FailureAnalysis,
    PerformanceImpact,
    PossibleCause,
    RecommendationPlan,
    Region,
    SuiteReport,
    SuiteSummary,
    Suggestion,
)
from ..mathutils import round_half_up
from .report import build_recommendation_plan

logger = logging.getLogger(__name__)

TestRecord = Mapping[str, Any]

# label keywords -> summary category, first match wins
_CATEGORY_KEYWORDS = (
    ("typography", ("text", "font", "typography")),
    ("layout", ("layout", "grid", "position")),
    ("color", ("color", "background")),
    ("spacing", ("margin", "padding", "spacing")),
    ("imagery", ("image", "icon")),
)


class MismatchAnalyzer:
    """Explain why visual regression tests failed and what to do about it."""

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or EngineConfig()

    @property
    def thresholds(self) -> Thresholds:
        return self.config.thresholds

    def analyze_test_results(self, results_path: str | Path) -> SuiteReport:
        """Load a BackstopJS result document and analyse every test in it.

        Relative ``diffImage`` paths are resolved against the document's
        directory.
        """
        path = Path(results_path)
        try:
            results = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ReportFormatError(f"Cannot read test results {path}: {exc}") from exc
        if not isinstance(results, Mapping):
            raise ReportFormatError(f"Test results {path} must be a JSON object")
        return self.analyze_results(results, base_dir=path.parent)

    def analyze_results(
        self, results: Mapping[str, Any], base_dir: str | Path | None = None
    ) -> SuiteReport:
        return SuiteReport(
            summary=self.generate_summary(results),
            detailed_analysis=self.perform_detailed_analysis(results, base_dir=base_dir),
            recommendations=self.generate_recommendations(results),
        )

    def generate_summary(self, results: Mapping[str, Any]) -> SuiteSummary:
        tests = _tests(results)
        summary = SuiteSummary(
            total_tests=len(tests),
            passed=sum(1 for t in tests if t.get("status") == "pass"),
            failed=sum(1 for t in tests if t.get("status") == "fail"),
            skipped=sum(1 for t in tests if t.get("status") == "skipped"),
            categories={name: 0 for name, _ in _CATEGORY_KEYWORDS},
        )

        for test in tests:
            pair = test.get("pair") or {}
            if not pair.get("diff"):
                continue
            diff_percent = mismatch_percentage(test)
            summary.overall_difference += diff_percent

            severity = self.severity_level(diff_percent)
            if severity == "critical":
                summary.critical_issues += 1
            elif severity == "warning":
                summary.warning_issues += 1
            elif severity == "minor":
                summary.minor_issues += 1

            category = categorize_label(_label(test))
            if category:
                summary.categories[category] += 1

        if summary.total_tests:
            summary.average_difference = round_half_up(
                summary.overall_difference / summary.total_tests, 2
            )
        return summary

    def perform_detailed_analysis(
        self, results: Mapping[str, Any], base_dir: str | Path | None = None
    ) -> List[FailureAnalysis]:
        failed = [t for t in _tests(results) if t.get("status") == "fail" and t.get("pair")]
        return [
            self.analyze_individual_test(test, base_dir=base_dir)
            for test in tqdm(failed, desc="Analysing failures", unit="test", leave=False)
        ]

    def analyze_individual_test(
        self, test: TestRecord, base_dir: str | Path | None = None
    ) -> FailureAnalysis:
        pair = test.get("pair") or {}
        diff_percent = mismatch_percentage(test)
        return FailureAnalysis(
            test_id=str(pair.get("label", "")),
            viewport=pair.get("viewportLabel"),
            scenario=str(pair.get("label", "")),
            diff_percentage=diff_percent,
            severity=self.severity_level(diff_percent),
            regions=self.analyze_failure_regions(test, base_dir=base_dir),
            possible_causes=self.identify_possible_causes(test),
            suggestions=self.generate_suggestions(test),
            performance=self.analyze_performance_impact(test),
        )

    def analyze_failure_regions(
        self, test: TestRecord, base_dir: str | Path | None = None
    ) -> List[Region]:
        diff_image = (test.get("pair") or {}).get("diffImage")
        if not diff_image:
            return []
        path = Path(diff_image)
        if not path.is_absolute() and base_dir is not None:
            path = Path(base_dir) / path
        return analyze_difference_image(path)

    def identify_possible_causes(self, test: TestRecord) -> List[PossibleCause]:
        diff_percent = mismatch_percentage(test)
        label = _label(test)
        causes: List[PossibleCause] = []

        if diff_percent > 1:
            if _mentions(label, "responsive", "mobile"):
                causes.append(
                    PossibleCause(
                        category="responsive",
                        description="Responsive design implementation differs from design specs",
                        likelihood="high",
                    )
                )
            if _mentions(label, "font", "text"):
                causes.append(
                    PossibleCause(
                        category="typography",
                        description="Font family, size, or line-height mismatch",
                        likelihood="high",
                    )
                )
            if _mentions(label, "color", "background"):
                causes.append(
                    PossibleCause(
                        category="styling",
                        description="Color values or background properties differ",
                        likelihood="medium",
                    )
                )
            if _mentions(label, "spacing", "margin", "padding"):
                causes.append(
                    PossibleCause(
                        category="layout",
                        description="Spacing and layout properties need adjustment",
                        likelihood="high",
                    )
                )

        if 0.5 < diff_percent < 2:
            causes.append(
                PossibleCause(
                    category="browser",
                    description="Minor browser rendering differences",
                    likelihood="medium",
                )
            )
        return causes

    def generate_suggestions(self, test: TestRecord) -> List[Suggestion]:
        diff_percent = mismatch_percentage(test)
        label = _label(test)
        suggestions: List[Suggestion] = []

        if diff_percent > self.thresholds.critical:
            suggestions.append(
                Suggestion(
                    priority="critical",
                    action="immediate-review",
                    description="Critical visual difference detected - requires immediate attention",
                    steps=[
                        "Compare with the design file carefully",
                        "Check CSS implementation for major discrepancies",
                        "Verify responsive behavior",
                        "Test across different browsers",
                    ],
                )
            )
        if _mentions(label, "font", "text"):
            suggestions.append(
                Suggestion(
                    priority="high",
                    action="typography-fix",
                    description="Typography adjustments needed",
                    steps=[
                        "Verify font-family matches the design specification",
                        "Check font-size, line-height, and letter-spacing",
                        "Ensure proper font loading",
                        "Validate text color and font-weight",
                    ],
                )
            )
        if _mentions(label, "spacing", "layout"):
            suggestions.append(
                Suggestion(
                    priority="high",
                    action="layout-fix",
                    description="Layout spacing requires adjustment",
                    steps=[
                        "Review margin and padding values",
                        "Check flexbox/grid implementation",
                        "Verify container widths and heights",
                        "Ensure proper alignment properties",
                    ],
                )
            )
        if _mentions(label, "color"):
            suggestions.append(
                Suggestion(
                    priority="medium",
                    action="color-fix",
                    description="Color values need correction",
                    steps=[
                        "Extract exact color values from the design file",
                        "Update CSS color properties",
                        "Check for transparency/opacity issues",
                        "Verify color contrast accessibility",
                    ],
                )
            )
        return suggestions

    def analyze_performance_impact(self, test: TestRecord) -> PerformanceImpact:
        diff_percent = mismatch_percentage(test)
        if diff_percent > 5:
            experience = "poor"
        elif diff_percent > 2:
            experience = "fair"
        else:
            experience = "good"
        if diff_percent > 3:
            consistency = "low"
        elif diff_percent > 1:
            consistency = "medium"
        else:
            consistency = "high"
        return PerformanceImpact(
            visual_impact=self.severity_level(diff_percent),
            user_experience=experience,
            brand_consistency=consistency,
            maintenance_effort=estimate_maintenance_effort(test),
        )

    def severity_level(self, diff_percent: float) -> str:
        if diff_percent > self.thresholds.critical:
            return "critical"
        if diff_percent > self.thresholds.warning:
            return "warning"
        if diff_percent > self.thresholds.minor:
            return "minor"
        return "pass"

    def generate_recommendations(self, results: Mapping[str, Any]) -> RecommendationPlan:
        tests = _tests(results)
        failed = [mismatch_percentage(t) for t in tests if t.get("status") == "fail"]
        return build_recommendation_plan(failed, self.thresholds, total_tests=len(tests))


def estimate_maintenance_effort(test: TestRecord) -> str:
    diff_percent = mismatch_percentage(test)
    if diff_percent > 10:
        return "high"
    if diff_percent > 5:
        return "medium"
    if diff_percent > 1:
        return "low"
    if _mentions(_label(test), "responsive", "complex"):
        return "medium"
    return "minimal"


def categorize_label(label: str) -> str | None:
    lowered = label.lower()
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return None


def mismatch_percentage(test: TestRecord) -> float:
    """Return ``pair.diff.misMatchPercentage`` as a float, 0 when absent.

    BackstopJS serialises the value as a string such as ``"12.34"``. NaN and
    infinite values count as 0.
    """
    diff = (test.get("pair") or {}).get("diff") or {}
    value = diff.get("misMatchPercentage", 0)
    try:
        parsed = float(value or 0)
    except (TypeError, ValueError):
        logger.debug("Ignoring non-numeric misMatchPercentage %r", value)
        return 0.0
    if not math.isfinite(parsed):
        logger.debug("Ignoring non-finite misMatchPercentage %r", value)
        return 0.0
    return parsed


def _tests(results: Mapping[str, Any]) -> Sequence[TestRecord]:
    tests = results.get("tests") or []
    return [t for t in tests if isinstance(t, Mapping)]


def _label(test: TestRecord) -> str:
    return str((test.get("pair") or {}).get("label", "")).lower()


def _mentions(label: str, *keywords: str) -> bool:
    return any(keyword in label for keyword in keywords)

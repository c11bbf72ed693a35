"""Scores, grades, insights and recommendations for a comparison."""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from ..config import Thresholds
from ..io.models import (
    ComparisonResult,
    Grade,
    Insight,
    InsightReport,
    OverallInsight,
    Recommendation,
    RecommendationPlan,
    VisualRecommendation,
)
from ..mathutils import round_int

GRADE_SCALE: Tuple[Tuple[int, Grade], ...] = (
    (95, Grade.A_PLUS),
    (90, Grade.A),
    (80, Grade.B),
    (70, Grade.C),
    (60, Grade.D),
)

GRADE_DESCRIPTIONS: Dict[Grade, str] = {
    Grade.A_PLUS: "Excellent visual match with minimal differences",
    Grade.A: "Very good visual match with minor differences",
    Grade.B: "Good visual match with some noticeable differences",
    Grade.C: "Acceptable visual match with several differences",
    Grade.D: "Poor visual match with significant differences",
    Grade.F: "Major visual differences detected",
}

_INSIGHT_RECOMMENDATIONS = {
    "pixel": "Review overall implementation for major discrepancies",
    "brightness": "Check background colors and overall brightness settings",
    "contrast": "Review text and background contrast ratios",
    "layout": "Check element positioning and spacing",
}

SUB_SCORE_COUNT = 4


def grade_for(score: float) -> Grade:
    for minimum, grade in GRADE_SCALE:
        if score >= minimum:
            return grade
    return Grade.F


def confidence_for(score_count: int) -> str:
    if score_count == SUB_SCORE_COUNT:
        return "high"
    if score_count >= 2:
        return "medium"
    return "low"


def overall_insight(comparison: ComparisonResult) -> OverallInsight:
    """Average the available sub-scores and grade the result."""
    scores = comparison.scores()
    average = round_int(sum(scores) / len(scores)) if scores else 0
    grade = grade_for(average)
    return OverallInsight(
        score=average,
        grade=grade.value,
        description=GRADE_DESCRIPTIONS[grade],
        confidence=confidence_for(len(scores)),
    )


def specific_insights(comparison: ComparisonResult) -> List[Insight]:
    insights: List[Insight] = []

    pixel = comparison.pixel_difference
    if pixel is not None and pixel.percentage_different > 5:
        insights.append(
            Insight(
                category="pixel",
                severity="high" if pixel.percentage_different > 15 else "medium",
                message=f"{_fmt(pixel.percentage_different)}% of pixels differ significantly",
                recommendation=_INSIGHT_RECOMMENDATIONS["pixel"],
            )
        )

    color = comparison.color_difference
    if color is not None:
        if color.brightness_difference > 30:
            insights.append(
                Insight(
                    category="color",
                    severity="medium",
                    message=f"Brightness differs by {color.brightness_difference} levels",
                    recommendation=_INSIGHT_RECOMMENDATIONS["brightness"],
                )
            )
        if color.contrast_difference > 40:
            insights.append(
                Insight(
                    category="color",
                    severity="medium",
                    message=f"Contrast differs significantly ({color.contrast_difference})",
                    recommendation=_INSIGHT_RECOMMENDATIONS["contrast"],
                )
            )

    layout = comparison.layout_difference
    if layout is not None and layout.layout_score < 80:
        insights.append(
            Insight(
                category="layout",
                severity="high" if layout.layout_score < 60 else "medium",
                message=f"Layout composition differs from design ({layout.layout_score}% match)",
                recommendation=_INSIGHT_RECOMMENDATIONS["layout"],
            )
        )

    return insights


def visual_recommendations(comparison: ComparisonResult) -> List[VisualRecommendation]:
    """Return remediation steps for the areas that differ the most."""
    recommendations: List[VisualRecommendation] = []

    pixel = comparison.pixel_difference
    if pixel is not None and pixel.percentage_different > 10:
        recommendations.append(
            VisualRecommendation(
                priority="high",
                category="implementation",
                title="Significant Visual Differences",
                description="Large portions of the implementation differ from the design",
                actions=[
                    "Compare side-by-side with design file",
                    "Check CSS implementation for major elements",
                    "Verify responsive behavior across breakpoints",
                    "Review component library usage",
                ],
            )
        )

    color = comparison.color_difference
    if color is not None and color.overall_similarity < 70:
        recommendations.append(
            VisualRecommendation(
                priority="medium",
                category="styling",
                title="Color Scheme Adjustments Needed",
                description="Colors differ significantly from the design specification",
                actions=[
                    "Extract exact color values from design file",
                    "Update CSS variables and color tokens",
                    "Check for proper theme application",
                    "Verify color accessibility compliance",
                ],
            )
        )

    layout = comparison.layout_difference
    if layout is not None and layout.layout_score < 75:
        recommendations.append(
            VisualRecommendation(
                priority="medium",
                category="layout",
                title="Layout and Spacing Issues",
                description="Element positioning and spacing need adjustment",
                actions=[
                    "Review margin and padding values",
                    "Check flexbox/grid implementation",
                    "Verify component alignment",
                    "Test responsive behavior",
                ],
            )
        )

    return recommendations


def build_recommendation_plan(
    failed_mismatches: Sequence[float],
    thresholds: Thresholds | None = None,
    total_tests: int | None = None,
) -> RecommendationPlan:
    """Bucket follow-up work by urgency.

    *failed_mismatches* holds the mismatch percentage of every failed test.
    The long-term bucket is only considered when *total_tests* is known,
    i.e. when a whole suite was analysed.
    """
    thresholds = thresholds or Thresholds()
    plan = RecommendationPlan()

    critical = [p for p in failed_mismatches if p > thresholds.critical]
    if critical:
        plan.immediate.append(
            Recommendation(
                title="Fix Critical Visual Mismatches",
                description=(
                    f"{len(critical)} tests show critical differences "
                    f"(>{_fmt(thresholds.critical)}%)"
                ),
                priority="critical",
                estimated_time=f"{len(critical) * 2} hours",
                impact="high",
            )
        )

    warnings = [p for p in failed_mismatches if thresholds.warning < p <= thresholds.critical]
    if warnings:
        plan.short_term.append(
            Recommendation(
                title="Address Warning Level Differences",
                description=f"{len(warnings)} tests show warning level differences",
                priority="high",
                estimated_time=f"{len(warnings)} hours",
                impact="medium",
            )
        )

    if total_tests is not None and len(failed_mismatches) > total_tests * 0.2:
        plan.long_term.append(
            Recommendation(
                title="Improve Design-to-Code Process",
                description="High failure rate indicates process improvements needed",
                priority="medium",
                estimated_time="1-2 weeks",
                impact="high",
            )
        )

    plan.preventive.append(
        Recommendation(
            title="Implement Continuous Visual Testing",
            description="Set up automated visual regression testing in CI/CD pipeline",
            priority="medium",
            estimated_time="3-5 days",
            impact="high",
        )
    )
    return plan


def generate_insights(
    comparison: ComparisonResult, thresholds: Thresholds | None = None
) -> InsightReport:
    """Aggregate a comparison into a graded report.

    For a single pair the pixel mismatch stands in for the test mismatch
    when bucketing recommendations; a pair counts as failed above the minor
    threshold.
    """
    thresholds = thresholds or Thresholds()
    failed: List[float] = []
    pixel = comparison.pixel_difference
    if pixel is not None and pixel.percentage_different > thresholds.minor:
        failed.append(pixel.percentage_different)

    return InsightReport(
        overall=overall_insight(comparison),
        specific=specific_insights(comparison),
        visual_recommendations=visual_recommendations(comparison),
        recommendations=build_recommendation_plan(failed, thresholds),
    )


def _fmt(value: float) -> str:
    return f"{value:g}"

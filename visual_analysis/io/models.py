"""Data models shared across the visual analysis pipeline."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, Dict, List, Tuple

import numpy as np

_SNAKE_SEGMENT = re.compile(r"_([a-z0-9])")

REGION_KEYS: Tuple[str, ...] = (
    "topLeft",
    "topCenter",
    "topRight",
    "centerLeft",
    "center",
    "centerRight",
    "bottomLeft",
    "bottomCenter",
    "bottomRight",
)


@dataclass(frozen=True, slots=True)
class PixelBuffer:
    """Decoded raster: row-major interleaved R,G,B[,A] bytes."""

    width: int
    height: int
    channels: int
    data: bytes = field(repr=False)

    def __post_init__(self) -> None:
        if self.channels not in (3, 4):
            raise ValueError(f"channels must be 3 or 4, got {self.channels}")
        if self.width < 0 or self.height < 0:
            raise ValueError("width and height must be non-negative")
        expected = self.width * self.height * self.channels
        if len(self.data) != expected:
            raise ValueError(
                f"data length {len(self.data)} does not match {self.width}x{self.height}x{self.channels}"
            )

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    def is_empty(self) -> bool:
        return self.pixel_count == 0

    def as_array(self) -> np.ndarray:
        """Return a read-only ``(height, width, channels)`` uint8 view."""
        array = np.frombuffer(self.data, dtype=np.uint8)
        return array.reshape(self.height, self.width, self.channels)

    def rgb(self) -> np.ndarray:
        return self.as_array()[:, :, :3]

    def luma(self) -> np.ndarray:
        """Return per-pixel luma ``0.299R + 0.587G + 0.114B`` as float64."""
        rgb = self.rgb().astype(np.float64)
        return 0.299 * rgb[:, :, 0] + 0.587 * rgb[:, :, 1] + 0.114 * rgb[:, :, 2]


@dataclass(slots=True)
class ChannelStats:
    histogram: List[int]
    mean: int


@dataclass(slots=True)
class DominantColor:
    rgb: Dict[str, int]
    hex: str
    frequency: int
    percentage: float


@dataclass(slots=True)
class ColorProfile:
    """Color statistics for a single image."""

    distribution: Dict[str, ChannelStats]
    dominant_colors: List[DominantColor]
    variance: Dict[str, int]
    average_brightness: int
    contrast: int


@dataclass(slots=True)
class Complexity:
    edge_density: float
    variation: int
    complexity: int


@dataclass(slots=True)
class Symmetry:
    horizontal: int
    vertical: int


@dataclass(slots=True)
class StructuralProfile:
    edge_count: int
    complexity: Complexity
    symmetry: Symmetry


@dataclass(slots=True)
class Balance:
    horizontal: int
    vertical: int
    overall: float


@dataclass(slots=True)
class RuleOfThirds:
    intersection_focus: int
    center_focus: int
    adherence: str


@dataclass(slots=True)
class Composition:
    regions: Dict[str, int]
    balance: Balance
    rule_of_thirds: RuleOfThirds


@dataclass(slots=True)
class Whitespace:
    percentage: int
    density: int
    distribution: Dict[str, int]


@dataclass(slots=True)
class GridStructure:
    detected: bool = False
    columns: int = 0
    rows: int = 0
    consistency: int = 0


@dataclass(slots=True)
class Alignment:
    vertical_lines: List[int] = field(default_factory=list)
    horizontal_lines: List[int] = field(default_factory=list)
    grid_structure: GridStructure = field(default_factory=GridStructure)


@dataclass(slots=True)
class LayoutProfile:
    composition: Composition
    whitespace: Whitespace
    alignment: Alignment


@dataclass(slots=True)
class ImageMetadata:
    width: int
    height: int
    channels: int
    format: str | None = None
    size: int | None = None


@dataclass(slots=True)
class ImageAnalysis:
    """Per-image profiles; a profile is ``None`` when its stage failed."""

    path: str | None
    metadata: ImageMetadata
    color_analysis: ColorProfile | None = None
    structural_analysis: StructuralProfile | None = None
    layout_analysis: LayoutProfile | None = None
    perceptual: Dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class PixelDifference:
    average_difference: int
    differing_pixels: int
    percentage_different: float
    similarity: float


@dataclass(slots=True)
class StructuralSimilarity:
    edge_similarity: int
    complexity_similarity: int
    overall: int


@dataclass(slots=True)
class ColorDifference:
    dominant_color_similarity: int
    brightness_difference: int
    contrast_difference: int
    overall_similarity: int


@dataclass(slots=True)
class LayoutDifference:
    composition_similarity: int
    whitespace_difference: int
    layout_score: int


@dataclass(slots=True)
class DiffMapResult:
    created: bool
    path: str | None = None
    error: str | None = None


@dataclass(slots=True)
class Region:
    """Axis-aligned bounding box of a connected area of difference."""

    x: int
    y: int
    width: int
    height: int
    pixel_count: int
    intensity: float
    type: str | None = None
    confidence: int | None = None


@dataclass(slots=True)
class ComparisonResult:
    pixel_difference: PixelDifference | None = None
    structural_similarity: StructuralSimilarity | None = None
    color_difference: ColorDifference | None = None
    layout_difference: LayoutDifference | None = None
    perceptual_distance: Dict[str, int] | None = None
    diff_map: DiffMapResult | None = None
    regions: List[Region] = field(default_factory=list)

    def scores(self) -> List[float]:
        """Return the sub-scores that were computed, in a fixed order."""
        candidates = (
            self.pixel_difference.similarity if self.pixel_difference is not None else None,
            self.structural_similarity.overall if self.structural_similarity is not None else None,
            self.color_difference.overall_similarity if self.color_difference is not None else None,
            self.layout_difference.layout_score if self.layout_difference is not None else None,
        )
        return [float(score) for score in candidates if score is not None]


class Grade(str, Enum):
    A_PLUS = "A+"
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"


@dataclass(slots=True)
class OverallInsight:
    score: int
    grade: str
    description: str
    confidence: str


@dataclass(slots=True)
class Insight:
    category: str
    severity: str
    message: str
    recommendation: str


@dataclass(slots=True)
class VisualRecommendation:
    priority: str
    category: str
    title: str
    description: str
    actions: List[str] = field(default_factory=list)


@dataclass(slots=True)
class Recommendation:
    title: str
    description: str
    priority: str
    estimated_time: str
    impact: str


@dataclass(slots=True)
class RecommendationPlan:
    immediate: List[Recommendation] = field(default_factory=list)
    short_term: List[Recommendation] = field(default_factory=list)
    long_term: List[Recommendation] = field(default_factory=list)
    preventive: List[Recommendation] = field(default_factory=list)


@dataclass(slots=True)
class InsightReport:
    overall: OverallInsight
    specific: List[Insight] = field(default_factory=list)
    visual_recommendations: List[VisualRecommendation] = field(default_factory=list)
    recommendations: RecommendationPlan = field(default_factory=RecommendationPlan)


@dataclass(slots=True)
class VisualAnalysisReport:
    """Top-level result of analysing one reference/test pair."""

    timestamp: str
    reference: ImageAnalysis
    test: ImageAnalysis
    comparison: ComparisonResult
    insights: InsightReport


@dataclass(slots=True)
class SuiteSummary:
    total_tests: int
    passed: int
    failed: int
    skipped: int
    overall_difference: float = 0.0
    average_difference: float = 0.0
    critical_issues: int = 0
    warning_issues: int = 0
    minor_issues: int = 0
    categories: Dict[str, int] = field(default_factory=dict)


@dataclass(slots=True)
class PossibleCause:
    category: str
    description: str
    likelihood: str


@dataclass(slots=True)
class Suggestion:
    priority: str
    action: str
    description: str
    steps: List[str] = field(default_factory=list)


@dataclass(slots=True)
class PerformanceImpact:
    visual_impact: str
    user_experience: str
    brand_consistency: str
    maintenance_effort: str


@dataclass(slots=True)
class FailureAnalysis:
    test_id: str
    viewport: str | None
    scenario: str
    diff_percentage: float
    severity: str
    regions: List[Region] = field(default_factory=list)
    possible_causes: List[PossibleCause] = field(default_factory=list)
    suggestions: List[Suggestion] = field(default_factory=list)
    performance: PerformanceImpact | None = None


@dataclass(slots=True)
class SuiteReport:
    summary: SuiteSummary
    detailed_analysis: List[FailureAnalysis] = field(default_factory=list)
    recommendations: RecommendationPlan = field(default_factory=RecommendationPlan)


def camel_case(name: str) -> str:
    """Return *name* converted from snake_case to camelCase."""
    return _SNAKE_SEGMENT.sub(lambda match: match.group(1).upper(), name)


def to_dict(value: Any) -> Any:
    """Convert a model (or nested containers of models) to JSON-ready data.

    Dataclass field names become camelCase keys; mapping keys are kept as is
    so region names such as ``topLeft`` survive unchanged.
    """
    if is_dataclass(value) and not isinstance(value, type):
        if isinstance(value, PixelBuffer):
            return {"width": value.width, "height": value.height, "channels": value.channels}
        return {camel_case(f.name): to_dict(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(key): to_dict(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_dict(item) for item in value]
    if isinstance(value, np.generic):
        return value.item()
    return value

"""Pairwise comparison between a reference image and a test image."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping

import numpy as np

from ..config import EngineConfig
from ..errors import AnalysisError, DimensionMismatchError, EmptyBufferError, WriteError
from ..features.color import color_distance
from ..features.perceptual import hash_distances
from ..features.profile import profile_image, run_stage
from ..io.models import (
    ColorDifference,
    ColorProfile,
    ComparisonResult,
    DiffMapResult,
    ImageAnalysis,
    LayoutDifference,
    LayoutProfile,
    PixelBuffer,
    PixelDifference,
    Region,
    StructuralProfile,
    StructuralSimilarity,
)
from ..io.outputs import write_difference_map
from ..mathutils import MAX_RGB_DISTANCE, round1, round_int
from .regions import detect_regions

logger = logging.getLogger(__name__)

PIXEL_THRESHOLD = 10
_BLEND_WEIGHT = 33.33


def pixel_difference(reference: PixelBuffer, test: PixelBuffer) -> PixelDifference:
    """Compare two same-sized buffers pixel by pixel in RGB space."""
    _require_same_size(reference, test)
    if reference.is_empty():
        raise EmptyBufferError("Cannot compare empty images")

    delta = reference.rgb().astype(np.float64) - test.rgb().astype(np.float64)
    distances = np.sqrt((delta**2).sum(axis=2))
    total_pixels = reference.pixel_count
    total_difference = float(distances.sum())
    differing = int(np.count_nonzero(distances > PIXEL_THRESHOLD))

    return PixelDifference(
        average_difference=round_int(total_difference / total_pixels),
        differing_pixels=differing,
        percentage_different=round1(differing / total_pixels * 100),
        similarity=round1((1 - total_difference / (total_pixels * MAX_RGB_DISTANCE)) * 100),
    )


def structural_similarity(
    reference: StructuralProfile, test: StructuralProfile
) -> StructuralSimilarity:
    """Approximate structural similarity from edge counts and complexity."""
    largest = max(reference.edge_count, test.edge_count)
    if largest == 0:
        edge_similarity = 1.0
    else:
        edge_similarity = 1 - abs(reference.edge_count - test.edge_count) / largest
    complexity_similarity = (
        1 - abs(reference.complexity.complexity - test.complexity.complexity) / 100
    )
    return StructuralSimilarity(
        edge_similarity=round_int(edge_similarity * 100),
        complexity_similarity=round_int(complexity_similarity * 100),
        overall=round_int((edge_similarity + complexity_similarity) * 50),
    )


def color_difference(reference: ColorProfile, test: ColorProfile) -> ColorDifference:
    """Compare palettes, brightness and contrast of two color profiles.

    Dominant colors are paired by rank. Each pair contributes its closeness
    weighted by the mean share of the two colors, giving a 0-100 palette
    score that is blended with brightness and contrast agreement.
    """
    palette_score = 0.0
    for ref_color, test_color in zip(reference.dominant_colors, test.dominant_colors):
        distance = color_distance(ref_color.rgb, test_color.rgb)
        weight = (ref_color.percentage + test_color.percentage) / 2
        palette_score += (1 - distance / MAX_RGB_DISTANCE) * weight

    brightness_diff = abs(reference.average_brightness - test.average_brightness)
    contrast_diff = abs(reference.contrast - test.contrast)
    blended = palette_score / 100 + (1 - brightness_diff / 255) + (1 - contrast_diff / 255)

    return ColorDifference(
        dominant_color_similarity=round_int(palette_score),
        brightness_difference=brightness_diff,
        contrast_difference=contrast_diff,
        overall_similarity=round_int(blended * _BLEND_WEIGHT),
    )


def compare_composition(
    reference: Mapping[str, int] | None, test: Mapping[str, int] | None
) -> float:
    """Mean absolute delta of region weights; 100 when either side is missing."""
    if not reference or not test:
        return 100.0
    total = sum(abs(reference[key] - test.get(key, 0)) for key in reference)
    return total / len(reference)


def layout_difference(reference: LayoutProfile, test: LayoutProfile) -> LayoutDifference:
    composition_diff = compare_composition(
        reference.composition.regions, test.composition.regions
    )
    whitespace_diff = abs(reference.whitespace.percentage - test.whitespace.percentage)
    return LayoutDifference(
        composition_similarity=round_int((1 - composition_diff / 100) * 100),
        whitespace_difference=whitespace_diff,
        layout_score=round_int((1 - (composition_diff + whitespace_diff) / 200) * 100),
    )


def difference_intensity(reference: PixelBuffer, test: PixelBuffer) -> np.ndarray:
    """Per-pixel mean absolute RGB delta as a new ``(H, W)`` uint8 array."""
    _require_same_size(reference, test)
    delta = np.abs(reference.rgb().astype(np.int16) - test.rgb().astype(np.int16))
    return np.floor(delta.mean(axis=2)).astype(np.uint8)


def difference_map(reference: PixelBuffer, test: PixelBuffer) -> np.ndarray:
    """Render differences: pure red above the threshold, dim red-gray below."""
    _require_same_size(reference, test)
    delta = np.abs(reference.rgb().astype(np.int16) - test.rgb().astype(np.int16))
    average = delta.mean(axis=2)

    pixels = np.empty((reference.height, reference.width, 3), dtype=np.uint8)
    pixels[:, :, 0] = np.floor(average * 2)
    pixels[:, :, 1] = np.floor(average)
    pixels[:, :, 2] = np.floor(average)
    pixels[average > PIXEL_THRESHOLD] = (255, 0, 0)
    return pixels


def compare(
    reference: PixelBuffer,
    test: PixelBuffer,
    reference_analysis: ImageAnalysis | None = None,
    test_analysis: ImageAnalysis | None = None,
    *,
    config: EngineConfig | None = None,
    output_dir: str | Path | None = None,
) -> ComparisonResult:
    """Compute every enabled comparison metric for a reference/test pair.

    Each metric is computed on its own: a size mismatch only drops the
    pixel difference, difference map and regions, while the metrics built
    from the per-image profiles are still returned. The difference map and
    regions are pixel-level results and are skipped along with the pixel
    difference when pixel analysis is disabled. Raises ``AnalysisError``
    when metrics were enabled but none of them could be computed.
    """
    config = config or EngineConfig()
    options = config.analysis
    if reference_analysis is None:
        reference_analysis = profile_image(reference)
    if test_analysis is None:
        test_analysis = profile_image(test)

    result = ComparisonResult()
    same_size = reference.size == test.size
    if not same_size:
        logger.warning(
            "Reference %sx%s and test %sx%s differ in size; skipping pixel comparison",
            reference.width,
            reference.height,
            test.width,
            test.height,
        )

    if options.enable_pixel_analysis and same_size:
        result.pixel_difference = run_stage(
            "pixel difference", "pair", pixel_difference, reference, test
        )

    ref_structure = reference_analysis.structural_analysis
    test_structure = test_analysis.structural_analysis
    if (
        options.enable_structural_similarity
        and ref_structure is not None
        and test_structure is not None
    ):
        result.structural_similarity = structural_similarity(ref_structure, test_structure)

    ref_colors = reference_analysis.color_analysis
    test_colors = test_analysis.color_analysis
    if options.enable_color_analysis and ref_colors is not None and test_colors is not None:
        result.color_difference = color_difference(ref_colors, test_colors)

    ref_layout = reference_analysis.layout_analysis
    test_layout = test_analysis.layout_analysis
    if options.enable_layout_analysis and ref_layout is not None and test_layout is not None:
        result.layout_difference = layout_difference(ref_layout, test_layout)

    if reference_analysis.perceptual and test_analysis.perceptual:
        result.perceptual_distance = hash_distances(
            reference_analysis.perceptual, test_analysis.perceptual
        )

    if options.enable_pixel_analysis and same_size and not reference.is_empty():
        result.regions = _difference_regions(reference, test)
        if output_dir is not None:
            result.diff_map = _write_diff_map(reference, test, output_dir)

    enabled = (
        options.enable_pixel_analysis,
        options.enable_structural_similarity,
        options.enable_color_analysis,
        options.enable_layout_analysis,
    )
    if any(enabled) and not result.scores():
        raise AnalysisError("No comparison metric could be computed for this image pair")
    return result


def _difference_regions(reference: PixelBuffer, test: PixelBuffer) -> list[Region]:
    return detect_regions(difference_intensity(reference, test))


def _write_diff_map(
    reference: PixelBuffer, test: PixelBuffer, output_dir: str | Path
) -> DiffMapResult:
    try:
        path = write_difference_map(difference_map(reference, test), output_dir)
    except WriteError as exc:
        logger.warning("Error generating difference map: %s", exc)
        return DiffMapResult(created=False, error=str(exc))
    return DiffMapResult(created=True, path=str(path))


def _require_same_size(reference: PixelBuffer, test: PixelBuffer) -> None:
    if reference.size != test.size:
        raise DimensionMismatchError(reference.size, test.size)

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from visual_analysis.compare.comparator import (
    compare,
    compare_composition,
    difference_intensity,
    difference_map,
    pixel_difference,
    structural_similarity,
)
from visual_analysis.config import AnalysisOptions, EngineConfig
from visual_analysis.errors import AnalysisError, DimensionMismatchError
from visual_analysis.extract.decode import from_array
from visual_analysis.io.models import Complexity, PixelBuffer, StructuralProfile, Symmetry
from visual_analysis.io.outputs import DIFFERENCE_MAP_NAME


def _structure(edges: int, complexity: int) -> StructuralProfile:
    return StructuralProfile(
        edge_count=edges,
        complexity=Complexity(edge_density=0.0, variation=0, complexity=complexity),
        symmetry=Symmetry(horizontal=100, vertical=100),
    )


def test_identical_images_score_perfectly(solid_buffer) -> None:
    red = solid_buffer(4, 4, (255, 0, 0))

    result = compare(red, solid_buffer(4, 4, (255, 0, 0)))

    assert result.pixel_difference.similarity == 100.0
    assert result.pixel_difference.percentage_different == 0.0
    assert result.pixel_difference.differing_pixels == 0
    assert result.structural_similarity.overall == 100
    assert result.color_difference.dominant_color_similarity == 100
    assert result.color_difference.overall_similarity == 100
    assert result.layout_difference.layout_score == 100
    assert result.perceptual_distance == {"ahash": 0, "phash": 0, "dhash": 0}
    assert result.regions == []
    assert result.diff_map is None


def test_white_against_black(solid_buffer) -> None:
    result = compare(solid_buffer(10, 10, (255, 255, 255)), solid_buffer(10, 10, (0, 0, 0)))

    pixel = result.pixel_difference
    assert pixel.percentage_different == 100.0
    assert pixel.similarity == pytest.approx(0.0, abs=0.05)
    assert pixel.average_difference == 442
    assert result.color_difference.brightness_difference == 255
    assert len(result.regions) == 1
    assert result.regions[0].pixel_count == 100


def test_pixel_difference_requires_same_size(solid_buffer) -> None:
    with pytest.raises(DimensionMismatchError):
        pixel_difference(solid_buffer(4, 4, (0, 0, 0)), solid_buffer(5, 4, (0, 0, 0)))


def test_size_mismatch_keeps_profile_metrics(solid_buffer, tmp_path: Path) -> None:
    result = compare(
        solid_buffer(20, 20, (20, 40, 60)),
        solid_buffer(10, 10, (20, 40, 60)),
        output_dir=tmp_path,
    )

    assert result.pixel_difference is None
    assert result.color_difference is not None
    assert result.layout_difference is not None
    assert result.structural_similarity is not None
    assert result.regions == []
    assert result.diff_map is None
    assert not (tmp_path / DIFFERENCE_MAP_NAME).exists()


def test_structural_similarity_without_edges() -> None:
    similarity = structural_similarity(_structure(0, 0), _structure(0, 0))

    assert similarity.edge_similarity == 100
    assert similarity.overall == 100


def test_structural_similarity_partial() -> None:
    similarity = structural_similarity(_structure(100, 40), _structure(50, 20))

    assert similarity.edge_similarity == 50
    assert similarity.complexity_similarity == 80
    assert similarity.overall == 65


def test_compare_composition_handles_missing_side() -> None:
    assert compare_composition(None, {"center": 1}) == 100.0
    assert compare_composition({"center": 10, "topLeft": 0}, {"center": 4, "topLeft": 2}) == 4.0


def test_difference_map_colors() -> None:
    reference = np.zeros((4, 4, 3), dtype=np.uint8)
    test = reference.copy()
    test[1, 1] = (30, 30, 30)
    test[2, 2] = (5, 5, 5)

    pixels = difference_map(from_array(reference), from_array(test))

    assert pixels.shape == (4, 4, 3)
    assert pixels[1, 1].tolist() == [255, 0, 0]
    assert pixels[2, 2].tolist() == [10, 5, 5]
    assert pixels[0, 0].tolist() == [0, 0, 0]


def test_difference_intensity_is_channel_mean() -> None:
    reference = np.zeros((1, 2, 3), dtype=np.uint8)
    test = np.array([[[30, 0, 0], [255, 255, 255]]], dtype=np.uint8)

    intensity = difference_intensity(from_array(reference), from_array(test))

    assert intensity.tolist() == [[10, 255]]


def test_diff_map_written_to_output_dir(solid_buffer, tmp_path: Path) -> None:
    out_dir = tmp_path / "maps"

    result = compare(
        solid_buffer(8, 5, (0, 0, 0)), solid_buffer(8, 5, (0, 0, 200)), output_dir=out_dir
    )

    assert result.diff_map.created is True
    with Image.open(result.diff_map.path) as img:
        assert img.size == (8, 5)
        assert img.mode == "RGB"
        assert img.getpixel((0, 0)) == (255, 0, 0)


def test_diff_map_failure_is_reported(solid_buffer, tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory", encoding="utf-8")

    result = compare(
        solid_buffer(4, 4, (0, 0, 0)), solid_buffer(4, 4, (9, 9, 9)), output_dir=blocker
    )

    assert result.diff_map.created is False
    assert result.diff_map.error
    assert result.pixel_difference is not None


def test_disabled_metrics_are_skipped(solid_buffer) -> None:
    config = EngineConfig(
        analysis=AnalysisOptions(enable_pixel_analysis=False, enable_color_analysis=False)
    )

    result = compare(solid_buffer(4, 4, (1, 2, 3)), solid_buffer(4, 4, (1, 2, 3)), config=config)

    assert result.pixel_difference is None
    assert result.color_difference is None
    assert result.structural_similarity is not None
    assert result.layout_difference is not None


def test_disabled_pixel_analysis_skips_regions_and_map(
    block_array, tmp_path: Path
) -> None:
    config = EngineConfig(analysis=AnalysisOptions(enable_pixel_analysis=False))

    result = compare(
        from_array(block_array(60, 60, 0, 0, 0, 0)),
        from_array(block_array(60, 60, 10, 10, 20, 20)),
        config=config,
        output_dir=tmp_path,
    )

    assert result.regions == []
    assert result.diff_map is None
    assert not (tmp_path / DIFFERENCE_MAP_NAME).exists()


def test_no_metric_raises_analysis_error() -> None:
    empty = PixelBuffer(width=0, height=0, channels=3, data=b"")

    with pytest.raises(AnalysisError):
        compare(empty, empty)

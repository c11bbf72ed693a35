from __future__ import annotations

import numpy as np
import pytest

from visual_analysis.errors import EmptyBufferError
from visual_analysis.extract.decode import from_array
from visual_analysis.features.layout import analyze_layout, grid_bounds
from visual_analysis.io.models import REGION_KEYS, PixelBuffer


def test_uniform_gray_spreads_mass_evenly(solid_buffer) -> None:
    layout = analyze_layout(solid_buffer(9, 9, (128, 128, 128)))

    regions = layout.composition.regions
    assert list(regions) == list(REGION_KEYS)
    assert all(value == 11 for value in regions.values())
    assert layout.composition.balance.overall == 0
    assert layout.whitespace.percentage == 0
    assert layout.whitespace.density == 100


def test_pure_white_has_no_content(solid_buffer) -> None:
    layout = analyze_layout(solid_buffer(9, 9, (255, 255, 255)))

    assert set(layout.composition.regions.values()) == {0}
    assert layout.whitespace.percentage == 100
    assert layout.whitespace.density == 0
    assert layout.composition.rule_of_thirds.adherence == "poor"


def test_corner_content_follows_rule_of_thirds() -> None:
    pixels = np.full((9, 9, 3), 255, dtype=np.uint8)
    pixels[:3, :3] = 0

    composition = analyze_layout(from_array(pixels)).composition

    assert composition.regions["topLeft"] == 100
    assert composition.regions["bottomRight"] == 0
    assert composition.balance.horizontal == 100
    assert composition.balance.vertical == 100
    assert composition.balance.overall == 100.0
    assert composition.rule_of_thirds.intersection_focus == 100
    assert composition.rule_of_thirds.adherence == "good"


def test_centered_content_is_poor_adherence() -> None:
    pixels = np.full((9, 9, 3), 255, dtype=np.uint8)
    pixels[3:6, 3:6] = 0

    rule = analyze_layout(from_array(pixels)).composition.rule_of_thirds

    assert rule.center_focus == 100
    assert rule.intersection_focus == 0
    assert rule.adherence == "poor"


def test_whitespace_distribution_by_band() -> None:
    pixels = np.zeros((9, 9, 3), dtype=np.uint8)
    pixels[:, :3] = 255

    whitespace = analyze_layout(from_array(pixels)).whitespace

    assert whitespace.percentage == 33
    assert whitespace.distribution == {
        "top": 33,
        "bottom": 33,
        "left": 100,
        "right": 0,
        "center": 0,
    }


def test_grid_bounds_give_remainder_to_last_cell() -> None:
    assert grid_bounds(10, 7) == ((0, 3, 6, 10), (0, 2, 4, 7))


def test_alignment_detection_reports_nothing(solid_buffer) -> None:
    alignment = analyze_layout(solid_buffer(6, 6, (0, 0, 0))).alignment

    assert alignment.vertical_lines == []
    assert alignment.horizontal_lines == []
    assert alignment.grid_structure.detected is False


def test_empty_buffer_rejected() -> None:
    with pytest.raises(EmptyBufferError):
        analyze_layout(PixelBuffer(width=0, height=0, channels=4, data=b""))

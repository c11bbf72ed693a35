from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from visual_analysis.compare.regions import (
    analyze_difference_image,
    classify_region,
    detect_regions,
    find_regions,
    region_confidence,
)
from visual_analysis.io.models import Region


def _intensity(width: int, height: int) -> np.ndarray:
    return np.zeros((height, width), dtype=np.uint8)


def test_single_block_gives_inclusive_bounds() -> None:
    intensity = _intensity(100, 100)
    intensity[30:50, 40:60] = 200

    [region] = detect_regions(intensity)

    assert (region.x, region.y, region.width, region.height) == (40, 30, 20, 20)
    assert region.pixel_count == 400
    assert region.intensity == 200.0
    assert region.type == "typography"
    assert region.confidence == 55


def test_small_components_are_dropped() -> None:
    intensity = _intensity(50, 50)
    intensity[5:10, 5:10] = 255

    assert detect_regions(intensity) == []


def test_threshold_is_exclusive() -> None:
    intensity = np.full((20, 20), 50, dtype=np.uint8)

    assert find_regions(intensity, 20, 20) == []
    assert len(find_regions(intensity + 1, 20, 20)) == 1


def test_regions_come_out_in_scan_order() -> None:
    intensity = _intensity(100, 100)
    intensity[50:62, 5:17] = 120
    intensity[10:20, 70:80] = 220

    regions = find_regions(intensity, 100, 100)

    assert [(r.x, r.y) for r in regions] == [(70, 10), (5, 50)]


def test_diagonal_neighbours_are_separate_components() -> None:
    intensity = _intensity(4, 4)
    intensity[0, 0] = 255
    intensity[1, 1] = 255

    regions = find_regions(intensity, 4, 4, min_size=1)

    assert len(regions) == 2


def test_find_regions_accepts_raw_bytes() -> None:
    data = bytes([255] * 100 + [0] * 100)

    [region] = find_regions(data, 10, 20)

    assert (region.width, region.height) == (10, 10)


def test_find_regions_rejects_wrong_length() -> None:
    with pytest.raises(ValueError):
        find_regions(b"\x00" * 10, 4, 4)


def test_large_region_does_not_recurse() -> None:
    intensity = np.full((300, 300), 255, dtype=np.uint8)

    [region] = detect_regions(intensity)

    assert region.pixel_count == 90_000
    assert region.type == "imagery"
    assert region.confidence == 100


@pytest.mark.parametrize(
    ("width", "height", "expected"),
    [
        (100, 10, "layout"),
        (10, 100, "layout"),
        (20, 20, "typography"),
        (300, 300, "imagery"),
        (100, 100, "color"),
    ],
)
def test_classify_region(width: int, height: int, expected: str) -> None:
    region = Region(x=0, y=0, width=width, height=height, pixel_count=width * height, intensity=100.0)

    assert classify_region(region) == expected


def test_region_confidence_caps_size_score() -> None:
    region = Region(x=0, y=0, width=50, height=50, pixel_count=5000, intensity=0.0)

    assert region_confidence(region) == 60


def test_difference_image_on_disk(write_image, block_array) -> None:
    path = write_image("diff.png", block_array(60, 60, 10, 15, 20, 20))

    [region] = analyze_difference_image(path)

    assert (region.x, region.y, region.width, region.height) == (10, 15, 20, 20)
    assert region.intensity == 255.0
    assert region.confidence == 64


def test_difference_image_missing(tmp_path: Path) -> None:
    assert analyze_difference_image(tmp_path / "missing.png") == []


def test_difference_image_unreadable(tmp_path: Path) -> None:
    path = tmp_path / "broken.png"
    path.write_bytes(b"not an image")

    assert analyze_difference_image(path) == []

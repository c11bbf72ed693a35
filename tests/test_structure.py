from __future__ import annotations

import numpy as np
import pytest

from visual_analysis.errors import EmptyBufferError
from visual_analysis.extract.decode import from_array
from visual_analysis.features.structure import (
    analyze_structure,
    calculate_complexity,
    count_edges,
    edge_map,
    grayscale,
)
from visual_analysis.io.models import PixelBuffer


def test_uniform_image_has_no_edges(solid_buffer) -> None:
    profile = analyze_structure(solid_buffer(12, 8, (90, 120, 30)))

    assert profile.edge_count == 0
    assert profile.complexity.complexity == 0
    assert profile.complexity.edge_density == 0.0
    assert profile.symmetry.horizontal == 100
    assert profile.symmetry.vertical == 100


def test_single_bright_pixel_is_one_edge() -> None:
    pixels = np.zeros((9, 9, 3), dtype=np.uint8)
    pixels[4, 4] = 255

    edges = edge_map(from_array(pixels))

    assert edges[4, 4] == 255
    assert edges[4, 3] == 0
    assert count_edges(edges) == 1


def test_mirrored_image_is_horizontally_symmetric() -> None:
    rng = np.random.default_rng(7)
    left = rng.integers(0, 256, size=(20, 10, 3), dtype=np.uint8)
    pixels = np.concatenate([left, left[:, ::-1]], axis=1)

    profile = analyze_structure(from_array(pixels))

    assert profile.symmetry.horizontal == 100


def test_complexity_blends_density_and_variation() -> None:
    edges = np.zeros((10, 10), dtype=np.uint8)
    edges[:5] = 255

    complexity = calculate_complexity(edges)

    assert complexity.edge_density == 50.0
    assert complexity.variation == 128
    assert complexity.complexity == 50


def test_grayscale_uses_luma_weights(solid_buffer) -> None:
    assert grayscale(solid_buffer(2, 2, (255, 0, 0)))[0, 0] == 76


def test_empty_buffer_rejected() -> None:
    with pytest.raises(EmptyBufferError):
        analyze_structure(PixelBuffer(width=0, height=3, channels=3, data=b""))

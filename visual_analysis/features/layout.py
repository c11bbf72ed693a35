"""Composition, balance and whitespace features on a 3x3 grid."""

from __future__ import annotations

from typing import Dict, Tuple

import numpy as np

from ..errors import EmptyBufferError
from ..io.models import (
    REGION_KEYS,
    Alignment,
    Balance,
    Composition,
    GridStructure,
    LayoutProfile,
    PixelBuffer,
    RuleOfThirds,
    Whitespace,
)
from ..mathutils import round_int
from .structure import grayscale

WHITE_THRESHOLD = 240


def analyze_layout(buffer: PixelBuffer) -> LayoutProfile:
    if buffer.is_empty():
        raise EmptyBufferError("Cannot analyze layout of an empty image")

    gray = grayscale(buffer)
    return LayoutProfile(
        composition=analyze_composition(gray),
        whitespace=analyze_whitespace(gray),
        alignment=analyze_alignment(gray),
    )


def grid_bounds(width: int, height: int) -> Tuple[Tuple[int, int, int, int], Tuple[int, int, int, int]]:
    """Return column and row edges of the 3x3 grid.

    Boundaries sit at ``floor(size / 3)`` and twice that; the last column and
    row absorb any remainder.
    """
    third_w = width // 3
    third_h = height // 3
    return (0, third_w, 2 * third_w, width), (0, third_h, 2 * third_h, height)


def analyze_composition(gray: np.ndarray) -> Composition:
    """Distribute inverted-luma "content mass" over the rule-of-thirds grid.

    Each region is rounded to a whole percentage on its own, so the nine
    values may sum to 99 or 101.
    """
    height, width = gray.shape
    weights = 255 - gray.astype(np.int64)
    cols, rows = grid_bounds(width, height)

    total = int(weights.sum())
    regions: Dict[str, int] = {}
    keys = iter(REGION_KEYS)
    for row in range(3):
        for col in range(3):
            key = next(keys)
            mass = int(weights[rows[row] : rows[row + 1], cols[col] : cols[col + 1]].sum())
            regions[key] = round_int(mass / total * 100) if total else 0

    return Composition(
        regions=regions,
        balance=calculate_balance(regions),
        rule_of_thirds=evaluate_rule_of_thirds(regions),
    )


def calculate_balance(regions: Dict[str, int]) -> Balance:
    left = regions["topLeft"] + regions["centerLeft"] + regions["bottomLeft"]
    right = regions["topRight"] + regions["centerRight"] + regions["bottomRight"]
    top = regions["topLeft"] + regions["topCenter"] + regions["topRight"]
    bottom = regions["bottomLeft"] + regions["bottomCenter"] + regions["bottomRight"]

    horizontal = abs(left - right)
    vertical = abs(top - bottom)
    return Balance(horizontal=horizontal, vertical=vertical, overall=(horizontal + vertical) / 2)


def evaluate_rule_of_thirds(regions: Dict[str, int]) -> RuleOfThirds:
    """Corners should carry more weight than the dead center."""
    intersections = (
        regions["topLeft"] + regions["topRight"] + regions["bottomLeft"] + regions["bottomRight"]
    )
    center = regions["center"]
    return RuleOfThirds(
        intersection_focus=intersections,
        center_focus=center,
        adherence="good" if intersections > center else "poor",
    )


def analyze_whitespace(gray: np.ndarray, white_threshold: int = WHITE_THRESHOLD) -> Whitespace:
    total = gray.size
    white = gray > white_threshold
    white_pixels = int(np.count_nonzero(white))
    content_pixels = total - white_pixels
    return Whitespace(
        percentage=round_int(white_pixels / total * 100) if total else 0,
        density=round_int(content_pixels / total * 100) if total else 0,
        distribution=whitespace_distribution(white),
    )


def whitespace_distribution(white: np.ndarray) -> Dict[str, int]:
    """Share of whitespace in the outer thirds and the center cell."""
    height, width = white.shape
    cols, rows = grid_bounds(width, height)
    bands = {
        "top": white[rows[0] : rows[1], :],
        "bottom": white[rows[2] : rows[3], :],
        "left": white[:, cols[0] : cols[1]],
        "right": white[:, cols[2] : cols[3]],
        "center": white[rows[1] : rows[2], cols[1] : cols[2]],
    }
    return {
        name: round_int(np.count_nonzero(band) / band.size * 100) if band.size else 0
        for name, band in bands.items()
    }


def analyze_alignment(gray: np.ndarray) -> Alignment:
    """Alignment-line and grid detection are not implemented yet."""
    return Alignment(
        vertical_lines=detect_vertical_lines(gray),
        horizontal_lines=detect_horizontal_lines(gray),
        grid_structure=detect_grid_structure(gray),
    )


def detect_vertical_lines(gray: np.ndarray) -> list[int]:
    return []


def detect_horizontal_lines(gray: np.ndarray) -> list[int]:
    return []


def detect_grid_structure(gray: np.ndarray) -> GridStructure:
    return GridStructure()

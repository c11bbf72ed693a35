"""Edge-based structural features."""

from __future__ import annotations

import math

import cv2
import numpy as np

from ..errors import EmptyBufferError
from ..io.models import Complexity, PixelBuffer, StructuralProfile, Symmetry
from ..mathutils import round1, round_int

EDGE_THRESHOLD = 50
# Maximum mean absolute difference of a mirrored pixel pair.
_SYMMETRY_NORMALISER = 127.5

_HIGH_PASS_KERNEL = np.array(
    [
        [-1, -1, -1],
        [-1, 8, -1],
        [-1, -1, -1],
    ],
    dtype=np.float32,
)


def grayscale(buffer: PixelBuffer) -> np.ndarray:
    """Return the luma of *buffer* as a new ``(H, W)`` uint8 array."""
    return np.clip(np.floor(buffer.luma() + 0.5), 0, 255).astype(np.uint8)


def edge_map(buffer: PixelBuffer) -> np.ndarray:
    """Return edge intensities (0-255) from a 3x3 high-pass convolution."""
    gray = grayscale(buffer).astype(np.float32)
    response = cv2.filter2D(gray, cv2.CV_32F, _HIGH_PASS_KERNEL, borderType=cv2.BORDER_REPLICATE)
    return np.clip(response, 0, 255).astype(np.uint8)


def analyze_structure(buffer: PixelBuffer) -> StructuralProfile:
    if buffer.is_empty():
        raise EmptyBufferError("Cannot analyze structure of an empty image")

    edges = edge_map(buffer)
    return StructuralProfile(
        edge_count=count_edges(edges),
        complexity=calculate_complexity(edges),
        symmetry=calculate_symmetry(edges),
    )


def count_edges(edges: np.ndarray, threshold: int = EDGE_THRESHOLD) -> int:
    return int(np.count_nonzero(edges > threshold))


def calculate_complexity(edges: np.ndarray) -> Complexity:
    """Blend edge density and the spread of edge strengths into a 0-100 score."""
    total = edges.size
    if total == 0:
        return Complexity(edge_density=0.0, variation=0, complexity=0)

    density = count_edges(edges) / total
    variation = float(np.std(edges.astype(np.float64)))
    return Complexity(
        edge_density=round1(density * 100),
        variation=round_int(variation),
        complexity=round_int(density * 50 + variation / 255 * 50),
    )


def calculate_symmetry(edges: np.ndarray) -> Symmetry:
    """Score left/right and top/bottom mirror symmetry of an edge map.

    100 means perfectly symmetric. The score is not clamped and goes below
    zero for strongly asymmetric images.
    """
    height, width = edges.shape[:2]
    total = width * height
    if total == 0:
        return Symmetry(horizontal=100, vertical=100)

    values = edges.astype(np.int32)
    half_w = math.ceil(width / 2)
    half_h = math.ceil(height / 2)
    horizontal_diff = np.abs(values[:, :half_w] - values[:, ::-1][:, :half_w]).sum()
    vertical_diff = np.abs(values[:half_h, :] - values[::-1, :][:half_h, :]).sum()

    normaliser = total * _SYMMETRY_NORMALISER
    return Symmetry(
        horizontal=round_int((1 - float(horizontal_diff) / normaliser) * 100),
        vertical=round_int((1 - float(vertical_diff) / normaliser) * 100),
    )

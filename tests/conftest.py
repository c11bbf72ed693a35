"""Shared fixtures: synthetic images as arrays, buffers and files."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import numpy as np
import pytest
from PIL import Image

from visual_analysis.extract.decode import from_array
from visual_analysis.io.models import PixelBuffer


def _solid(width: int, height: int, color: tuple[int, ...]) -> np.ndarray:
    return np.full((height, width, len(color)), color, dtype=np.uint8)


@pytest.fixture
def solid_array() -> Callable[..., np.ndarray]:
    """Factory for single-color ``(H, W, C)`` arrays."""
    return _solid


@pytest.fixture
def solid_buffer() -> Callable[..., PixelBuffer]:
    def factory(width: int, height: int, color: tuple[int, ...]) -> PixelBuffer:
        return from_array(_solid(width, height, color))

    return factory


@pytest.fixture
def write_image(tmp_path: Path) -> Callable[[str, np.ndarray], Path]:
    """Factory saving an array as PNG under ``tmp_path``."""

    def factory(name: str, pixels: np.ndarray) -> Path:
        path = tmp_path / name
        Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8)).save(path, format="PNG")
        return path

    return factory


@pytest.fixture
def block_array() -> Callable[..., np.ndarray]:
    """Factory for a black canvas with one white rectangle."""

    def factory(width: int, height: int, x: int, y: int, w: int, h: int) -> np.ndarray:
        canvas = np.zeros((height, width, 3), dtype=np.uint8)
        canvas[y : y + h, x : x + w] = 255
        return canvas

    return factory

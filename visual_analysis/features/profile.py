"""Per-image analysis combining the individual feature extractors."""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

import cv2

from ..errors import VisualAnalysisError
from ..io.models import ImageAnalysis, ImageMetadata, PixelBuffer
from .color import analyze_colors
from .layout import analyze_layout
from .perceptual import compute_hashes
from .structure import analyze_structure

logger = logging.getLogger(__name__)

T = TypeVar("T")


def profile_image(
    buffer: PixelBuffer,
    path: str | None = None,
    image_format: str | None = None,
    file_size: int | None = None,
) -> ImageAnalysis:
    """Run every per-image analyzer on *buffer*.

    A failing analyzer is logged and leaves its profile as ``None`` so the
    remaining profiles are still available.
    """
    label = path or "<buffer>"
    return ImageAnalysis(
        path=path,
        metadata=ImageMetadata(
            width=buffer.width,
            height=buffer.height,
            channels=buffer.channels,
            format=image_format,
            size=file_size,
        ),
        color_analysis=run_stage("color analysis", label, analyze_colors, buffer),
        structural_analysis=run_stage("structure analysis", label, analyze_structure, buffer),
        layout_analysis=run_stage("layout analysis", label, analyze_layout, buffer),
        perceptual=run_stage("perceptual hashing", label, compute_hashes, buffer) or {},
    )


def run_stage(stage: str, label: str, func: Callable[..., T], *args: object) -> T | None:
    """Call *func* and convert engine or numeric errors into ``None``."""
    try:
        return func(*args)
    except (VisualAnalysisError, ValueError, ArithmeticError, cv2.error) as exc:
        logger.warning("%s failed for %s: %s", stage.capitalize(), label, exc)
        logger.debug("%s traceback", stage, exc_info=True)
        return None

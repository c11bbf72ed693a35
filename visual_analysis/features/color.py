"""Color distribution, palette and tone statistics."""

from __future__ import annotations

import math
from typing import Dict, List, Mapping

import numpy as np

from ..errors import EmptyBufferError
from ..io.models import ChannelStats, ColorProfile, DominantColor, PixelBuffer
from ..mathutils import round1, round_int

_CHANNEL_NAMES = ("red", "green", "blue")
_SAMPLE_STRIDE = 10
_QUANT_STEP = 32


def analyze_colors(buffer: PixelBuffer, max_colors: int = 5) -> ColorProfile:
    """Return the full color profile for *buffer*."""
    if buffer.is_empty():
        raise EmptyBufferError("Cannot analyze colors of an empty image")

    brightness = average_brightness(buffer)
    return ColorProfile(
        distribution=color_distribution(buffer),
        dominant_colors=extract_dominant_colors(buffer, max_colors=max_colors),
        variance=color_variance(buffer),
        average_brightness=brightness,
        contrast=rms_contrast(buffer, brightness),
    )


def color_distribution(buffer: PixelBuffer) -> Dict[str, ChannelStats]:
    """Return a 256-bucket histogram and rounded mean for each RGB channel."""
    pixels = buffer.rgb().reshape(-1, 3)
    distribution: Dict[str, ChannelStats] = {}
    for index, name in enumerate(_CHANNEL_NAMES):
        channel = pixels[:, index]
        histogram = np.bincount(channel, minlength=256)
        mean = round_int(float(channel.sum(dtype=np.int64)) / len(channel)) if len(channel) else 0
        distribution[name] = ChannelStats(histogram=histogram.tolist(), mean=mean)
    return distribution


def extract_dominant_colors(buffer: PixelBuffer, max_colors: int = 5) -> List[DominantColor]:
    """Return up to *max_colors* quantized colors ordered by frequency.

    Every tenth pixel is sampled and each channel is snapped to a 32-wide
    bucket. Colors with equal counts keep the order in which they were first
    sampled.
    """
    if max_colors <= 0:
        return []
    sampled = buffer.rgb().reshape(-1, 3)[::_SAMPLE_STRIDE]
    if not len(sampled):
        return []

    quantized = (sampled.astype(np.int64) // _QUANT_STEP) * _QUANT_STEP
    keys = (quantized[:, 0] << 16) | (quantized[:, 1] << 8) | quantized[:, 2]
    unique_keys, first_seen, counts = np.unique(keys, return_index=True, return_counts=True)
    order = np.lexsort((first_seen, -counts))[:max_colors]

    total = len(sampled)
    colors: List[DominantColor] = []
    for idx in order:
        key = int(unique_keys[idx])
        r, g, b = (key >> 16) & 0xFF, (key >> 8) & 0xFF, key & 0xFF
        count = int(counts[idx])
        colors.append(
            DominantColor(
                rgb={"r": r, "g": g, "b": b},
                hex=rgb_to_hex(r, g, b),
                frequency=count,
                percentage=round1(count / total * 100),
            )
        )
    return colors


def color_variance(buffer: PixelBuffer) -> Dict[str, int]:
    """Return the population variance of each channel and their mean."""
    pixels = buffer.rgb().reshape(-1, 3).astype(np.float64)
    if not len(pixels):
        return {"red": 0, "green": 0, "blue": 0, "overall": 0}
    means = pixels.mean(axis=0)
    variances = ((pixels - means) ** 2).mean(axis=0)
    result = {name: round_int(float(variances[i])) for i, name in enumerate(_CHANNEL_NAMES)}
    result["overall"] = round_int(float(variances.sum()) / 3)
    return result


def average_brightness(buffer: PixelBuffer) -> int:
    """Mean luma of the image, rounded to an integer."""
    if buffer.is_empty():
        return 0
    return round_int(float(buffer.luma().mean()))


def rms_contrast(buffer: PixelBuffer, brightness: int | None = None) -> int:
    """Root-mean-square deviation of per-pixel luma from the average brightness."""
    if buffer.is_empty():
        return 0
    if brightness is None:
        brightness = average_brightness(buffer)
    deviation = buffer.luma() - brightness
    return round_int(math.sqrt(float((deviation**2).mean())))


def rgb_to_hex(r: int, g: int, b: int) -> str:
    return f"#{r:02x}{g:02x}{b:02x}"


def color_distance(color_a: Mapping[str, int], color_b: Mapping[str, int]) -> float:
    """Euclidean distance between two ``{"r", "g", "b"}`` colors."""
    return math.sqrt(
        (color_a["r"] - color_b["r"]) ** 2
        + (color_a["g"] - color_b["g"]) ** 2
        + (color_a["b"] - color_b["b"]) ** 2
    )

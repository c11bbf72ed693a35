"""Rounding helpers shared by the analyzers."""

from __future__ import annotations

import math

# sqrt(255^2 * 3), the largest Euclidean distance between two RGB colors.
MAX_RGB_DISTANCE = math.sqrt(3 * 255.0**2)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round *value* to *digits* decimals with halves rounded towards +inf."""
    factor = 10.0**digits
    return math.floor(value * factor + 0.5) / factor


def round_int(value: float) -> int:
    """Round *value* half-up and return it as an ``int``."""
    return int(math.floor(value + 0.5))


def round1(value: float) -> float:
    return round_half_up(value, 1)

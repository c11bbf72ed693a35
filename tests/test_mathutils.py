from __future__ import annotations

import math

from visual_analysis.mathutils import MAX_RGB_DISTANCE, round1, round_half_up, round_int


def test_halves_round_up() -> None:
    assert round_int(2.5) == 3
    assert round_int(3.5) == 4
    assert round_int(-2.5) == -2
    assert round_half_up(2.25, 1) == 2.3
    assert round1(99.96) == 100.0


def test_max_rgb_distance() -> None:
    assert math.isclose(MAX_RGB_DISTANCE, 441.6729559300637)

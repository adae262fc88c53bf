"""Rounding shared by pricing, rewards and scoring."""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 ties going up (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)

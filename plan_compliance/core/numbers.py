"""Small numeric helpers shared by scoring code."""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up.

    Python's built-in round() uses banker's rounding (round(62.5) == 62),
    which makes scores drift by one point depending on parity.
    """
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    """Round a score and clamp it into [0, 100]."""
    return max(0, min(100, round_half_up(value)))

"""Small numeric helpers shared by the signals, the scorer and the fusion step."""

import math
from typing import Union

Number = Union[int, float]


def round_half_up(value: Number) -> int:
    """
    Round to the nearest integer, halves going up (2.5 -> 3).

    Python's round() rounds halves to even, which would move scores and
    percentages sitting exactly on a .5 boundary. The value is first
    rounded to 9 decimals so weighted sums like 95.49999999999999 count
    as 95.5.
    """
    return int(math.floor(round(value, 9) + 0.5))


def format_pct(value: Number) -> str:
    """Render a percentage without a trailing '.0' (85.0 -> '85', 85.5 -> '85.5')."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"

"""
Numeric helpers for day quantities.

Every day count, allocation, deduction and refund in the ledger is a multiple
of 0.5. ``round_half_day`` is the only place that rounding happens.
"""
import math
from typing import Any, Optional


def to_number(value: Any, fallback: Optional[float] = 0.0) -> Optional[float]:
    """
    Coerce a JSON-ish value to a finite float.

    Numbers and numeric strings convert; None, booleans, blank or non-numeric
    strings and non-finite values return ``fallback``.
    """
    if value is None or isinstance(value, bool):
        return fallback
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return fallback
        try:
            number = float(text)
        except ValueError:
            return fallback
    else:
        return fallback
    return number if math.isfinite(number) else fallback


def round_half_day(value: Any, fallback: float = 0.0) -> float:
    """
    Round to the nearest half day, halves rounding up (2.25 -> 2.5, 2.75 -> 3.0).

    Non-numeric input returns ``fallback``.
    """
    number = to_number(value, None)
    if number is None:
        return fallback
    rounded = math.floor(number * 2 + 0.5) / 2
    # Normalise -0.0 so it serialises as 0
    return rounded + 0.0


def as_json_number(value: float):
    """Whole numbers as int (5 rather than 5.0) for JSON output."""
    if float(value).is_integer():
        return int(value)
    return float(value)


def clamp(value: float, low: float, high: Optional[float] = None) -> float:
    """Clamp into [low, high]; an open upper bound when ``high`` is None."""
    if high is not None and value > high:
        value = high
    return max(low, value)

"""
utils.py - Small shared helpers for StudyFlow

- Numeric coercion for loosely-typed client input.
- Rounding that matches the dashboard's published precision (half away from zero).
- The success envelope every endpoint returns.
"""

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional, Union


def coerce_number(value: Any, default: float = 0.0) -> float:
    """
    Convert a loosely-typed value to a finite float.

    None, empty strings, non-numeric strings, booleans, NaN and infinities all
    become `default`.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return number


def round_half_away(value: float, ndigits: int = 0) -> Union[int, float]:
    """
    Round with ties going away from zero (2.5 -> 3, -2.5 -> -3, 4.125 -> 4.13).

    Python's built-in round() uses banker's rounding and binary float ties,
    which does not match the displayed precision. Returns an int when
    ndigits == 0.
    """
    quantum = Decimal(1).scaleb(-ndigits)
    rounded = Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP)
    if ndigits == 0:
        return int(rounded)
    return float(rounded)


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def api_response(data: Any = None, message: str = "OK", status: str = "success") -> dict:
    """Standard success envelope: {"status", "message", "data"}."""
    return {"status": status, "message": message, "data": data}


def first_name_of(full_name: Optional[str], default: str = "User") -> str:
    if not full_name or not full_name.strip():
        return default
    return full_name.strip().split()[0]

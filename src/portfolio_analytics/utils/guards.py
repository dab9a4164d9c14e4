"""
Arithmetic guards.

Zero denominators (elapsed months, budget totals, available FTE) are
handled locally and return a defined sentinel, never NaN or Infinity.
"""

import math
from typing import Optional


def safe_divide(numerator: float, denominator: Optional[float], default: Optional[float] = 0.0) -> Optional[float]:
    """Return numerator / denominator, or default when the denominator is 0, None or non-finite."""
    if denominator is None or denominator == 0 or not math.isfinite(denominator):
        return default
    result = numerator / denominator
    if not math.isfinite(result):
        return default
    return result


def round_fte(value: float) -> float:
    """FTE figures are reported with two decimals."""
    return round(float(value), 2)

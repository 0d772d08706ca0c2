"""Numeric coercion helpers shared by every timeline and preview function.

Upstream documents are hand-authored JSON, so any numeric field may arrive as
None, a string, NaN or infinity. These helpers turn such values into safe
finite fallbacks instead of raising.
"""

import math
from typing import Any


def to_finite(value: Any, fallback: float = 0.0) -> float:
    """Convert value to a finite float, or return fallback."""
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    return number if math.isfinite(number) else fallback


def is_finite_number(value: Any) -> bool:
    return math.isfinite(to_finite(value, math.nan))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp01(value: Any) -> float:
    return clamp(to_finite(value, 0.0), 0.0, 1.0)

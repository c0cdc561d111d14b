"""
Zero-safe arithmetic shared by the analytics services.

Every ratio in the package goes through `safe_rate`/`safe_mean`, so an
empty collection produces 0 instead of ZeroDivisionError, NaN or inf.
"""

import math
from datetime import datetime
from typing import Iterable, Optional

SECONDS_PER_DAY = 86400


def safe_rate(numerator: float, denominator: float, scale: float = 100.0) -> float:
    """numerator / denominator * scale, or 0 when the denominator is 0."""
    if not denominator:
        return 0.0
    value = numerator / denominator * scale
    return value if math.isfinite(value) else 0.0


def safe_mean(values: Iterable[float]) -> float:
    """Arithmetic mean of the finite values, 0 for an empty input."""
    total = 0.0
    count = 0
    for value in values:
        if value is None or not math.isfinite(value):
            continue
        total += value
        count += 1
    return total / count if count else 0.0


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves away from -inf.

    Matches the rounding the dashboards have always shown (2.5 -> 3), unlike
    Python's round() which rounds halves to even.
    """
    return int(math.floor(value + 0.5))


def days_between(start: Optional[datetime], end: Optional[datetime]) -> Optional[float]:
    """Elapsed days from start to end, None when either side is missing."""
    if start is None or end is None:
        return None
    return (end - start).total_seconds() / SECONDS_PER_DAY

"""Driver rating aggregation helpers."""

from __future__ import annotations

import math
from typing import Optional

from .entities import DriverRating


def round_half_up(value: float, digits: int = 1) -> float:
    """Round like ``Math.round(x * 10) / 10`` rather than banker's rounding."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def summarize(average: Optional[float], count: int) -> DriverRating:
    """Build a ``DriverRating`` from raw SQL ``AVG`` / ``COUNT`` results."""
    if not count or average is None:
        return DriverRating(average=0.0, count=0)
    return DriverRating(average=round_half_up(float(average)), count=int(count))

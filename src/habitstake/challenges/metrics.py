"""Derived challenge figures: completion rate, day counts, success rate."""

from __future__ import annotations

import math
from datetime import datetime, timezone

SECONDS_PER_DAY = 86_400


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def round_half_up(x: float) -> int:
    """Round to the nearest integer, halves away from zero for x >= 0."""
    return math.floor(x + 0.5)


def completion_rate(current_value: float, target_value: float) -> int:
    """Percent of target reached, capped at 100."""
    if target_value <= 0:
        return 0
    return min(100, round_half_up(current_value / target_value * 100))


def ceil_days(start: datetime, end: datetime) -> int:
    """Whole days from start to end, rounded up (negative if end precedes start)."""
    return math.ceil((end - start).total_seconds() / SECONDS_PER_DAY)


def success_rate(values: list[float]) -> int:
    """Share of entries with a positive value, as a percentage. 0 with no entries."""
    if not values:
        return 0
    positive = sum(1 for v in values if v > 0)
    return round_half_up(positive / len(values) * 100)

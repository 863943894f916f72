from __future__ import annotations

from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, places: int = 0) -> Decimal:
    """Round ``value`` to ``places`` decimals with halves rounded up."""
    quantum = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)


def minutes_between(start: datetime, end: datetime) -> int:
    """
    Whole minutes from ``start`` to ``end``, half a minute rounding up.

    A 30m30s interval is 31 minutes.
    """
    return int(round_half_up((end - start) / timedelta(minutes=1)))


def utilization_rate(booked_minutes: float, available_minutes: float) -> float:
    """
    Booked share of available time as a percentage with two decimals.

    Zero available time gives 0.0.
    """
    if available_minutes <= 0:
        return 0.0
    return float(round_half_up(booked_minutes / available_minutes * 100, 2))

"""
Month-over-month trend of income and expenses.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping

from finboard.database.models import to_decimal
from .periods import PeriodTotals

METRICS = ("income", "expenses")


@dataclass(frozen=True)
class Trend:
    """Direction and size of change between the last two periods."""

    direction: str  # "up", "down" or "neutral"
    percent: str  # e.g. "12.5%"


NEUTRAL = Trend(direction="neutral", percent="0%")


def trend(monthly_buckets: Mapping[str, PeriodTotals], metric: str) -> Trend:
    """
    Compare the last two buckets of a series for one metric.

    A previous value of zero always reports "up" 100%, whatever the
    current value is.

    Args:
        monthly_buckets: Ordered series, oldest first
        metric: "income" or "expenses"

    Returns:
        Trend for the metric

    Raises:
        ValueError: If metric is unknown
    """
    if metric not in METRICS:
        raise ValueError(f"Unknown metric: {metric}")

    periods = list(monthly_buckets.values())
    if len(periods) < 2:
        return NEUTRAL

    current = to_decimal(getattr(periods[-1], metric))
    previous = to_decimal(getattr(periods[-2], metric))

    if previous == 0:
        return Trend(direction="up", percent="100%")

    change: Decimal = (current - previous) / previous * 100
    if change > 0:
        direction = "up"
    elif change < 0:
        direction = "down"
    else:
        direction = "neutral"

    # Ties round up, e.g. 0.25 -> "0.3%"
    rounded = abs(change).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return Trend(direction=direction, percent=f"{rounded}%")

"""
Time bucketing of income and expenses for the dashboard charts.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Iterable

from finboard.database.models import (
    ZERO,
    Transaction,
    TransactionType,
    parse_date,
    to_decimal,
)

WEEK_BUCKETS = 6
MONTH_BUCKETS = 6
YEAR_BUCKETS = 3

MONTH_ABBREVIATIONS = {
    "es": [
        "ene", "feb", "mar", "abr", "may", "jun",
        "jul", "ago", "sept", "oct", "nov", "dic",
    ],
    "en": [
        "Jan", "Feb", "Mar", "Apr", "May", "Jun",
        "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
    ],
}


@dataclass
class PeriodTotals:
    """Income and expenses accumulated in one period."""

    income: Decimal = ZERO
    expenses: Decimal = ZERO


@dataclass(frozen=True)
class Bucket:
    label: str
    start: date
    end: date  # inclusive


def _week_start(day: date) -> date:
    """Sunday on or before the given day."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def _add_months(day: date, months: int) -> date:
    """First day of the month shifted by the given number of months."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def week_buckets(reference_date: date, count: int = WEEK_BUCKETS) -> list[Bucket]:
    current = _week_start(reference_date)
    buckets = []
    for i in range(count - 1, -1, -1):
        start = current - timedelta(weeks=i)
        end = start + timedelta(days=6)
        label = f"{start.day}/{start.month} - {end.day}/{end.month}"
        buckets.append(Bucket(label, start, end))
    return buckets


def month_buckets(
    reference_date: date, count: int = MONTH_BUCKETS, locale: str = "es"
) -> list[Bucket]:
    names = MONTH_ABBREVIATIONS.get(locale, MONTH_ABBREVIATIONS["es"])
    buckets = []
    for i in range(count - 1, -1, -1):
        start = _add_months(reference_date, -i)
        end = _add_months(start, 1) - timedelta(days=1)
        label = f"{names[start.month - 1]} {start.year % 100:02d}"
        buckets.append(Bucket(label, start, end))
    return buckets


def year_buckets(reference_date: date, count: int = YEAR_BUCKETS) -> list[Bucket]:
    return [
        Bucket(str(year), date(year, 1, 1), date(year, 12, 31))
        for year in range(reference_date.year - count + 1, reference_date.year + 1)
    ]


def _accumulate(
    transactions: Iterable[Transaction], buckets: list[Bucket]
) -> dict[str, PeriodTotals]:
    """Sum income and expenses into pre-seeded buckets, oldest first."""
    series = {bucket.label: PeriodTotals() for bucket in buckets}

    for transaction in transactions:
        tipo = TransactionType.parse(transaction.tipo)
        if tipo not in (TransactionType.INGRESO, TransactionType.GASTO):
            continue
        when = parse_date(transaction.date)
        if when is None:
            continue

        for bucket in buckets:
            if bucket.start <= when <= bucket.end:
                totals = series[bucket.label]
                amount = to_decimal(transaction.amount)
                if tipo is TransactionType.INGRESO:
                    totals.income += amount
                else:
                    totals.expenses += amount
                break

    return series


def bucket_by_week(
    transactions: Iterable[Transaction], reference_date: date, locale: str = "es"
) -> dict[str, PeriodTotals]:
    """
    Group income and expenses into the last six Sunday-aligned weeks.

    Labels look like "9/6 - 15/6". The locale is accepted for a uniform
    signature; week labels are numeric.
    """
    return _accumulate(transactions, week_buckets(reference_date))


def bucket_by_month(
    transactions: Iterable[Transaction], reference_date: date, locale: str = "es"
) -> dict[str, PeriodTotals]:
    """
    Group income and expenses into the last six calendar months.

    Labels look like "jun 24" (es) or "Jun 24" (en).
    """
    return _accumulate(transactions, month_buckets(reference_date, locale=locale))


def bucket_by_year(
    transactions: Iterable[Transaction], reference_date: date, locale: str = "es"
) -> dict[str, PeriodTotals]:
    """Group income and expenses into the last three calendar years."""
    return _accumulate(transactions, year_buckets(reference_date))


PERIODS: dict[str, Callable[..., dict[str, PeriodTotals]]] = {
    "week": bucket_by_week,
    "month": bucket_by_month,
    "year": bucket_by_year,
}


def bucket_by_period(
    period: str,
    transactions: Iterable[Transaction],
    reference_date: date,
    locale: str = "es",
) -> dict[str, PeriodTotals]:
    """
    Dispatch to the bucketing function for a period selector.

    Raises:
        ValueError: If period is unknown
    """
    if period not in PERIODS:
        raise ValueError(f"Unknown period: {period}")
    return PERIODS[period](transactions, reference_date, locale)

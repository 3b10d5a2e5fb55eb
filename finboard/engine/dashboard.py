"""
Dashboard view-model derivation.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Union

from finboard.database.models import Alert, Goal, Transaction, TransactionFilters
from .alerts import ClassifiedAlerts, classify
from .filters import filter_transactions
from .goals import GoalProgress, with_progress
from .periods import PERIODS, PeriodTotals, bucket_by_period
from .totals import CATEGORY_WINDOWS, Totals, compute_totals, expenses_by_category
from .trend import Trend, trend


@dataclass(frozen=True)
class DashboardState:
    """Everything the dashboard shows, derived from raw records."""

    totals: Totals
    series: dict[str, dict[str, PeriodTotals]]  # period -> label -> totals
    category_expenses: dict[str, dict[str, Decimal]]  # period -> category -> spent
    goals: list[GoalProgress]
    alerts: ClassifiedAlerts
    income_trend: Trend
    expenses_trend: Trend


def build_dashboard(
    transactions: Iterable[Transaction],
    goals: Iterable[Goal],
    alerts: Iterable[Alert],
    now: Union[date, datetime],
    locale: str = "es",
    filters: Optional[TransactionFilters] = None,
) -> DashboardState:
    """
    Derive the complete dashboard state from scratch.

    Args:
        transactions: User's transactions
        goals: User's goals
        alerts: User's alerts
        now: Current date or datetime in the user's timezone
        locale: Locale for month labels
        filters: Optional filters applied to the totals only

    Returns:
        DashboardState
    """
    transactions = list(transactions)
    today = now.date() if isinstance(now, datetime) else now

    series = {
        period: bucket_by_period(period, transactions, today, locale)
        for period in PERIODS
    }
    category_expenses = {
        period: expenses_by_category(transactions, period, today)
        for period in CATEGORY_WINDOWS
    }

    return DashboardState(
        totals=compute_totals(filter_transactions(transactions, filters)),
        series=series,
        category_expenses=category_expenses,
        goals=with_progress(goals, today),
        alerts=classify(alerts, today),
        income_trend=trend(series["month"], "income"),
        expenses_trend=trend(series["month"], "expenses"),
    )

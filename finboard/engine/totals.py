"""
Money aggregation over transaction lists.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable

from finboard.database.models import (
    ZERO,
    Transaction,
    TransactionType,
    parse_date,
    to_decimal,
)

UNCATEGORIZED = "Sin categoría"

# Trailing window, in days, for the category breakdown
CATEGORY_WINDOWS = {"week": 7, "month": 30, "year": 365}

# Every TransactionType must map to a Totals field
TOTALS_FIELD = {
    TransactionType.INGRESO: "ingresos",
    TransactionType.GASTO: "gastos",
    TransactionType.RETIRO: "gastos",  # goal withdrawals count as spending
    TransactionType.AHORRO: "ahorro",
}


@dataclass(frozen=True)
class Totals:
    """Category totals for a set of transactions."""

    ingresos: Decimal = ZERO
    gastos: Decimal = ZERO
    ahorro: Decimal = ZERO
    saldo: Decimal = ZERO


def compute_totals(transactions: Iterable[Transaction]) -> Totals:
    """
    Reduce transactions to income, expense, savings and balance totals.

    Args:
        transactions: Transactions to aggregate

    Returns:
        Totals snapshot where saldo = ingresos - gastos
    """
    sums = {"ingresos": ZERO, "gastos": ZERO, "ahorro": ZERO}

    for transaction in transactions:
        field_name = TOTALS_FIELD.get(TransactionType.parse(transaction.tipo))
        if field_name is None:
            continue
        sums[field_name] += to_decimal(transaction.amount)

    return Totals(saldo=sums["ingresos"] - sums["gastos"], **sums)


def expenses_by_category(
    transactions: Iterable[Transaction], period: str, today: date
) -> dict[str, Decimal]:
    """
    Sum expenses per category over a trailing window ending today.

    Args:
        transactions: Transactions to scan
        period: "week", "month" or "year"
        today: Last day of the window

    Returns:
        Mapping of category name to total spent, in first-seen order

    Raises:
        ValueError: If period is unknown
    """
    if period not in CATEGORY_WINDOWS:
        raise ValueError(f"Unknown period: {period}")

    start = today - timedelta(days=CATEGORY_WINDOWS[period])
    categories: dict[str, Decimal] = {}

    for transaction in transactions:
        if TransactionType.parse(transaction.tipo) is not TransactionType.GASTO:
            continue
        when = parse_date(transaction.date)
        if when is None or not start <= when <= today:
            continue
        category = transaction.category or UNCATEGORIZED
        categories[category] = categories.get(category, ZERO) + to_decimal(
            transaction.amount
        )

    return categories

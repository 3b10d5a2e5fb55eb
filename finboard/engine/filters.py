"""
Client-side transaction filtering.
"""

from typing import Iterable, Optional

from finboard.database.models import Transaction, TransactionFilters, parse_date


def _same_text(value: Optional[str], expected: str) -> bool:
    return (value or "").lower() == expected.lower()


def filter_transactions(
    transactions: Iterable[Transaction], filters: Optional[TransactionFilters]
) -> list[Transaction]:
    """
    Apply date range and category filters to already fetched transactions.

    The date range only applies when both ends are set. Category and
    subcategory comparisons ignore case. Undated transactions never match
    a date range.
    """
    transactions = list(transactions)
    if filters is None or filters.is_empty():
        return transactions

    result = []
    for transaction in transactions:
        if filters.start_date and filters.end_date:
            when = parse_date(transaction.date)
            if when is None or not filters.start_date <= when <= filters.end_date:
                continue
        if filters.category and not _same_text(transaction.category, filters.category):
            continue
        if filters.subcategory and not _same_text(
            transaction.subcategory, filters.subcategory
        ):
            continue
        result.append(transaction)

    return result

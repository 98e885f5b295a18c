"""
Snapshot filters.

Month and day filters use plain string prefixes of the fixed-width
ISO date, exactly like month grouping does.
"""

from typing import Iterable, Optional

from pocket_ledger.models.category import ExpenseCategory


def filter_by_month(transactions: Iterable, month: Optional[str]) -> tuple:
    """Transactions whose date starts with the month prefix (all if None)."""
    if not month:
        return tuple(transactions)
    return tuple(t for t in transactions if t.date.startswith(month))


def filter_by_date(transactions: Iterable, day: Optional[str]) -> tuple:
    """Transactions dated exactly on day (all if None)."""
    if not day:
        return tuple(transactions)
    return tuple(t for t in transactions if t.date == day)


def expenses_only(transactions: Iterable) -> tuple:
    return tuple(t for t in transactions if not t.is_income)


def filter_by_category(transactions: Iterable, category) -> tuple:
    """Expenses filed under category (labels are coerced like stored data)."""
    wanted = ExpenseCategory.coerce(category)
    return tuple(t for t in expenses_only(transactions) if t.category == wanted)


def sort_newest_first(transactions: Iterable) -> list:
    """Display order: newest date first; same-day entries keep the later-added one first."""
    indexed = list(enumerate(transactions))
    indexed.sort(key=lambda pair: (pair[1].date, pair[0]), reverse=True)
    return [t for _, t in indexed]


def available_months(transactions: Iterable) -> list[str]:
    """Distinct month keys present in the log, newest first."""
    return sorted({t.month_key for t in transactions}, reverse=True)

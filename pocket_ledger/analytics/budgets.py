"""
Budget status for the current month.

The current month is always supplied by the caller. Reading the clock
here would make the same snapshot produce different views on different
days.

A limit of zero (or no limit at all) means "untracked": such categories
are left out entirely rather than reported as 0% used.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from pocket_ledger.analytics.filters import expenses_only, filter_by_month
from pocket_ledger.models.category import ExpenseCategory
from pocket_ledger.models.views import BudgetLine


HUNDRED = Decimal("100")


def _is_known_label(label: Any) -> bool:
    if isinstance(label, ExpenseCategory):
        return True
    return isinstance(label, str) and ExpenseCategory.is_known(label)


def normalize_budgets(budgets: Mapping[Any, Any]) -> dict[ExpenseCategory, Decimal]:
    """
    Coerce a raw budgets mapping into {ExpenseCategory: limit}.

    Unknown labels land on the fallback category, but only when the
    fallback has no limit of its own in the mapping. Non-numeric or
    negative limits become 0 (untracked). Otherwise, if two labels map to
    the same category, the later one wins.
    """
    normalized: dict[ExpenseCategory, Decimal] = {}
    explicit: set[ExpenseCategory] = set()
    for label, raw_limit in budgets.items():
        try:
            limit = Decimal(str(raw_limit))
        except (InvalidOperation, ValueError):
            limit = Decimal("0")
        if not limit.is_finite() or limit < 0:
            limit = Decimal("0")
        category = ExpenseCategory.coerce(label)
        if _is_known_label(label):
            explicit.add(category)
        elif category in explicit:
            continue
        normalized[category] = limit
    return normalized


def budget_status(
    transactions: Iterable,
    budgets: Mapping[Any, Any],
    current_month: str,
) -> list[BudgetLine]:
    """
    Compare this month's spending per category with its limit.

    Sorted by capped percentage, then raw percentage (both descending),
    then category label.
    """
    spending: dict[ExpenseCategory, Decimal] = {}
    for transaction in expenses_only(filter_by_month(transactions, current_month)):
        spending[transaction.category] = (
            spending.get(transaction.category, Decimal("0")) + transaction.amount_primary
        )

    lines = []
    for category, limit in normalize_budgets(budgets).items():
        if limit <= 0:
            continue
        spent = spending.get(category, Decimal("0"))
        raw_percentage = spent / limit * HUNDRED
        lines.append(BudgetLine(
            category=category,
            limit=limit,
            spent=spent,
            raw_percentage=raw_percentage,
            capped_percentage=min(raw_percentage, HUNDRED),
            is_over=spent > limit,
        ))

    lines.sort(key=lambda line: line.category.value)
    lines.sort(
        key=lambda line: (line.capped_percentage, line.raw_percentage),
        reverse=True,
    )
    return lines

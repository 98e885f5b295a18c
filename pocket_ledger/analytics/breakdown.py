"""Per-category expense totals, the entry point of the category drill-down."""

from decimal import Decimal
from typing import Iterable, Optional

from pocket_ledger.analytics.filters import expenses_only, filter_by_month
from pocket_ledger.models.category import ExpenseCategory
from pocket_ledger.models.views import CategoryTotal


def category_breakdown(
    transactions: Iterable,
    month: Optional[str] = None,
) -> list[CategoryTotal]:
    """
    Sum expense amounts per category, optionally within one month.

    Ordered by total descending; equal totals fall back to the category
    label so the output is reproducible.
    """
    totals: dict[ExpenseCategory, Decimal] = {}

    for transaction in expenses_only(filter_by_month(transactions, month)):
        totals[transaction.category] = (
            totals.get(transaction.category, Decimal("0")) + transaction.amount_primary
        )

    ordered = sorted(totals.items(), key=lambda entry: entry[0].value)
    ordered.sort(key=lambda entry: entry[1], reverse=True)

    return [CategoryTotal(category=category, total=total) for category, total in ordered]

"""Income / expense / net over a pre-filtered set of transactions."""

from decimal import Decimal
from typing import Iterable

from pocket_ledger.models.views import Totals


def calculate_totals(transactions: Iterable) -> Totals:
    """
    Sum income and expense amounts.

    No filtering happens here; callers narrow the set first
    (see analytics.filters).
    """
    income = Decimal("0")
    expense = Decimal("0")

    for transaction in transactions:
        if transaction.is_income:
            income += transaction.amount_primary
        else:
            expense += transaction.amount_primary

    return Totals(
        income_total=income,
        expense_total=expense,
        net=income - expense,
    )


def savings_rate(totals: Totals) -> Decimal:
    """Net as a percentage of income; zero when there is no income."""
    if totals.income_total <= 0:
        return Decimal("0")
    return totals.net / totals.income_total * 100

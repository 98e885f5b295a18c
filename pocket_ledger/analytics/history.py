"""
Time-based rollups: per month and per day.

Month keys are the first 7 characters of the stored date. Descending
string order is chronological only because the key is fixed-width.
Months (and days) with no transactions are never synthesized here.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from pocket_ledger.models.views import DailySummary, MonthlySummary


def monthly_history(transactions: Iterable) -> list[MonthlySummary]:
    """Income, expense and net per month key, newest month first."""
    buckets: dict[str, list[Decimal]] = {}

    for transaction in transactions:
        income_expense = buckets.setdefault(
            transaction.month_key, [Decimal("0"), Decimal("0")]
        )
        if transaction.is_income:
            income_expense[0] += transaction.amount_primary
        else:
            income_expense[1] += transaction.amount_primary

    return [
        MonthlySummary(
            month=month,
            income=income,
            expense=expense,
            net=income - expense,
        )
        for month, (income, expense) in sorted(
            buckets.items(), key=lambda entry: entry[0], reverse=True
        )
    ]


def week_dates(reference: Optional[date] = None) -> list[str]:
    """ISO dates of the Monday-to-Sunday week containing reference (today by default)."""
    reference = reference or date.today()
    monday = reference - timedelta(days=reference.weekday())
    return [(monday + timedelta(days=offset)).isoformat() for offset in range(7)]


def daily_summaries(
    transactions: Iterable,
    dates: Sequence[str],
) -> list[DailySummary]:
    """
    Expense totals for each requested day, in the order requested.

    Days without expenses still get a row (with has_data False) so a
    calendar strip can render every day it asked for.
    """
    wanted = set(dates)
    sums: dict[str, list] = {d: [Decimal("0"), Decimal("0"), 0] for d in wanted}

    for transaction in transactions:
        if transaction.date not in wanted or transaction.is_income:
            continue
        day = sums[transaction.date]
        day[0] += transaction.amount_primary
        day[1] += transaction.amount_secondary
        day[2] += 1

    return [
        DailySummary(
            date=d,
            total_primary=sums[d][0],
            total_secondary=sums[d][1],
            transaction_count=sums[d][2],
        )
        for d in dates
    ]

"""
Analytics package.

Pure view computations over a transaction snapshot, plus the
AnalyticsEngine facade that memoizes them per log version.
"""

from pocket_ledger.analytics.breakdown import category_breakdown
from pocket_ledger.analytics.budgets import budget_status, normalize_budgets
from pocket_ledger.analytics.drilldown import itemized_drilldown, reconcile_items
from pocket_ledger.analytics.engine import AnalyticsEngine, policy_from_settings
from pocket_ledger.analytics.export import (
    export_filename,
    export_rows,
    items_as_text,
    rows_to_csv,
)
from pocket_ledger.analytics.filters import (
    available_months,
    expenses_only,
    filter_by_category,
    filter_by_date,
    filter_by_month,
    sort_newest_first,
)
from pocket_ledger.analytics.history import daily_summaries, monthly_history, week_dates
from pocket_ledger.analytics.price_watch import price_watch, search_price_watch
from pocket_ledger.analytics.totals import calculate_totals, savings_rate

__all__ = [
    "AnalyticsEngine",
    "available_months",
    "budget_status",
    "calculate_totals",
    "category_breakdown",
    "daily_summaries",
    "expenses_only",
    "export_filename",
    "export_rows",
    "filter_by_category",
    "filter_by_date",
    "filter_by_month",
    "items_as_text",
    "itemized_drilldown",
    "monthly_history",
    "normalize_budgets",
    "policy_from_settings",
    "price_watch",
    "reconcile_items",
    "rows_to_csv",
    "savings_rate",
    "search_price_watch",
    "sort_newest_first",
    "week_dates",
]

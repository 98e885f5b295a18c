"""
Analytics Engine

DESIGN DECISION: View computation is DETERMINISTIC.
Every view is a pure function of (log snapshot, parameters, policy).
This facade only adds two things on top of the pure functions:
1. It takes the snapshot from the transaction log
2. It memoizes views keyed by (log version, view, parameters)

Any mutation of the log bumps its version, which drops every cached
view at the next call. Recomputation is always total.
"""

from decimal import Decimal
from typing import Any, Callable, Mapping, Optional, Sequence

import structlog

from pocket_ledger.analytics.breakdown import category_breakdown
from pocket_ledger.analytics.budgets import budget_status
from pocket_ledger.analytics.drilldown import itemized_drilldown
from pocket_ledger.analytics.export import export_rows, rows_to_csv
from pocket_ledger.analytics.filters import available_months, filter_by_month
from pocket_ledger.analytics.history import daily_summaries, monthly_history
from pocket_ledger.analytics.price_watch import price_watch, search_price_watch
from pocket_ledger.analytics.totals import calculate_totals
from pocket_ledger.config.settings import AnalyticsSettings
from pocket_ledger.models.views import (
    BudgetLine,
    CategoryTotal,
    DailySummary,
    ItemBucket,
    ItemPriceStats,
    MonthlySummary,
    ReconciliationPolicy,
    Totals,
)
from pocket_ledger.services.storage.interface import TransactionLogInterface


logger = structlog.get_logger(__name__)


def policy_from_settings(settings: AnalyticsSettings) -> ReconciliationPolicy:
    return ReconciliationPolicy(
        tolerance=settings.reconciliation_tolerance,
        unclassified_label=settings.unclassified_label,
        scale_over_itemized=settings.scale_over_itemized,
    )


class AnalyticsEngine:
    """
    Read-only view layer over a transaction log.

    GUARANTEES:
    - Never mutates the log
    - Same log version and parameters => structurally equal result
    - No I/O beyond reading the log snapshot
    """

    def __init__(
        self,
        log: TransactionLogInterface,
        policy: Optional[ReconciliationPolicy] = None,
        home_currency: str = "AUD",
        secondary_currency: str = "TWD",
    ):
        self._log = log
        self._policy = policy or ReconciliationPolicy()
        self._home_currency = home_currency
        self._secondary_currency = secondary_currency
        self._cache: dict[tuple, Any] = {}
        self._cached_version: Optional[int] = None

    @classmethod
    def from_settings(
        cls,
        log: TransactionLogInterface,
        settings: AnalyticsSettings,
    ) -> "AnalyticsEngine":
        return cls(
            log,
            policy=policy_from_settings(settings),
            home_currency=settings.home_currency,
            secondary_currency=settings.secondary_currency,
        )

    @property
    def policy(self) -> ReconciliationPolicy:
        return self._policy

    def _view(self, name: str, params: tuple, compute: Callable[[tuple], Any]) -> Any:
        version = self._log.version
        if version != self._cached_version:
            self._cache.clear()
            self._cached_version = version

        key = (name, params)
        if key not in self._cache:
            self._cache[key] = compute(self._log.list())
            logger.debug("analytics_view_computed", view=name, log_version=version)

        result = self._cache[key]
        return list(result) if isinstance(result, list) else result

    def snapshot(self) -> tuple:
        return self._log.list()

    def totals(self, month: Optional[str] = None) -> Totals:
        return self._view(
            "totals", (month,),
            lambda snapshot: calculate_totals(filter_by_month(snapshot, month)),
        )

    def monthly_history(self) -> list[MonthlySummary]:
        return self._view("monthly_history", (), monthly_history)

    def category_breakdown(self, month: Optional[str] = None) -> list[CategoryTotal]:
        return self._view(
            "category_breakdown", (month,),
            lambda snapshot: category_breakdown(snapshot, month),
        )

    def budget_status(
        self,
        budgets: Mapping[Any, Any],
        current_month: str,
    ) -> list[BudgetLine]:
        frozen_budgets = tuple(sorted((str(k), str(v)) for k, v in budgets.items()))
        return self._view(
            "budget_status", (frozen_budgets, current_month),
            lambda snapshot: budget_status(snapshot, dict(budgets), current_month),
        )

    def price_watch(self, search: str = "") -> list[ItemPriceStats]:
        stats = self._view("price_watch", (), price_watch)
        return search_price_watch(stats, search) if search else stats

    def itemized_drilldown(
        self,
        category: Any,
        month: Optional[str] = None,
    ) -> list[ItemBucket]:
        return self._view(
            "itemized_drilldown", (str(getattr(category, "value", category)), month),
            lambda snapshot: itemized_drilldown(snapshot, category, month, self._policy),
        )

    def daily_summaries(self, dates: Sequence[str]) -> list[DailySummary]:
        return self._view(
            "daily_summaries", tuple(dates),
            lambda snapshot: daily_summaries(snapshot, dates),
        )

    def available_months(self) -> list[str]:
        return self._view("available_months", (), available_months)

    def export_month_csv(self, month: str, include_bom: bool = True) -> Optional[str]:
        """CSV text for the month, or None when the month has no transactions."""
        rows = export_rows(self._log.list(), month)
        if not rows:
            return None
        return rows_to_csv(
            rows,
            home_currency=self._home_currency,
            secondary_currency=self._secondary_currency,
            include_bom=include_bom,
        )

    def net_secondary(self, exchange_rate: Decimal) -> Decimal:
        """Overall net converted at the given (current) rate, for display only."""
        return self.totals().net * exchange_rate

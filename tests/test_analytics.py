"""Tests for the pure analytics functions."""

import pytest
from datetime import date
from decimal import Decimal

from pocket_ledger.analytics import (
    available_months,
    budget_status,
    calculate_totals,
    category_breakdown,
    daily_summaries,
    filter_by_category,
    filter_by_date,
    filter_by_month,
    itemized_drilldown,
    monthly_history,
    normalize_budgets,
    price_watch,
    reconcile_items,
    savings_rate,
    search_price_watch,
    sort_newest_first,
    week_dates,
)
from pocket_ledger.models.category import ExpenseCategory
from pocket_ledger.models.views import ReconciliationPolicy

from conftest import build_expense, build_income


def sample_ledger():
    return (
        build_income(3000, date="2024-01-10"),
        build_expense(120, category="Groceries", date="2024-01-12"),
        build_expense(40, category="Dining", date="2024-01-20"),
        build_expense(1500, category="Rent", date="2024-02-01"),
        build_income(500, category="Bonus", date="2024-02-03"),
        build_expense(60, category="Groceries", date="2024-02-07"),
    )


class TestTotals:
    """Tests for income / expense / net."""

    def test_totals(self):
        totals = calculate_totals(sample_ledger())
        assert totals.income_total == Decimal("3500")
        assert totals.expense_total == Decimal("1720")
        assert totals.net == Decimal("1780")

    def test_empty(self):
        totals = calculate_totals(())
        assert totals.net == Decimal("0")

    def test_savings_rate(self):
        totals = calculate_totals((build_income(1000), build_expense(250)))
        assert savings_rate(totals) == Decimal("75")

    def test_savings_rate_without_income(self):
        assert savings_rate(calculate_totals((build_expense(10),))) == Decimal("0")


class TestFilters:
    """Tests for snapshot filters."""

    def test_month_prefix(self):
        assert len(filter_by_month(sample_ledger(), "2024-02")) == 3

    def test_no_month_keeps_everything(self):
        assert len(filter_by_month(sample_ledger(), None)) == 6

    def test_exact_date(self):
        result = filter_by_date(sample_ledger(), "2024-01-12")
        assert [t.amount_primary for t in result] == [Decimal("120")]

    def test_category_filter_is_expense_only(self):
        ledger = sample_ledger() + (build_income(10, category="Other Income"),)
        result = filter_by_category(ledger, "groceries")
        assert len(result) == 2
        assert all(not t.is_income for t in result)

    def test_newest_first_prefers_later_added_on_same_day(self):
        first = build_expense(1, date="2024-01-01", note="first")
        second = build_expense(2, date="2024-01-01", note="second")
        older = build_expense(3, date="2023-12-31", note="older")
        ordered = sort_newest_first((first, older, second))
        assert [t.note for t in ordered] == ["second", "first", "older"]

    def test_available_months(self):
        assert available_months(sample_ledger()) == ["2024-02", "2024-01"]


class TestMonthlyHistory:
    """Tests for the per-month rollup."""

    def test_descending_months(self):
        """Two incomes in different months come back newest month first."""
        history = monthly_history((
            build_income(1000, date="2024-01-10"),
            build_income(500, date="2024-02-01"),
        ))
        assert [row.month for row in history] == ["2024-02", "2024-01"]
        assert history[0].income == Decimal("500")
        assert history[1].income == Decimal("1000")

    def test_no_gap_months(self):
        history = monthly_history((
            build_expense(1, date="2024-01-10"),
            build_expense(1, date="2024-04-10"),
        ))
        assert [row.month for row in history] == ["2024-04", "2024-01"]

    def test_sums_match_totals(self):
        ledger = sample_ledger()
        history = monthly_history(ledger)
        totals = calculate_totals(ledger)
        assert sum(row.income for row in history) == totals.income_total
        assert sum(row.expense for row in history) == totals.expense_total
        assert all(row.net == row.income - row.expense for row in history)


class TestDailySummaries:
    """Tests for the week calendar rollup."""

    def test_week_dates_start_on_monday(self):
        dates = week_dates(date(2024, 3, 14))  # Thursday
        assert dates[0] == "2024-03-11"
        assert dates[-1] == "2024-03-17"
        assert len(dates) == 7

    def test_every_requested_day_has_a_row(self):
        ledger = (
            build_expense(10, date="2024-03-11"),
            build_expense(5, date="2024-03-11"),
            build_income(100, date="2024-03-12"),
        )
        summaries = daily_summaries(ledger, ["2024-03-12", "2024-03-11"])
        assert [s.date for s in summaries] == ["2024-03-12", "2024-03-11"]
        assert summaries[0].has_data is False
        assert summaries[1].total_primary == Decimal("15")
        assert summaries[1].total_secondary == Decimal("300")
        assert summaries[1].transaction_count == 2


class TestCategoryBreakdown:
    """Tests for per-category expense totals."""

    def test_sorted_by_total(self):
        breakdown = category_breakdown(sample_ledger())
        assert [row.category for row in breakdown] == [
            ExpenseCategory.RENT,
            ExpenseCategory.GROCERIES,
            ExpenseCategory.DINING,
        ]
        assert breakdown[1].total == Decimal("180")

    def test_ties_break_on_label(self):
        breakdown = category_breakdown((
            build_expense(10, category="Water"),
            build_expense(10, category="Car"),
        ))
        assert [row.category for row in breakdown] == [ExpenseCategory.CAR, ExpenseCategory.WATER]

    def test_month_scope_and_sum(self):
        ledger = sample_ledger()
        breakdown = category_breakdown(ledger, "2024-01")
        assert sum(row.total for row in breakdown) == Decimal("160")

    def test_unknown_category_is_other(self):
        breakdown = category_breakdown((build_expense(7, category="Crypto"),))
        assert breakdown[0].category == ExpenseCategory.OTHER


class TestBudgetStatus:
    """Tests for budget tracking."""

    def test_over_budget(self):
        """Spending 120 against a 100 limit is capped at 100% and flagged."""
        ledger = (build_expense(120, category="Groceries", date="2024-01-05"),)
        lines = budget_status(ledger, {"Groceries": 100}, "2024-01")
        assert len(lines) == 1
        line = lines[0]
        assert line.category == ExpenseCategory.GROCERIES
        assert line.limit == Decimal("100")
        assert line.spent == Decimal("120")
        assert line.raw_percentage == Decimal("120")
        assert line.capped_percentage == Decimal("100")
        assert line.is_over is True

    def test_zero_and_missing_limits_are_untracked(self):
        ledger = (build_expense(50, category="Dining", date="2024-01-05"),)
        lines = budget_status(ledger, {"Dining": 0, "Rent": "abc"}, "2024-01")
        assert lines == []

    def test_other_months_ignored(self):
        ledger = (build_expense(50, category="Dining", date="2023-12-30"),)
        lines = budget_status(ledger, {"Dining": 200}, "2024-01")
        assert lines[0].spent == Decimal("0")
        assert lines[0].is_over is False

    def test_exactly_at_limit_is_not_over(self):
        ledger = (build_expense(100, category="Dining", date="2024-01-05"),)
        line = budget_status(ledger, {"Dining": 100}, "2024-01")[0]
        assert line.capped_percentage == Decimal("100")
        assert line.is_over is False

    def test_sorted_by_usage(self):
        ledger = (
            build_expense(10, category="Dining", date="2024-01-05"),
            build_expense(90, category="Groceries", date="2024-01-05"),
            build_expense(300, category="Shopping", date="2024-01-05"),
        )
        lines = budget_status(
            ledger, {"Dining": 100, "Groceries": 100, "Shopping": 100}, "2024-01"
        )
        assert [line.category for line in lines] == [
            ExpenseCategory.SHOPPING,
            ExpenseCategory.GROCERIES,
            ExpenseCategory.DINING,
        ]
        assert all(Decimal("0") <= line.capped_percentage <= Decimal("100") for line in lines)

    def test_normalize_budgets(self):
        normalized = normalize_budgets({"groceries": "400", "Pets": -5, "Mystery": "30"})
        assert normalized[ExpenseCategory.GROCERIES] == Decimal("400")
        assert normalized[ExpenseCategory.PETS] == Decimal("0")
        assert normalized[ExpenseCategory.OTHER] == Decimal("30")

    @pytest.mark.parametrize("budgets", [
        {"Other": "50", "Mystery": "30"},
        {"Mystery": "30", "Other": "50"},
    ])
    def test_explicit_other_limit_beats_unknown_labels(self, budgets):
        assert normalize_budgets(budgets)[ExpenseCategory.OTHER] == Decimal("50")


class TestPriceWatch:
    """Tests for per-item price tracking."""

    def test_cheapest_source(self):
        """Milk bought at 4 then 3.50: cheapest and latest are the Coles price."""
        ledger = (
            build_expense(4, date="2024-01-01", note="Woolworths", items=[("Milk", "4")]),
            build_expense(3.5, date="2024-02-01", note="Coles", items=[("Milk", "3.50")]),
        )
        stats = price_watch(ledger)
        assert len(stats) == 1
        milk = stats[0]
        assert milk.name == "Milk"
        assert milk.min_price == Decimal("3.5")
        assert milk.max_price == Decimal("4")
        assert milk.avg_price == Decimal("3.75")
        assert milk.last_price == Decimal("3.5")
        assert milk.best_source == "Coles"

    def test_last_uses_date_not_log_order(self):
        ledger = (
            build_expense(5, date="2024-03-01", items=[("Eggs", "5")]),
            build_expense(6, date="2024-01-01", items=[("Eggs", "6")]),
        )
        eggs = price_watch(ledger)[0]
        assert eggs.last_price == Decimal("5")
        assert [p.date for p in eggs.history] == ["2024-03-01", "2024-01-01"]

    def test_same_day_tie_goes_to_later_record(self):
        ledger = (
            build_expense(2, date="2024-03-01", note="Aldi", items=[("Bread", "2")]),
            build_expense(2, date="2024-03-01", note="IGA", items=[("Bread", "2")]),
        )
        bread = price_watch(ledger)[0]
        assert bread.best_source == "IGA"

    def test_min_price_tie_goes_to_latest_date(self):
        ledger = (
            build_expense(2, date="2024-03-01", note="Late", items=[("Bread", "2")]),
            build_expense(2, date="2024-01-01", note="Early", items=[("Bread", "2")]),
        )
        bread = price_watch(ledger)[0]
        assert bread.best_source == "Late"

    def test_missing_note_is_unknown_source(self):
        ledger = (build_expense(2, items=[("Bread", "2")]),)
        assert price_watch(ledger)[0].best_source == "Unknown"

    def test_ranked_by_frequency(self):
        ledger = (
            build_expense(9, items=[("Cheese", "9")]),
            build_expense(4, items=[("Milk", "4")]),
            build_expense(4, items=[("Milk", "4")]),
        )
        assert [s.name for s in price_watch(ledger)] == ["Milk", "Cheese"]

    def test_price_bounds(self):
        ledger = (
            build_expense(10, items=[("Milk", "4"), ("Bread", "3")]),
            build_expense(10, date="2024-02-01", items=[("Milk", "4.4"), ("Bread", "3.3")]),
        )
        for stats in price_watch(ledger):
            assert stats.min_price <= stats.avg_price <= stats.max_price

    def test_search(self):
        ledger = (build_expense(10, items=[("Full Cream Milk", "4"), ("Bread", "3")]),)
        found = search_price_watch(price_watch(ledger), "MILK")
        assert [s.name for s in found] == ["Full Cream Milk"]


class TestItemizedDrilldown:
    """Tests for reconciling receipt items against totals."""

    def test_receipt_with_remainder(self):
        """A 50 receipt with Milk 4 and Bread 3 leaves 43 unclassified."""
        ledger = (build_expense(50, items=[("Milk", "4"), ("Bread", "3")]),)
        buckets = itemized_drilldown(ledger, "Groceries")
        assert [(b.name, b.total) for b in buckets] == [
            ("Unclassified", Decimal("43")),
            ("Milk", Decimal("4")),
            ("Bread", Decimal("3")),
        ]
        assert buckets[0].is_unclassified is True

    def test_without_items_all_unclassified(self):
        buckets = itemized_drilldown((build_expense(25),), ExpenseCategory.GROCERIES)
        assert [(b.name, b.total) for b in buckets] == [("Unclassified", Decimal("25"))]

    def test_rounding_noise_is_dropped(self):
        ledger = (build_expense("7.05", items=[("Milk", "4"), ("Bread", "3")]),)
        buckets = itemized_drilldown(ledger, "Groceries")
        assert all(not b.is_unclassified for b in buckets)

    def test_over_itemized_never_negative(self):
        ledger = (
            build_expense(5, items=[("Milk", "4"), ("Bread", "3")]),
            build_expense(10),
        )
        buckets = itemized_drilldown(ledger, "Groceries")
        unclassified = [b for b in buckets if b.is_unclassified][0]
        assert unclassified.total == Decimal("10")

    def test_over_itemized_scaled_when_enabled(self):
        ledger = (build_expense(5, items=[("Milk", "4"), ("Bread", "6")]),)
        policy = ReconciliationPolicy(scale_over_itemized=True)
        buckets = itemized_drilldown(ledger, "Groceries", policy=policy)
        assert sum(b.total for b in buckets) == Decimal("5")

    def test_conservation(self):
        ledger = (
            build_expense(50, items=[("Milk", "4"), ("Bread", "3")]),
            build_expense(20),
            build_expense(12, items=[("Milk", "4.5"), ("Eggs", "7.5")]),
            build_expense(99, category="Dining"),
        )
        buckets = itemized_drilldown(ledger, "Groceries")
        assert sum(b.total for b in buckets) == Decimal("82")
        milk = [b for b in buckets if b.name == "Milk"][0]
        assert milk.total == Decimal("8.5")

    def test_month_scope(self):
        ledger = (
            build_expense(10, date="2024-01-05"),
            build_expense(30, date="2024-02-05"),
        )
        buckets = itemized_drilldown(ledger, "Groceries", month="2024-02")
        assert buckets[0].total == Decimal("30")

    def test_custom_label(self):
        policy = ReconciliationPolicy(unclassified_label="Misc")
        buckets = reconcile_items((build_expense(3),), policy)
        assert buckets[0].name == "Misc"

    def test_item_named_like_remainder_bucket_is_merged(self):
        ledger = (build_expense(10, items=[("Unclassified", "2"), ("Milk", "3")]),)
        buckets = itemized_drilldown(ledger, "Groceries")
        assert [(b.name, b.total, b.is_unclassified) for b in buckets] == [
            ("Unclassified", Decimal("7"), True),
            ("Milk", Decimal("3"), False),
        ]


class TestIdempotence:
    """Every view is a pure function of its inputs."""

    @pytest.mark.parametrize("view", [
        lambda ledger: calculate_totals(ledger),
        lambda ledger: monthly_history(ledger),
        lambda ledger: category_breakdown(ledger),
        lambda ledger: budget_status(ledger, {"Groceries": 100}, "2024-02"),
        lambda ledger: price_watch(ledger),
        lambda ledger: itemized_drilldown(ledger, "Groceries"),
    ])
    def test_same_input_same_output(self, view):
        ledger = sample_ledger() + (
            build_expense(10, date="2024-02-10", items=[("Milk", "4")]),
        )
        assert view(ledger) == view(ledger)

"""
View Models produced by the analytics engine.

These are plain, frozen, renderer-agnostic structures. Every analytics
function returns one of these (or a list of them) and nothing else.
All amounts are Decimal so that the different lenses agree exactly.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from pocket_ledger.models.category import ExpenseCategory


class _View(BaseModel):
    model_config = ConfigDict(frozen=True)


class Totals(_View):
    """Income, expense and net over a set of transactions."""

    income_total: Decimal = Decimal("0")
    expense_total: Decimal = Decimal("0")
    net: Decimal = Decimal("0")


class MonthlySummary(_View):
    """One row of the monthly history."""

    month: str = Field(..., description="Month key, YYYY-MM")
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    net: Decimal = Decimal("0")


class CategoryTotal(_View):
    """Expense total for one category."""

    category: ExpenseCategory
    total: Decimal


class BudgetLine(_View):
    """Current-month spending against a configured limit."""

    category: ExpenseCategory
    limit: Decimal = Field(..., gt=0)
    spent: Decimal
    raw_percentage: Decimal = Field(..., description="spent / limit * 100, unbounded")
    capped_percentage: Decimal = Field(..., ge=0, le=100)
    is_over: bool


class PricePoint(_View):
    """A single observed price for an item."""

    price: Decimal
    source: str
    date: str


class ItemPriceStats(_View):
    """Price statistics for one item name across all receipts."""

    name: str
    min_price: Decimal
    max_price: Decimal
    avg_price: Decimal
    last_price: Decimal
    best_source: str
    history: tuple[PricePoint, ...] = Field(
        ...,
        description="Observed prices, newest first"
    )

    @property
    def times_seen(self) -> int:
        return len(self.history)


class ItemBucket(_View):
    """One slice of an itemized category drill-down."""

    name: str
    total: Decimal
    is_unclassified: bool = False


class DailySummary(_View):
    """Expense totals for one calendar day."""

    date: str
    total_primary: Decimal = Decimal("0")
    total_secondary: Decimal = Decimal("0")
    transaction_count: int = 0

    @property
    def has_data(self) -> bool:
        return self.transaction_count > 0


class ExportRow(_View):
    """One row of a month export, in column order."""

    date: str
    type: str
    category: str
    amount_primary: Decimal
    amount_secondary: Decimal
    note: str
    tax: Decimal = Decimal("0")
    superannuation: Decimal = Decimal("0")
    items: str = ""


class ReconciliationPolicy(_View):
    """
    How the itemized drill-down reconciles items against totals.

    tolerance: remainders at or below this are treated as rounding noise.
    scale_over_itemized: when items add up to more than the transaction,
        scale that receipt's items down to the transaction amount instead
        of silently keeping the overshoot.
    """

    tolerance: Decimal = Field(default=Decimal("0.1"), ge=0)
    unclassified_label: str = "Unclassified"
    scale_over_itemized: bool = False


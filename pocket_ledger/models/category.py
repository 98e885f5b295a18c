"""
Transaction Categories

Expense and income categories are two closed, disjoint sets.
Each set has exactly one fallback member that absorbs unknown or legacy
labels, so stored data never fails to load because of a category name.

DESIGN DECISION: Display attributes (colour, icon) live in one exhaustive
mapping keyed by enum member. A test asserts every member has an entry;
anything unmapped falls back to a single neutral style.
"""

from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict


class _FallbackCategory(str, Enum):
    """Base for category enums that never reject a label."""

    @classmethod
    def fallback(cls):
        raise NotImplementedError

    @classmethod
    def _match(cls, text: str):
        lowered = text.lower()
        for member in cls:
            if member.value.lower() == lowered or member.name.lower() == lowered:
                return member
        return None

    @classmethod
    def _missing_(cls, value: object):
        if isinstance(value, str):
            member = cls._match(value.strip())
            if member is not None:
                return member
        return cls.fallback()

    @classmethod
    def is_known(cls, label: str) -> bool:
        """True if the label names a member (case-insensitive)."""
        return cls._match(label.strip()) is not None

    @classmethod
    def coerce(cls, value: Any):
        """Map any label (or None) onto a member, falling back instead of failing."""
        if isinstance(value, cls):
            return value
        if isinstance(value, Enum):
            value = value.value
        if value is None:
            return cls.fallback()
        return cls(str(value).strip())


class ExpenseCategory(_FallbackCategory):
    """Categories an expense can be filed under."""
    RENT = "Rent"
    GROCERIES = "Groceries"
    DINING = "Dining"
    TRANSPORT = "Transport"
    CAR = "Car"
    ELECTRICITY = "Electricity"
    WATER = "Water"
    GAS = "Gas"
    INTERNET = "Internet"
    MOBILE = "Mobile"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    HEALTH = "Health"
    EDUCATION = "Education"
    LOAN = "Loan"
    PETS = "Pets"
    TRAVEL = "Travel"
    OTHER = "Other"

    @classmethod
    def fallback(cls) -> "ExpenseCategory":
        return cls.OTHER


class IncomeCategory(_FallbackCategory):
    """Categories an income can be filed under."""
    SALARY = "Salary"
    CASUAL_WORK = "Casual Work"
    TAX_REFUND = "Tax Refund"
    BONUS = "Bonus"
    INVESTMENT = "Investment"
    SECOND_HAND = "Second Hand"
    OTHER_INCOME = "Other Income"

    @classmethod
    def fallback(cls) -> "IncomeCategory":
        return cls.OTHER_INCOME


AnyCategory = Union[ExpenseCategory, IncomeCategory]


class CategoryStyle(BaseModel):
    """How a category is drawn by a rendering layer."""

    model_config = ConfigDict(frozen=True)

    color: str
    icon: str


FALLBACK_STYLE = CategoryStyle(color="#94a3b8", icon="CircleEllipsis")

CATEGORY_STYLES: dict[AnyCategory, CategoryStyle] = {
    # Expenses
    ExpenseCategory.RENT: CategoryStyle(color="#6366f1", icon="Home"),
    ExpenseCategory.GROCERIES: CategoryStyle(color="#10b981", icon="ShoppingBasket"),
    ExpenseCategory.DINING: CategoryStyle(color="#f59e0b", icon="Coffee"),
    ExpenseCategory.TRANSPORT: CategoryStyle(color="#3b82f6", icon="TrainFront"),
    ExpenseCategory.CAR: CategoryStyle(color="#ef4444", icon="Car"),
    ExpenseCategory.ELECTRICITY: CategoryStyle(color="#eab308", icon="Zap"),
    ExpenseCategory.WATER: CategoryStyle(color="#06b6d4", icon="Droplets"),
    ExpenseCategory.GAS: CategoryStyle(color="#f97316", icon="Flame"),
    ExpenseCategory.INTERNET: CategoryStyle(color="#8b5cf6", icon="Wifi"),
    ExpenseCategory.MOBILE: CategoryStyle(color="#d946ef", icon="Smartphone"),
    ExpenseCategory.SHOPPING: CategoryStyle(color="#ec4899", icon="ShoppingBag"),
    ExpenseCategory.ENTERTAINMENT: CategoryStyle(color="#a855f7", icon="Ticket"),
    ExpenseCategory.HEALTH: CategoryStyle(color="#14b8a6", icon="HeartPulse"),
    ExpenseCategory.EDUCATION: CategoryStyle(color="#f59e0b", icon="GraduationCap"),
    ExpenseCategory.LOAN: CategoryStyle(color="#64748b", icon="Landmark"),
    ExpenseCategory.PETS: CategoryStyle(color="#a16207", icon="PawPrint"),
    ExpenseCategory.TRAVEL: CategoryStyle(color="#0ea5e9", icon="Plane"),
    ExpenseCategory.OTHER: FALLBACK_STYLE,
    # Income
    IncomeCategory.SALARY: CategoryStyle(color="#15803d", icon="Briefcase"),
    IncomeCategory.CASUAL_WORK: CategoryStyle(color="#84cc16", icon="Clock"),
    IncomeCategory.TAX_REFUND: CategoryStyle(color="#eab308", icon="FileCheck"),
    IncomeCategory.BONUS: CategoryStyle(color="#f43f5e", icon="Gift"),
    IncomeCategory.INVESTMENT: CategoryStyle(color="#0ea5e9", icon="TrendingUp"),
    IncomeCategory.SECOND_HAND: CategoryStyle(color="#d946ef", icon="Recycle"),
    IncomeCategory.OTHER_INCOME: CategoryStyle(color="#64748b", icon="Wallet"),
}


def category_style(category: Any) -> CategoryStyle:
    """Display attributes for a category; unknown values get the fallback style."""
    return CATEGORY_STYLES.get(category, FALLBACK_STYLE)

"""Shared factories for building transactions in tests."""

from decimal import Decimal

import pytest

from pocket_ledger.models.transaction import (
    ExpenseTransaction,
    IncomeTransaction,
    ReceiptItem,
)


def build_expense(amount, category="Groceries", date="2024-01-05", note="", items=None, **extra):
    return ExpenseTransaction(
        amount_primary=Decimal(str(amount)),
        amount_secondary=Decimal(str(amount)) * Decimal("20"),
        category=category,
        date=date,
        note=note,
        items=tuple(
            ReceiptItem(name=name, price=Decimal(str(price))) for name, price in items
        ) if items is not None else None,
        **extra,
    )


def build_income(amount, category="Salary", date="2024-01-05", note="", **extra):
    return IncomeTransaction(
        amount_primary=Decimal(str(amount)),
        amount_secondary=Decimal(str(amount)) * Decimal("20"),
        category=category,
        date=date,
        note=note,
        **extra,
    )


@pytest.fixture
def expense():
    return build_expense


@pytest.fixture
def income():
    return build_income

"""
Tests for Pocket Ledger

Test strategy:
1. Unit tests for individual components (models, analytics, validators)
2. Integration tests for flows (with fake external services)
3. No real API calls in tests (use fakes)
"""

import pytest
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from pocket_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from pocket_ledger.models.category import (
    CATEGORY_STYLES,
    FALLBACK_STYLE,
    ExpenseCategory,
    IncomeCategory,
    category_style,
)
from pocket_ledger.models.document import ExtractedDocument
from pocket_ledger.models.transaction import (
    ExpenseTransaction,
    IncomeTransaction,
    ReceiptItem,
    TransactionDraft,
    TransactionType,
    create_transaction,
    month_key,
    parse_transaction,
    transaction_to_record,
)
from pocket_ledger.models.validation import ValidationIssue, ValidationResult


class TestCategories:
    """Tests for the category enums."""

    def test_exact_label(self):
        assert ExpenseCategory("Groceries") == ExpenseCategory.GROCERIES

    def test_case_insensitive_label(self):
        """Labels match regardless of case, by value or member name."""
        assert ExpenseCategory.coerce("groceries") == ExpenseCategory.GROCERIES
        assert IncomeCategory.coerce("casual_work") == IncomeCategory.CASUAL_WORK

    def test_unknown_label_falls_back(self):
        """Unknown legacy labels are routed to the fallback member."""
        assert ExpenseCategory.coerce("Bitcoin Mining") == ExpenseCategory.OTHER
        assert IncomeCategory.coerce("Lottery") == IncomeCategory.OTHER_INCOME

    def test_none_falls_back(self):
        assert ExpenseCategory.coerce(None) == ExpenseCategory.OTHER

    def test_is_known(self):
        assert ExpenseCategory.is_known(" dining ") is True
        assert ExpenseCategory.is_known("Salary") is False

    def test_every_category_has_a_style(self):
        """The style mapping is exhaustive over both enums."""
        for category in list(ExpenseCategory) + list(IncomeCategory):
            assert category in CATEGORY_STYLES

    def test_unmapped_value_gets_fallback_style(self):
        assert category_style("not a category") == FALLBACK_STYLE


class TestReceiptItem:
    """Tests for receipt line items."""

    def test_strips_name(self):
        item = ReceiptItem(name="  Milk  ", price=Decimal("4"))
        assert item.name == "Milk"
        assert item.quantity == 1

    def test_rejects_negative_price(self):
        with pytest.raises(ValidationError):
            ReceiptItem(name="Milk", price=Decimal("-1"))

    def test_rejects_empty_name(self):
        with pytest.raises(ValidationError):
            ReceiptItem(name="   ", price=Decimal("1"))


class TestTransactionModels:
    """Tests for the transaction sum type."""

    def test_month_key_is_prefix(self):
        assert month_key("2024-03-15") == "2024-03"

    def test_parse_legacy_record_without_type(self):
        """A record with no type and old field names loads as an expense."""
        transaction = parse_transaction({
            "id": "legacy-1",
            "amountAUD": 12.5,
            "amountTWD": 268.75,
            "category": "Groceries",
            "date": "2023-11-02",
            "note": "Coles",
        })
        assert isinstance(transaction, ExpenseTransaction)
        assert transaction.amount_primary == Decimal("12.5")
        assert transaction.amount_secondary == Decimal("268.75")
        assert transaction.month_key == "2023-11"

    def test_parse_unknown_type_is_expense(self):
        transaction = parse_transaction({
            "type": "transfer",
            "amount_primary": "5",
            "date": "2024-01-01",
        })
        assert transaction.type == "expense"

    def test_parse_income_with_tax(self):
        transaction = parse_transaction({
            "type": "income",
            "amount_primary": "2000",
            "category": "Salary",
            "date": "2024-01-15",
            "tax": "400",
            "superannuation": "230",
        })
        assert isinstance(transaction, IncomeTransaction)
        assert transaction.is_income is True
        assert transaction.tax == Decimal("400")

    def test_parse_unknown_income_category(self):
        transaction = parse_transaction({
            "type": "income",
            "amount_primary": "50",
            "category": "Groceries",
            "date": "2024-01-15",
        })
        assert transaction.category == IncomeCategory.OTHER_INCOME

    def test_null_note_becomes_empty(self):
        transaction = parse_transaction({"amount_primary": "1", "date": "2024-01-01", "note": None})
        assert transaction.note == ""

    def test_transactions_are_immutable(self):
        transaction = parse_transaction({"amount_primary": "1", "date": "2024-01-01"})
        with pytest.raises(ValidationError):
            transaction.amount_primary = Decimal("2")

    def test_rejects_negative_amount(self):
        with pytest.raises(ValidationError):
            parse_transaction({"amount_primary": "-1", "date": "2024-01-01"})

    def test_items_total(self):
        transaction = parse_transaction({
            "amount_primary": "10",
            "date": "2024-01-01",
            "items": [{"name": "Milk", "price": "4"}, {"name": "Bread", "price": "3"}],
        })
        assert transaction.has_items is True
        assert transaction.items_total == Decimal("7")

    def test_record_round_trip_keeps_variant(self):
        original = parse_transaction({
            "type": "income",
            "amount_primary": "100",
            "date": "2024-02-01",
            "category": "Bonus",
        })
        record = transaction_to_record(original)
        assert record["type"] == "income"
        assert "tax" not in record
        assert parse_transaction(record) == original


class TestCreateTransaction:
    """Tests for turning drafts into transactions."""

    def test_secondary_amount_frozen_at_creation(self):
        draft = TransactionDraft(amount=Decimal("10"), category="Dining", date="2024-03-01")
        transaction = create_transaction(draft, Decimal("21.5"))
        assert transaction.amount_secondary == Decimal("215.0")
        assert transaction.category == ExpenseCategory.DINING

    def test_income_keeps_tax_and_super(self):
        draft = TransactionDraft(
            type=TransactionType.INCOME,
            amount=Decimal("1500"),
            category="Salary",
            date="2024-03-01",
            tax=Decimal("300"),
            superannuation=Decimal("170"),
        )
        transaction = create_transaction(draft, Decimal("20"))
        assert isinstance(transaction, IncomeTransaction)
        assert transaction.superannuation == Decimal("170")

    def test_expense_cannot_carry_tax(self):
        draft = TransactionDraft(amount=Decimal("10"), date="2024-03-01", tax=Decimal("1"))
        with pytest.raises(ValueError, match="cannot carry tax"):
            create_transaction(draft, Decimal("20"))

    def test_negative_rate_rejected(self):
        draft = TransactionDraft(amount=Decimal("10"), date="2024-03-01")
        with pytest.raises(ValueError):
            create_transaction(draft, Decimal("-1"))

    def test_each_transaction_gets_new_id(self):
        draft = TransactionDraft(amount=Decimal("10"), date="2024-03-01")
        assert create_transaction(draft, Decimal("1")).id != create_transaction(draft, Decimal("1")).id


class TestExtractedDocument:
    """Tests for extraction results."""

    def test_drops_unusable_items(self):
        document = ExtractedDocument(
            amount=Decimal("20"),
            items=[
                {"name": "Milk", "price": 4},
                {"name": "", "price": 2},
                {"name": "Discount", "price": -3},
                {"name": "Bread"},
            ],
        )
        assert [item.name for item in document.items] == ["Milk"]

    def test_expense_draft_keeps_items_drops_tax(self):
        document = ExtractedDocument(
            amount=Decimal("20"),
            date="2024-05-02",
            merchant="Woolworths",
            category="Groceries",
            items=[{"name": "Milk", "price": 4}],
            tax=Decimal("2"),
        )
        draft = document.to_draft(TransactionType.EXPENSE)
        assert draft.note == "Woolworths"
        assert draft.date == "2024-05-02"
        assert len(draft.items) == 1
        assert draft.tax is None

    def test_income_draft_keeps_tax_drops_items(self):
        document = ExtractedDocument(
            amount=Decimal("1800"),
            merchant="ACME Pty Ltd",
            items=[{"name": "Overtime", "price": 100}],
            tax=Decimal("350"),
            superannuation=Decimal("210"),
        )
        draft = document.to_draft(TransactionType.INCOME)
        assert draft.items == []
        assert draft.tax == Decimal("350")


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            description="Expense recorded",
        )
        assert event.event_type == AuditEventType.TRANSACTION_ADDED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.MONTH_EXPORTED,
            description="Exported",
            details={"rows": 3},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "month_exported"
        assert log_dict["details"]["rows"] == 3

    def test_audit_event_to_row(self):
        """Test conversion to a flat row."""
        event = AuditEventBuilder.transaction_deleted("tx-1")
        row = event.to_row()
        assert len(row) == 11  # Expected number of columns
        assert row[2] == "transaction_deleted"
        assert row[5] == "tx-1"
        assert row[10] == "True"  # is_user_action

    def test_builder_month_deleted_is_warning(self):
        correlation_id = uuid4()
        event = AuditEventBuilder.month_deleted("2024-03", 14, correlation_id)
        assert event.severity == AuditSeverity.WARNING
        assert event.entity_id == "2024-03"
        assert event.correlation_id == correlation_id
        assert event.details["removed"] == 14

    def test_builder_rate_fetch_failed(self):
        event = AuditEventBuilder.exchange_rate_fetch_failed("21.5", "timeout")
        assert event.event_type == AuditEventType.EXCHANGE_RATE_FETCH_FAILED
        assert event.error_message == "timeout"
        assert event.is_user_action is False


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            schema_valid=False,
            semantic_valid=False,
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="invalid_value",
                    message="Amount must be greater than zero",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            schema_valid=True,
            semantic_valid=True,
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="date",
                    issue_type="future_date",
                    message="Date in future",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0

    def test_issue_severity_is_restricted(self):
        with pytest.raises(ValidationError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

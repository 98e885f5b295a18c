"""
Data Models Package

This package contains all Pydantic models used in Pocket Ledger.
All data flowing through the system must conform to these schemas.
"""

from pocket_ledger.models.category import (
    CATEGORY_STYLES,
    AnyCategory,
    CategoryStyle,
    ExpenseCategory,
    IncomeCategory,
    category_style,
)
from pocket_ledger.models.transaction import (
    ExpenseTransaction,
    IncomeTransaction,
    ReceiptItem,
    Transaction,
    TransactionDraft,
    TransactionType,
    create_transaction,
    month_key,
    parse_transaction,
    transaction_to_record,
)
from pocket_ledger.models.views import (
    BudgetLine,
    CategoryTotal,
    DailySummary,
    ExportRow,
    ItemBucket,
    ItemPriceStats,
    MonthlySummary,
    PricePoint,
    ReconciliationPolicy,
    Totals,
)
from pocket_ledger.models.document import ExtractedDocument
from pocket_ledger.models.validation import ValidationIssue, ValidationResult
from pocket_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Categories
    "CATEGORY_STYLES",
    "AnyCategory",
    "CategoryStyle",
    "ExpenseCategory",
    "IncomeCategory",
    "category_style",
    # Transactions
    "ExpenseTransaction",
    "IncomeTransaction",
    "ReceiptItem",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "create_transaction",
    "month_key",
    "parse_transaction",
    "transaction_to_record",
    # Views
    "BudgetLine",
    "CategoryTotal",
    "DailySummary",
    "ExportRow",
    "ItemBucket",
    "ItemPriceStats",
    "MonthlySummary",
    "PricePoint",
    "ReconciliationPolicy",
    "Totals",
    # Extraction and validation
    "ExtractedDocument",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]

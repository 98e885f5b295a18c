"""
Core Transaction Models for Pocket Ledger

These models define the schema of every record in the transaction log.
They are designed to:
1. Be immutable once created (edits are delete + recreate)
2. Make invalid states unrepresentable (an expense cannot carry tax)
3. Tolerate legacy records (missing type, unknown category, old field names)
4. Be serializable for storage and export

DESIGN DECISION: A transaction is a sum type, ExpenseTransaction or
IncomeTransaction, discriminated on the "type" field. Records stored
without a type are expenses.

DESIGN DECISION: Dates are kept as fixed-width "YYYY-MM-DD" text. Every
month grouping takes the first 7 characters as the month key. This is a
precondition on producers, checked by the entry validator, not here.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal, Mapping, Optional, Union
from uuid import uuid4

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
)

from pocket_ledger.models.category import ExpenseCategory, IncomeCategory


MONTH_KEY_LENGTH = 7


def month_key(date_text: str) -> str:
    """Month key ("YYYY-MM") of a fixed-width ISO date string."""
    return date_text[:MONTH_KEY_LENGTH]


def _new_transaction_id() -> str:
    return str(uuid4())


class TransactionType(str, Enum):
    """Direction of money flow."""
    EXPENSE = "expense"
    INCOME = "income"


class ReceiptItem(BaseModel):
    """
    One line of a parsed receipt.

    The price is the extended line total. Quantity is informational
    and never multiplied into aggregates.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Generic item label, e.g. 'Full Cream Milk'"
    )
    price: Decimal = Field(
        ...,
        ge=0,
        description="Line total in the home currency"
    )
    quantity: int = Field(
        default=1,
        ge=1,
        description="Units purchased (not used in aggregation)"
    )


class _TransactionBase(BaseModel):
    """Fields shared by both transaction variants."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        frozen=True,
        extra="ignore",
    )

    id: str = Field(
        default_factory=_new_transaction_id,
        min_length=1,
        description="Opaque identifier, never reused"
    )
    amount_primary: Decimal = Field(
        ...,
        ge=0,
        validation_alias=AliasChoices("amount_primary", "amountAUD"),
        description="Amount in the home currency"
    )
    amount_secondary: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        validation_alias=AliasChoices("amount_secondary", "amountTWD"),
        description="Converted amount, frozen at creation time"
    )
    date: str = Field(
        ...,
        description="Fixed-width YYYY-MM-DD date"
    )
    note: str = Field(
        default="",
        max_length=500,
        description="Free text; doubles as merchant/source for price tracking"
    )
    items: Optional[tuple[ReceiptItem, ...]] = Field(
        default=None,
        description="Receipt lines, present only when a document was parsed"
    )

    @field_validator("note", mode="before")
    @classmethod
    def none_note_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def month_key(self) -> str:
        return month_key(self.date)

    @property
    def has_items(self) -> bool:
        return bool(self.items)

    @property
    def items_total(self) -> Decimal:
        return sum((item.price for item in self.items or ()), Decimal("0"))

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME


class ExpenseTransaction(_TransactionBase):
    """Money spent."""

    type: Literal["expense"] = "expense"
    category: ExpenseCategory = ExpenseCategory.OTHER

    @field_validator("category", mode="before")
    @classmethod
    def coerce_category(cls, v: Any) -> ExpenseCategory:
        return ExpenseCategory.coerce(v)


class IncomeTransaction(_TransactionBase):
    """Money received. Payslips may report tax withheld and superannuation."""

    type: Literal["income"] = "income"
    category: IncomeCategory = IncomeCategory.OTHER_INCOME
    tax: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Tax withheld (PAYG)"
    )
    superannuation: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Employer superannuation contribution"
    )

    @field_validator("category", mode="before")
    @classmethod
    def coerce_category(cls, v: Any) -> IncomeCategory:
        return IncomeCategory.coerce(v)


Transaction = Annotated[
    Union[ExpenseTransaction, IncomeTransaction],
    Field(discriminator="type"),
]

_TRANSACTION_ADAPTER: TypeAdapter = TypeAdapter(Transaction)


def parse_transaction(data: Mapping[str, Any]) -> Union[ExpenseTransaction, IncomeTransaction]:
    """
    Load a stored record into the right transaction variant.

    Anything whose type is not "income" (including a missing type)
    is treated as an expense.
    """
    record = dict(data)
    raw_type = record.get("type")
    if isinstance(raw_type, Enum):
        raw_type = raw_type.value
    record["type"] = (
        TransactionType.INCOME.value
        if raw_type == TransactionType.INCOME.value
        else TransactionType.EXPENSE.value
    )
    return _TRANSACTION_ADAPTER.validate_python(record)


class TransactionDraft(BaseModel):
    """
    A transaction as entered by the user or proposed by document extraction.

    Drafts are NOT trusted. They go through TransactionValidator and only
    then become a Transaction via create_transaction().
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    type: TransactionType = TransactionType.EXPENSE
    amount: Decimal = Field(..., ge=0)
    category: Optional[str] = None
    date: str = Field(
        default_factory=lambda: datetime.now().date().isoformat()
    )
    note: str = ""
    items: list[ReceiptItem] = Field(default_factory=list)
    tax: Optional[Decimal] = Field(default=None, ge=0)
    superannuation: Optional[Decimal] = Field(default=None, ge=0)


def create_transaction(
    draft: TransactionDraft,
    exchange_rate: Decimal,
) -> Union[ExpenseTransaction, IncomeTransaction]:
    """
    Turn a draft into an immutable transaction.

    amount_secondary is computed here, once, with the rate in effect now.
    It is never recomputed when the rate later changes.
    """
    if exchange_rate < 0:
        raise ValueError("Exchange rate cannot be negative")

    common = dict(
        amount_primary=draft.amount,
        amount_secondary=draft.amount * exchange_rate,
        date=draft.date,
        note=draft.note,
        items=tuple(draft.items) if draft.items else None,
    )

    if draft.type == TransactionType.INCOME:
        return IncomeTransaction(
            category=draft.category,
            tax=draft.tax,
            superannuation=draft.superannuation,
            **common,
        )

    if draft.tax is not None or draft.superannuation is not None:
        raise ValueError("Expense transactions cannot carry tax or superannuation")

    return ExpenseTransaction(category=draft.category, **common)


def transaction_to_record(
    transaction: Union[ExpenseTransaction, IncomeTransaction],
) -> dict:
    """JSON-ready dict of a transaction (amounts as strings)."""
    return transaction.model_dump(mode="json", exclude_none=True)

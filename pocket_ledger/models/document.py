"""
Document extraction result.

CRITICAL: This is PROPOSED data, NOT verified.
It becomes a TransactionDraft that the user reviews; only a validated
draft ever becomes a Transaction.
"""

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pocket_ledger.models.transaction import ReceiptItem, TransactionDraft, TransactionType


class ExtractedDocument(BaseModel):
    """
    What the extraction service thinks it saw on a receipt or payslip.

    All fields except amount are optional because extraction is best effort.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    amount: Decimal = Field(
        ...,
        ge=0,
        description="Final amount (net pay for payslips)"
    )
    date: Optional[str] = Field(
        default=None,
        description="Transaction date as YYYY-MM-DD"
    )
    merchant: str = Field(
        default="",
        description="Merchant, employer or payer"
    )
    category: Optional[str] = None
    items: list[ReceiptItem] = Field(default_factory=list)
    tax: Optional[Decimal] = Field(default=None, ge=0)
    superannuation: Optional[Decimal] = Field(default=None, ge=0)

    @field_validator("merchant", mode="before")
    @classmethod
    def none_merchant_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("items", mode="before")
    @classmethod
    def drop_unusable_items(cls, v: Any) -> Any:
        """Skip lines without a name or a non-negative price instead of failing the whole document."""
        if not v:
            return []
        usable = []
        for raw in v:
            if not isinstance(raw, dict):
                continue
            name = str(raw.get("name") or "").strip()
            price = raw.get("price")
            if not name or price is None:
                continue
            try:
                if Decimal(str(price)) < 0:
                    continue
            except Exception:
                continue
            usable.append(raw)
        return usable

    def to_draft(self, transaction_type: TransactionType) -> TransactionDraft:
        """
        Build a draft for user review.

        Items are kept for expenses only; tax and superannuation for
        income only.
        """
        is_income = transaction_type == TransactionType.INCOME
        fields: dict[str, Any] = dict(
            type=transaction_type,
            amount=self.amount,
            category=self.category,
            note=self.merchant,
            items=[] if is_income else list(self.items),
            tax=self.tax if is_income else None,
            superannuation=self.superannuation if is_income else None,
        )
        if self.date:
            fields["date"] = self.date
        return TransactionDraft(**fields)

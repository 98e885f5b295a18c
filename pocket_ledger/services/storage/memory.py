"""
In-memory storage.

Used by tests and by the "memory" backend. Nothing survives the process.
"""

from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from pocket_ledger.models.audit import AuditEvent
from pocket_ledger.models.category import ExpenseCategory
from pocket_ledger.models.transaction import Transaction
from pocket_ledger.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    PreferencesStoreInterface,
    TransactionLogInterface,
)


class InMemoryTransactionLog(TransactionLogInterface):

    def __init__(self, transactions: Iterable[Transaction] = ()):
        self._transactions: list[Transaction] = []
        self._version = 0
        for transaction in transactions:
            self.append(transaction)

    @property
    def version(self) -> int:
        return self._version

    def list(self) -> tuple[Transaction, ...]:
        return tuple(self._transactions)

    def append(self, transaction: Transaction) -> None:
        if any(t.id == transaction.id for t in self._transactions):
            raise DuplicateError(f"Transaction already exists: {transaction.id}")
        self._transactions.append(transaction)
        self._version += 1

    def remove(self, transaction_id: str) -> bool:
        kept = [t for t in self._transactions if t.id != transaction_id]
        if len(kept) == len(self._transactions):
            return False
        self._transactions = kept
        self._version += 1
        return True

    def remove_where(self, month_prefix: str) -> int:
        kept = [t for t in self._transactions if not t.date.startswith(month_prefix)]
        removed = len(self._transactions) - len(kept)
        if removed:
            self._transactions = kept
            self._version += 1
        return removed


class InMemoryPreferences(PreferencesStoreInterface):

    def __init__(
        self,
        budgets: Optional[dict[ExpenseCategory, Decimal]] = None,
        exchange_rate: Optional[Decimal] = None,
    ):
        self._budgets = dict(budgets or {})
        self._exchange_rate = exchange_rate

    def get_budgets(self) -> dict[ExpenseCategory, Decimal]:
        return dict(self._budgets)

    def set_budget(self, category: ExpenseCategory, limit: Decimal) -> None:
        self._budgets[category] = limit

    def get_exchange_rate(self) -> Optional[Decimal]:
        return self._exchange_rate

    def set_exchange_rate(self, rate: Decimal) -> None:
        self._exchange_rate = rate


class InMemoryAuditStorage(AuditStorageInterface):
    """Keeps audit events in a list, oldest first."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self.events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self.events))[:limit]

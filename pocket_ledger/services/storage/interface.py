"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the transaction log in a JSON file, Google Sheets, or memory
2. Use in-memory storage for testing
3. Keep the analytics engine decoupled from storage implementation

The transaction log is append/remove only. Transactions are immutable;
an edit is a remove followed by an append. Every mutation bumps the
log version so cached views know they are stale.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pocket_ledger.models.audit import AuditEvent
from pocket_ledger.models.category import ExpenseCategory
from pocket_ledger.models.transaction import Transaction


class TransactionLogInterface(ABC):
    """
    Ordered collection of transactions.

    Order is insertion order. The analytics engine only calls list()
    and reads version.
    """

    @property
    @abstractmethod
    def version(self) -> int:
        """Counter bumped by every successful mutation."""
        pass

    @abstractmethod
    def list(self) -> tuple[Transaction, ...]:
        """
        Snapshot of the log in insertion order.

        Returns:
            Immutable tuple of transactions
        """
        pass

    @abstractmethod
    def append(self, transaction: Transaction) -> None:
        """
        Add a transaction at the end of the log.

        Raises:
            DuplicateError: If a transaction with the same id exists
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def remove(self, transaction_id: str) -> bool:
        """
        Remove a transaction by id.

        Returns:
            True if a transaction was removed
        """
        pass

    @abstractmethod
    def remove_where(self, month_prefix: str) -> int:
        """
        Remove every transaction whose date starts with the prefix.

        Returns:
            Number of transactions removed
        """
        pass


class PreferencesStoreInterface(ABC):
    """Budgets and the currently held exchange rate."""

    @abstractmethod
    def get_budgets(self) -> dict[ExpenseCategory, Decimal]:
        pass

    @abstractmethod
    def set_budget(self, category: ExpenseCategory, limit: Decimal) -> None:
        """Store a limit; a limit of 0 means untracked."""
        pass

    @abstractmethod
    def get_exchange_rate(self) -> Optional[Decimal]:
        """The held rate, or None if none was ever stored."""
        pass

    @abstractmethod
    def set_exchange_rate(self, rate: Decimal) -> None:
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one document upload flow).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass

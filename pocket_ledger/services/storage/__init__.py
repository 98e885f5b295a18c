"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Local JSON files are the default backend; Google Sheets and memory are
selectable through StorageSettings.backend.
"""

from pocket_ledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    NotFoundError,
    PreferencesStoreInterface,
    StorageError,
    TransactionLogInterface,
)
from pocket_ledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryPreferences,
    InMemoryTransactionLog,
)
from pocket_ledger.services.storage.json_file import (
    JsonFilePreferences,
    JsonFileTransactionLog,
)
from pocket_ledger.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionLog,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "PreferencesStoreInterface",
    "TransactionLogInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryPreferences",
    "InMemoryTransactionLog",
    # JSON file implementation
    "JsonFilePreferences",
    "JsonFileTransactionLog",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsTransactionLog",
]

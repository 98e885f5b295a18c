"""Services package."""

from pocket_ledger.services.extraction import (
    ExtractionError,
    ExtractionFailedError,
    GeminiDocumentExtractor,
)
from pocket_ledger.services.rates import (
    ExchangeRateService,
    RateFetchError,
)
from pocket_ledger.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionLog,
    InMemoryAuditStorage,
    InMemoryPreferences,
    InMemoryTransactionLog,
    JsonFilePreferences,
    JsonFileTransactionLog,
    NotFoundError,
    PreferencesStoreInterface,
    StorageError,
    TransactionLogInterface,
)

__all__ = [
    # Extraction services
    "ExtractionError",
    "ExtractionFailedError",
    "GeminiDocumentExtractor",
    # Rate services
    "ExchangeRateService",
    "RateFetchError",
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsTransactionLog",
    "InMemoryAuditStorage",
    "InMemoryPreferences",
    "InMemoryTransactionLog",
    "JsonFilePreferences",
    "JsonFileTransactionLog",
    "NotFoundError",
    "PreferencesStoreInterface",
    "StorageError",
    "TransactionLogInterface",
]

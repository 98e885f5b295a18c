"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is an optional storage backend because:
1. Users can view and share their ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (we handle this with careful ordering)
- Limited query capabilities (all analytics run in Python anyway)

The transaction log reads the sheet once and then serves snapshots from
memory. Mutations write through to the sheet before the local copy changes.
"""

import json
from datetime import datetime
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from pydantic import ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from pocket_ledger.config import GoogleSheetsSettings, get_settings
from pocket_ledger.models.audit import AuditEvent, AuditEventType, AuditSeverity
from pocket_ledger.models.transaction import Transaction, parse_transaction
from pocket_ledger.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    StorageError,
    TransactionLogInterface,
)


logger = structlog.get_logger(__name__)


# Column mappings for Transactions sheet
TRANSACTION_COLUMNS = [
    "id",
    "date",
    "type",
    "category",
    "amount_primary",
    "amount_secondary",
    "note",
    "tax",
    "superannuation",
    "items_json",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(title=title, rows=rows, cols=len(columns))
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        """Get or create the Transactions worksheet."""
        return self._get_or_create(
            self._settings.transactions_sheet_name, TRANSACTION_COLUMNS, rows=1000
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


def transaction_to_row(transaction: Transaction) -> list:
    """Convert a transaction to a spreadsheet row."""
    tax = getattr(transaction, "tax", None)
    superannuation = getattr(transaction, "superannuation", None)
    return [
        transaction.id,
        transaction.date,
        transaction.type,
        transaction.category.value,
        str(transaction.amount_primary),
        str(transaction.amount_secondary),
        transaction.note,
        str(tax) if tax is not None else "",
        str(superannuation) if superannuation is not None else "",
        json.dumps(
            [item.model_dump(mode="json") for item in transaction.items]
        ) if transaction.items else "",
    ]


def row_to_transaction(row: list) -> Transaction:
    """Convert a spreadsheet row to a transaction."""
    # Handle missing columns gracefully
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default

    record = {
        "id": safe_get(0),
        "date": safe_get(1),
        "type": safe_get(2),
        "category": safe_get(3),
        "amount_primary": safe_get(4, "0"),
        "amount_secondary": safe_get(5, "0"),
        "note": safe_get(6),
    }
    if safe_get(7):
        record["tax"] = safe_get(7)
    if safe_get(8):
        record["superannuation"] = safe_get(8)
    if safe_get(9):
        record["items"] = json.loads(safe_get(9))
    return parse_transaction(record)


class GoogleSheetsTransactionLog(TransactionLogInterface):
    """
    Google Sheets implementation of the transaction log.

    One transaction per row, in insertion order. Receipt items are
    JSON-serialized into a single cell.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._transactions: Optional[list[Transaction]] = None
        self._version = 0

    def _loaded(self) -> list[Transaction]:
        if self._transactions is None:
            try:
                all_rows = self._client.get_transactions_sheet().get_all_values()[1:]
            except Exception as e:
                raise StorageError(f"Failed to load transactions: {e}")

            transactions = []
            for row in all_rows:
                if not row or not row[0]:  # Skip empty rows
                    continue
                try:
                    transactions.append(row_to_transaction(row))
                except (ValidationError, ValueError) as e:
                    logger.warning("transaction_row_skipped", row_id=row[0], error=str(e))
            self._transactions = transactions
        return self._transactions

    @property
    def version(self) -> int:
        return self._version

    def list(self) -> tuple[Transaction, ...]:
        return tuple(self._loaded())

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _append_row(self, row: list) -> None:
        self._client.get_transactions_sheet().append_row(row, value_input_option="RAW")

    def append(self, transaction: Transaction) -> None:
        transactions = self._loaded()
        if any(t.id == transaction.id for t in transactions):
            raise DuplicateError(f"Transaction already exists: {transaction.id}")
        try:
            self._append_row(transaction_to_row(transaction))
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}")
        transactions.append(transaction)
        self._version += 1

    def _delete_matching(self, predicate) -> int:
        try:
            sheet = self._client.get_transactions_sheet()
            all_rows = sheet.get_all_values()
            # Row 1 is the header; delete bottom-up so indexes stay valid
            targets = [
                idx for idx, row in enumerate(all_rows[1:], start=2)
                if row and predicate(row)
            ]
            for idx in reversed(targets):
                sheet.delete_rows(idx)
            return len(targets)
        except Exception as e:
            raise StorageError(f"Failed to delete transactions: {e}")

    def remove(self, transaction_id: str) -> bool:
        transactions = self._loaded()
        if not any(t.id == transaction_id for t in transactions):
            return False
        self._delete_matching(lambda row: row[0] == transaction_id)
        self._transactions = [t for t in transactions if t.id != transaction_id]
        self._version += 1
        return True

    def remove_where(self, month_prefix: str) -> int:
        transactions = self._loaded()
        kept = [t for t in transactions if not t.date.startswith(month_prefix)]
        removed = len(transactions) - len(kept)
        if removed:
            self._delete_matching(
                lambda row: len(row) > 1 and row[1].startswith(month_prefix)
            )
            self._transactions = kept
            self._version += 1
        return removed


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=safe_get(5) or None,
            correlation_id=UUID(safe_get(6)) if safe_get(6) else None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
            is_user_action=safe_get(10).lower() == "true",
        )

    def _all_events(self) -> list[AuditEvent]:
        all_rows = self._client.get_audit_sheet().get_all_values()[1:]
        events = []
        for row in all_rows:
            if row and row[0]:
                try:
                    events.append(self._row_to_event(row))
                except (ValueError, ValidationError):
                    continue
        return events

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _append_row(self, row: list) -> None:
        self._client.get_audit_sheet().append_row(row, value_input_option="RAW")

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._append_row(event.to_row())
            return True
        except Exception as e:
            # Audit logging should not break the main flow
            logger.warning("audit_write_failed", event_id=str(event.event_id), error=str(e))
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        try:
            events = [e for e in self._all_events() if e.correlation_id == correlation_id]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            events = self._all_events()
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]

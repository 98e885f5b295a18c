"""
JSON File Storage Implementation

DESIGN DECISION: The default backend is a pair of local JSON files:
one for the transaction log, one for preferences (budgets and the held
exchange rate). The whole file is rewritten on every mutation through a
temporary file and a rename, so a crash never leaves half a log behind.

Records written by older versions of the app (no "type", amountAUD /
amountTWD field names, unknown categories) load without migration.
"""

import json
import os
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from pocket_ledger.models.category import ExpenseCategory
from pocket_ledger.models.transaction import (
    Transaction,
    parse_transaction,
    transaction_to_record,
)
from pocket_ledger.services.storage.interface import (
    DuplicateError,
    PreferencesStoreInterface,
    StorageError,
    TransactionLogInterface,
)


logger = structlog.get_logger(__name__)


def _read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        raise StorageError(f"Failed to read {path}: {e}")


def _write_json(path: Path, data: Any) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)
    except OSError as e:
        raise StorageError(f"Failed to write {path}: {e}")


class JsonFileTransactionLog(TransactionLogInterface):
    """
    Transaction log kept in a single JSON array.

    The file is read once at construction; afterwards the in-memory list
    is authoritative. Every mutation writes the new list first and only
    adopts it once the write succeeded, so a failed save leaves memory,
    disk and the version unchanged.
    """

    def __init__(self, path: Path):
        self._path = Path(path)
        self._version = 0
        self._transactions, ids_assigned = self._load()
        if ids_assigned:
            # Legacy records without an id got a fresh one; keep it stable
            try:
                self._save(self._transactions)
            except StorageError as e:
                logger.warning("transaction_ids_not_persisted", path=str(self._path), error=str(e))
            else:
                logger.info("transaction_ids_assigned", path=str(self._path), count=ids_assigned)

    def _load(self) -> tuple[list[Transaction], int]:
        raw = _read_json(self._path, default=[])
        if not isinstance(raw, list):
            raise StorageError(f"Transaction file is not a list: {self._path}")

        transactions = []
        ids_assigned = 0
        for record in raw:
            if not isinstance(record, dict):
                continue
            try:
                transactions.append(parse_transaction(record))
            except ValidationError as e:
                # Skip malformed records
                logger.warning(
                    "transaction_record_skipped",
                    path=str(self._path),
                    record_id=record.get("id"),
                    error=str(e),
                )
                continue
            if not record.get("id"):
                ids_assigned += 1
        return transactions, ids_assigned

    def _save(self, transactions: list[Transaction]) -> None:
        _write_json(self._path, [transaction_to_record(t) for t in transactions])

    def _commit(self, transactions: list[Transaction]) -> None:
        self._save(transactions)
        self._transactions = transactions
        self._version += 1

    @property
    def version(self) -> int:
        return self._version

    def list(self) -> tuple[Transaction, ...]:
        return tuple(self._transactions)

    def append(self, transaction: Transaction) -> None:
        if any(t.id == transaction.id for t in self._transactions):
            raise DuplicateError(f"Transaction already exists: {transaction.id}")
        self._commit(self._transactions + [transaction])

    def remove(self, transaction_id: str) -> bool:
        kept = [t for t in self._transactions if t.id != transaction_id]
        if len(kept) == len(self._transactions):
            return False
        self._commit(kept)
        return True

    def remove_where(self, month_prefix: str) -> int:
        kept = [t for t in self._transactions if not t.date.startswith(month_prefix)]
        removed = len(self._transactions) - len(kept)
        if removed:
            self._commit(kept)
        return removed


class JsonFilePreferences(PreferencesStoreInterface):
    """
    Preferences file layout:
        {"budgets": {"Groceries": "400"}, "exchange_rate": "21.5"}
    """

    def __init__(self, path: Path):
        self._path = Path(path)
        data = _read_json(self._path, default={})
        self._data: dict = data if isinstance(data, dict) else {}

    def _replace(self, data: dict) -> None:
        _write_json(self._path, data)
        self._data = data

    def get_budgets(self) -> dict[ExpenseCategory, Decimal]:
        budgets: dict[ExpenseCategory, Decimal] = {}
        for key, value in (self._data.get("budgets") or {}).items():
            try:
                limit = Decimal(str(value))
            except InvalidOperation:
                continue
            if limit.is_finite():
                budgets[ExpenseCategory.coerce(key)] = limit
        return budgets

    def set_budget(self, category: ExpenseCategory, limit: Decimal) -> None:
        budgets = dict(self._data.get("budgets") or {})
        budgets[category.value] = str(limit)
        self._replace({**self._data, "budgets": budgets})

    def get_exchange_rate(self) -> Optional[Decimal]:
        raw = self._data.get("exchange_rate")
        if raw is None:
            return None
        try:
            return Decimal(str(raw))
        except InvalidOperation:
            return None

    def set_exchange_rate(self, rate: Decimal) -> None:
        self._replace({**self._data, "exchange_rate": str(rate)})

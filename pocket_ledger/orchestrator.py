"""
Main Orchestrator for Pocket Ledger

This module ties together all the components and defines the
end-to-end flows for:
1. Ledger changes (draft -> validate -> create -> append)
2. Document scanning (document -> extract -> draft for review)
3. Exchange rate refresh (fetch -> store, or keep the old rate)
4. Financial insight (snapshot -> figures -> AI text)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No draft reaches the log without passing validation
- Extracted documents only ever produce drafts, never transactions
- A failed rate lookup changes nothing
- Every change is audited

External failures are converted here into "no result" plus a user
message and an audit event. Nothing below this layer swallows them.
"""

import asyncio
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

import structlog

from pocket_ledger.agents import FinancialInsight, InsightAgent
from pocket_ledger.analytics import AnalyticsEngine, export_filename, filter_by_month, normalize_budgets
from pocket_ledger.audit import AuditLogger, configure_logging, create_correlation_id
from pocket_ledger.config import Settings, get_settings, optional_gemini_settings
from pocket_ledger.models.category import ExpenseCategory
from pocket_ledger.models.transaction import (
    Transaction,
    TransactionDraft,
    TransactionType,
    create_transaction,
)
from pocket_ledger.models.validation import ValidationResult
from pocket_ledger.services.extraction import ExtractionFailedError, GeminiDocumentExtractor
from pocket_ledger.services.rates import ExchangeRateService, RateFetchError
from pocket_ledger.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionLog,
    InMemoryAuditStorage,
    InMemoryPreferences,
    InMemoryTransactionLog,
    JsonFilePreferences,
    JsonFileTransactionLog,
    PreferencesStoreInterface,
    StorageError,
    TransactionLogInterface,
)
from pocket_ledger.validation import TransactionValidator


logger = structlog.get_logger(__name__)


def _held_rate(preferences: PreferencesStoreInterface, default_rate: Decimal) -> Decimal:
    return preferences.get_exchange_rate() or default_rate


STORAGE_FAILURE_MESSAGE = "Could not save your change. Please try again."


async def _audit_storage_failure(
    audit_logger: Optional[AuditLogger],
    operation: str,
    error: StorageError,
    correlation_id: Optional[UUID] = None,
) -> None:
    logger.error("storage_operation_failed", operation=operation, error=str(error))
    if audit_logger:
        await audit_logger.log_error(
            error_type="storage",
            error_message=str(error),
            details={"operation": operation},
            correlation_id=correlation_id,
        )


class LedgerFlow:
    """
    Orchestrates every change to the transaction log.

    Flow for a new transaction:
    1. Draft (typed by the user or proposed by extraction)
    2. Validate -> two-stage validation
    3. Create -> converted amount frozen with the held rate
    4. Append -> log version bumps, cached views go stale
    """

    def __init__(
        self,
        transaction_log: TransactionLogInterface,
        preferences: PreferencesStoreInterface,
        engine: Optional[AnalyticsEngine] = None,
        validator: Optional[TransactionValidator] = None,
        extractor: Optional[GeminiDocumentExtractor] = None,
        audit_logger: Optional[AuditLogger] = None,
        default_rate: Optional[Decimal] = None,
        max_upload_size_bytes: Optional[int] = None,
    ):
        self._log = transaction_log
        self._preferences = preferences
        self._engine = engine or AnalyticsEngine(transaction_log)
        self._validator = validator or TransactionValidator(transaction_log)
        self._extractor = extractor
        self._audit_logger = audit_logger
        self._default_rate = default_rate or get_settings().exchange_rate.default_rate
        self._max_upload_size_bytes = (
            max_upload_size_bytes or get_settings().app.max_upload_size_bytes
        )

    @property
    def engine(self) -> AnalyticsEngine:
        return self._engine

    def current_rate(self) -> Decimal:
        return _held_rate(self._preferences, self._default_rate)

    async def validate_draft(
        self,
        draft: TransactionDraft,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[ValidationResult, str]:
        """
        Validate a draft.

        Returns:
            (validation_result, user_message)
        """
        result = self._validator.validate(draft)
        message = self._validator.get_user_friendly_summary(result)

        # Audit validation failures
        if self._audit_logger and not result.is_valid:
            issues = [
                {"field": i.field, "type": i.issue_type, "message": i.message}
                for i in result.issues
            ]
            await self._audit_logger.log_validation_failed(
                issues=issues,
                correlation_id=correlation_id,
            )

        return result, message

    async def add_transaction(
        self,
        draft: TransactionDraft,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[Transaction], ValidationResult, str]:
        """
        Validate the draft and append it to the log.

        Returns:
            (transaction or None if rejected, validation_result, user_message)
        """
        correlation_id = correlation_id or create_correlation_id()

        result, message = await self.validate_draft(draft, correlation_id)
        if not result.is_valid:
            return None, result, message

        transaction = create_transaction(draft, self.current_rate())
        try:
            self._log.append(transaction)
        except StorageError as e:
            await _audit_storage_failure(
                self._audit_logger, "add_transaction", e, correlation_id
            )
            return None, result, STORAGE_FAILURE_MESSAGE

        if self._audit_logger:
            await self._audit_logger.log_transaction_added(
                transaction_id=transaction.id,
                transaction_type=transaction.type,
                amount=transaction.amount_primary,
                correlation_id=correlation_id,
            )

        return transaction, result, message

    async def extract_document(
        self,
        document: bytes,
        mime_type: str,
        transaction_type: TransactionType,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[TransactionDraft], str]:
        """
        Read a receipt or payslip into a draft for the user to review.

        Returns:
            (draft or None, user_message)
        """
        correlation_id = correlation_id or create_correlation_id()

        if self._extractor is None:
            return None, "Document scanning is not configured (set GEMINI_API_KEY)."

        if len(document) > self._max_upload_size_bytes:
            return None, "The document is too large to scan."

        try:
            extracted = await self._extractor.extract(document, mime_type, transaction_type)
        except ExtractionFailedError as e:
            if self._audit_logger:
                await self._audit_logger.log_extraction_failed(
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return None, "Could not read the document. Please enter the details manually."

        draft = extracted.to_draft(transaction_type)

        if self._audit_logger:
            await self._audit_logger.log_extraction_completed(
                transaction_type=transaction_type.value,
                item_count=len(draft.items),
                correlation_id=correlation_id,
            )

        return draft, "Please review the scanned details before saving."

    async def delete_transaction(
        self,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        try:
            removed = self._log.remove(transaction_id)
        except StorageError as e:
            await _audit_storage_failure(
                self._audit_logger, "delete_transaction", e, correlation_id
            )
            return False
        if removed and self._audit_logger:
            await self._audit_logger.log_transaction_deleted(
                transaction_id=transaction_id,
                correlation_id=correlation_id,
            )
        return removed

    async def delete_month(
        self,
        month: str,
        correlation_id: Optional[UUID] = None,
    ) -> int:
        """Remove every transaction of a month; returns how many went."""
        try:
            removed = self._log.remove_where(month)
        except StorageError as e:
            await _audit_storage_failure(
                self._audit_logger, "delete_month", e, correlation_id
            )
            return 0
        if removed and self._audit_logger:
            await self._audit_logger.log_month_deleted(
                month=month,
                removed=removed,
                correlation_id=correlation_id,
            )
        return removed

    async def export_month(
        self,
        month: str,
        include_bom: bool = True,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[tuple[str, str]]:
        """
        CSV export of one month.

        Returns:
            (filename, csv_text), or None when the month has no transactions
        """
        content = self._engine.export_month_csv(month, include_bom=include_bom)
        if content is None:
            return None

        if self._audit_logger:
            await self._audit_logger.log_month_exported(
                month=month,
                rows=len(filter_by_month(self._engine.snapshot(), month)),
                correlation_id=correlation_id,
            )

        return export_filename(month), content

    async def set_budget(
        self,
        category: Any,
        limit: Any,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[Decimal]:
        """
        Set a monthly limit. Non-numeric or negative input is stored as 0,
        which means untracked.

        Returns:
            The limit actually stored, or None if it could not be saved
        """
        ((resolved, value),) = normalize_budgets({category: limit}).items()
        try:
            self._preferences.set_budget(resolved, value)
        except StorageError as e:
            await _audit_storage_failure(
                self._audit_logger, "set_budget", e, correlation_id
            )
            return None

        if self._audit_logger:
            await self._audit_logger.log_budget_updated(
                category=resolved.value,
                limit=value,
                correlation_id=correlation_id,
            )

        return value

    def budgets(self) -> dict[ExpenseCategory, Decimal]:
        return self._preferences.get_budgets()


class RateFlow:
    """
    Keeps the held exchange rate current.

    A refresh never touches stored transactions: their converted amounts
    were frozen when they were created.
    """

    def __init__(
        self,
        preferences: PreferencesStoreInterface,
        rate_service: Optional[ExchangeRateService] = None,
        audit_logger: Optional[AuditLogger] = None,
        default_rate: Optional[Decimal] = None,
    ):
        self._preferences = preferences
        self._rate_service = rate_service or ExchangeRateService()
        self._audit_logger = audit_logger
        self._default_rate = default_rate or get_settings().exchange_rate.default_rate

    def current_rate(self) -> Decimal:
        return _held_rate(self._preferences, self._default_rate)

    async def refresh_rate(self) -> tuple[Decimal, bool, str]:
        """
        Fetch the live rate.

        Returns:
            (rate now held, updated, user_message)
        """
        old_rate = self._preferences.get_exchange_rate()

        try:
            new_rate = await asyncio.to_thread(self._rate_service.fetch_rate)
        except RateFetchError as e:
            retained = self.current_rate()
            if self._audit_logger:
                await self._audit_logger.log_exchange_rate_fetch_failed(
                    retained_rate=retained,
                    error_message=str(e),
                )
            return retained, False, f"Could not update the exchange rate; still using {retained}."

        try:
            self._preferences.set_exchange_rate(new_rate)
        except StorageError as e:
            await _audit_storage_failure(self._audit_logger, "refresh_rate", e)
            retained = self.current_rate()
            return retained, False, f"Could not save the new exchange rate; still using {retained}."

        if self._audit_logger:
            await self._audit_logger.log_exchange_rate_updated(
                old_rate=old_rate,
                new_rate=new_rate,
            )

        return new_rate, True, f"Exchange rate updated to {new_rate}."

    async def set_rate(self, rate: Any) -> Decimal:
        """
        Manually override the held rate.

        Raises:
            ValueError: If the rate is not a positive number
        """
        try:
            value = Decimal(str(rate))
        except ArithmeticError:
            raise ValueError(f"Not a number: {rate!r}")
        if not value.is_finite() or value <= 0:
            raise ValueError("Exchange rate must be positive")

        old_rate = self._preferences.get_exchange_rate()
        self._preferences.set_exchange_rate(value)

        if self._audit_logger:
            await self._audit_logger.log_exchange_rate_updated(
                old_rate=old_rate,
                new_rate=value,
            )
        return value


class InsightFlow:
    """Runs the insight agent over the current snapshot."""

    def __init__(
        self,
        engine: AnalyticsEngine,
        rate_flow: RateFlow,
        insight_agent: Optional[InsightAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._engine = engine
        self._rate_flow = rate_flow
        self._insight_agent = insight_agent
        self._audit_logger = audit_logger

    async def generate_insight(self) -> FinancialInsight:
        if self._insight_agent is None:
            return FinancialInsight(
                text="AI analysis is not configured (set GEMINI_API_KEY).",
                generated=False,
            )

        snapshot = self._engine.snapshot()
        insight = await self._insight_agent.generate_insight(
            snapshot, self._rate_flow.current_rate()
        )

        if self._audit_logger:
            if insight.generated:
                await self._audit_logger.log_insight_generated(len(snapshot))
            elif snapshot:
                await self._audit_logger.log_external_service_error(
                    service="gemini",
                    error_message=insight.text,
                )

        return insight


def _create_storage(
    settings: Settings,
) -> tuple[TransactionLogInterface, PreferencesStoreInterface, Optional[AuditStorageInterface]]:
    storage = settings.storage

    if storage.backend == "memory":
        return InMemoryTransactionLog(), InMemoryPreferences(), InMemoryAuditStorage()

    preferences = JsonFilePreferences(storage.preferences_path)

    if storage.backend == "sheets":
        try:
            sheets_client = GoogleSheetsClient(settings.google_sheets)
            return (
                GoogleSheetsTransactionLog(sheets_client),
                preferences,
                GoogleSheetsAuditStorage(sheets_client),
            )
        except Exception as e:
            # Sheets not configured - continue with local files
            logger.warning("sheets_storage_unavailable", error=str(e))

    return JsonFileTransactionLog(storage.transactions_path), preferences, None


def create_app_components(
    settings: Optional[Settings] = None,
) -> tuple[LedgerFlow, RateFlow, InsightFlow, AnalyticsEngine]:
    """
    Factory function to create all application components.

    The storage backend comes from StorageSettings.backend. Document
    scanning and insights are only wired when a Gemini key is configured.

    Returns:
        (ledger_flow, rate_flow, insight_flow, engine)
    """
    settings = settings or get_settings()
    configure_logging(settings.app.log_level)

    try:
        transaction_log, preferences, audit_storage = _create_storage(settings)
    except StorageError as e:
        logger.error("storage_unavailable", error=str(e))
        raise

    audit_logger = AuditLogger(audit_storage)
    engine = AnalyticsEngine.from_settings(transaction_log, settings.analytics)
    default_rate = settings.exchange_rate.default_rate

    extractor = None
    insight_agent = None
    gemini_settings = optional_gemini_settings()
    if gemini_settings is not None:
        extractor = GeminiDocumentExtractor(gemini_settings)
        insight_agent = InsightAgent(gemini_settings)

    validator = TransactionValidator(
        transaction_log,
        future_date_tolerance_days=settings.app.future_date_tolerance_days,
        reconciliation_tolerance=settings.analytics.reconciliation_tolerance,
    )

    ledger_flow = LedgerFlow(
        transaction_log,
        preferences,
        engine=engine,
        validator=validator,
        extractor=extractor,
        audit_logger=audit_logger,
        default_rate=default_rate,
        max_upload_size_bytes=settings.app.max_upload_size_bytes,
    )
    rate_flow = RateFlow(
        preferences,
        rate_service=ExchangeRateService(
            settings.exchange_rate,
            target_currency=settings.analytics.secondary_currency,
        ),
        audit_logger=audit_logger,
        default_rate=default_rate,
    )
    insight_flow = InsightFlow(
        engine,
        rate_flow,
        insight_agent=insight_agent,
        audit_logger=audit_logger,
    )

    return ledger_flow, rate_flow, insight_flow, engine

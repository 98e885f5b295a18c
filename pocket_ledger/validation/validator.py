"""
Two-Stage Validation Pipeline

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Date format (fixed-width YYYY-MM-DD, real calendar date)
- Positive amount
- Fields that do not belong to the transaction type
- This catches typos and malformed extraction output

STAGE 2 - SEMANTIC VALIDATION:
- Future date detection
- Unknown category detection
- Receipt items summing above the total
- Duplicate detection
- This catches suspicious data

The month key of every transaction is the first seven characters of its
date, so a date that is not fixed-width ISO would silently land in the
wrong month. That is why the date check is an error, not a warning.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for human review.
"""

import re
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from pocket_ledger.config import get_settings
from pocket_ledger.models.category import ExpenseCategory, IncomeCategory
from pocket_ledger.models.transaction import TransactionDraft, TransactionType
from pocket_ledger.models.validation import ValidationIssue, ValidationResult
from pocket_ledger.services.storage import TransactionLogInterface


ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_iso_date(text: str) -> Optional[date]:
    """The date for a fixed-width YYYY-MM-DD string, or None."""
    if not ISO_DATE_PATTERN.match(text or ""):
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


class TransactionValidator:
    """
    Validates transaction drafts through a two-stage pipeline.

    Stage 1: Schema validation
    Stage 2: Semantic validation (uses the log for duplicate checks)
    """

    def __init__(
        self,
        transaction_log: Optional[TransactionLogInterface] = None,
        future_date_tolerance_days: Optional[int] = None,
        reconciliation_tolerance: Optional[Decimal] = None,
    ):
        """
        Initialize validator.

        Args:
            transaction_log: Log used for duplicate checking.
                            If None, duplicate checking is skipped.
        """
        self._log = transaction_log
        if future_date_tolerance_days is None:
            future_date_tolerance_days = get_settings().app.future_date_tolerance_days
        if reconciliation_tolerance is None:
            reconciliation_tolerance = get_settings().analytics.reconciliation_tolerance
        self._future_days = future_date_tolerance_days
        self._tolerance = reconciliation_tolerance

    def _validate_schema(
        self,
        draft: TransactionDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if parse_iso_date(draft.date) is None:
            issues.append(ValidationIssue(
                field="date",
                issue_type="invalid_format",
                message=f"Date '{draft.date}' is not a valid YYYY-MM-DD date",
                severity="error",
                suggested_fix="Enter the date as YYYY-MM-DD, e.g. 2024-03-05",
            ))

        if draft.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Check if the amount was read correctly",
            ))

        if draft.type == TransactionType.EXPENSE:
            for field_name in ("tax", "superannuation"):
                if getattr(draft, field_name) is not None:
                    issues.append(ValidationIssue(
                        field=field_name,
                        issue_type="not_allowed",
                        message=f"Expenses cannot record {field_name}",
                        severity="error",
                        suggested_fix="Remove the value or record this as income",
                    ))
        elif draft.items:
            issues.append(ValidationIssue(
                field="items",
                issue_type="not_allowed",
                message="Income cannot carry receipt items",
                severity="error",
                suggested_fix="Remove the items or record this as an expense",
            ))

        # Schema is valid if no errors (warnings are okay)
        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def _validate_semantic(
        self,
        draft: TransactionDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        # Future date check (with tolerance)
        max_future_date = date.today() + timedelta(days=self._future_days)
        entered = parse_iso_date(draft.date)
        if entered and entered > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({draft.date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        categories = IncomeCategory if draft.type == TransactionType.INCOME else ExpenseCategory
        if draft.category is None or not draft.category.strip():
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message=f"No category chosen; it will be saved as {categories.fallback().value}",
                severity="info",
            ))
        elif not categories.is_known(draft.category):
            issues.append(ValidationIssue(
                field="category",
                issue_type="unknown_category",
                message=(
                    f"Unknown category '{draft.category}'; "
                    f"it will be saved as {categories.fallback().value}"
                ),
                severity="warning",
                suggested_fix="Pick one of the listed categories",
            ))

        if draft.items:
            items_sum = sum((item.price for item in draft.items), Decimal("0"))
            if items_sum > draft.amount + self._tolerance:
                issues.append(ValidationIssue(
                    field="items",
                    issue_type="over_itemized",
                    message=(
                        f"Items add up to ${items_sum}, more than the total ${draft.amount}"
                    ),
                    severity="warning",
                    suggested_fix="Check for discounts or subtotals read as items",
                ))

        # Semantic validation passes if no errors
        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def _check_duplicates(
        self,
        draft: TransactionDraft,
    ) -> list[ValidationIssue]:
        """Same type, date, amount and note as something already logged."""
        if self._log is None:
            return []

        for existing in self._log.list():
            if (
                existing.type == draft.type.value
                and existing.date == draft.date
                and existing.amount_primary == draft.amount
                and existing.note == draft.note
            ):
                return [ValidationIssue(
                    field="duplicate",
                    issue_type="potential_duplicate",
                    message=(
                        f"A {draft.type.value} of ${draft.amount} on {draft.date} "
                        "may already exist"
                    ),
                    severity="warning",
                    suggested_fix="Please verify this isn't a duplicate entry",
                )]
        return []

    def validate(
        self,
        draft: TransactionDraft,
        check_duplicates: bool = True,
    ) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            draft: The transaction draft to validate
            check_duplicates: Whether to compare against the log

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        # Stage 1: Schema validation
        schema_valid, schema_issues = self._validate_schema(draft)
        all_issues.extend(schema_issues)

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(draft)
            all_issues.extend(semantic_issues)

            if check_duplicates:
                all_issues.extend(self._check_duplicates(draft))

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]

        return ValidationResult(
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what we show to non-technical users.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed! Please review the details below."

        lines = []

        if result.has_errors:
            lines.append("❌ Some details need fixing:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        lines.append("")
        if result.is_valid:
            lines.append("You can still save, but please review carefully.")
        else:
            lines.append("Please fix the issues above before saving.")

        return "\n".join(lines)

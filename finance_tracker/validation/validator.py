"""
Two-Stage Validation Pipeline

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Type checking (revenue/expense, dates, numbers)
- Required field presence (description, category, title)
- amount > 0 with at most 15 significant digits
- Any failure here is an error and the record is rejected

STAGE 2 - SEMANTIC VALIDATION:
- Dates far in the future
- Absurdly large amounts
- These are warnings: shown to the user, never blocking

IMPORTANT: Validation NEVER silently fixes issues.
It reports them, and rejected input never reaches the store.
"""

from datetime import date, timedelta
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from finance_tracker.config import AppSettings, get_settings
from finance_tracker.models.records import (
    NewCalendarEvent,
    NewTransaction,
    ValidationIssue,
    ValidationResult,
)


ModelT = TypeVar("ModelT", bound=BaseModel)

SUGGESTED_FIXES = {
    "type": "Choose either revenue or expense",
    "date": "Pick a date from the calendar",
    "amount": "Enter an amount greater than zero with at most 15 digits",
    "description": "Describe what the money was for",
    "category": "Enter a category or use the suggestions",
    "title": "Give the event a short title",
}


class RecordValidator:
    """
    Validates raw form input for transactions and events.

    Stage 1: Schema validation via the input models
    Stage 2: Semantic checks against configured thresholds
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _validate_schema(
        self,
        model: Type[ModelT],
        data: dict[str, Any],
    ) -> tuple[Optional[ModelT], list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (parsed_model_or_None, list_of_issues)
        """
        try:
            return model.model_validate(data), []
        except ValidationError as e:
            issues = []
            for error in e.errors():
                field = ".".join(str(part) for part in error["loc"]) or "record"
                issues.append(ValidationIssue(
                    field=field,
                    issue_type=error["type"],
                    message=f"{field.capitalize()}: {error['msg']}",
                    severity="error",
                    suggested_fix=SUGGESTED_FIXES.get(field),
                ))
            return None, issues

    def _check_date(self, record_date: date) -> list[ValidationIssue]:
        issues = []
        today = date.today()

        max_future_date = today + timedelta(days=self._settings.future_date_tolerance_days)
        if record_date > max_future_date:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({record_date}) is more than "
                        f"{self._settings.future_date_tolerance_days} days in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        # Very old dates are usually a typo in the year
        if record_date < today - timedelta(days=365 * 5):
            issues.append(ValidationIssue(
                field="date",
                issue_type="suspicious_date",
                message=f"Date ({record_date}) is more than five years ago",
                severity="warning",
                suggested_fix="Please verify the year",
            ))

        return issues

    def _validate_transaction_semantics(
        self,
        transaction: NewTransaction,
    ) -> list[ValidationIssue]:
        """Stage 2 for transactions."""
        issues = self._check_date(transaction.date)

        if transaction.amount > self._settings.max_transaction_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({transaction.amount:,.2f}) is unusually large",
                severity="warning",
                suggested_fix="Check for an extra zero",
            ))

        return issues

    def _build_result(
        self,
        record_type: str,
        schema_issues: list[ValidationIssue],
        semantic_issues: list[ValidationIssue],
    ) -> ValidationResult:
        schema_valid = not schema_issues
        semantic_valid = not any(i.severity == "error" for i in semantic_issues)
        issues = schema_issues + semantic_issues

        return ValidationResult(
            record_type=record_type,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=issues,
            warnings=[i.message for i in issues if i.severity == "warning"],
        )

    def validate_transaction(
        self,
        data: dict[str, Any],
    ) -> tuple[ValidationResult, Optional[NewTransaction]]:
        """
        Run both stages on raw transaction input.

        Returns:
            (result, parsed transaction or None if rejected)
        """
        transaction, schema_issues = self._validate_schema(NewTransaction, data)
        semantic_issues = (
            self._validate_transaction_semantics(transaction) if transaction else []
        )
        result = self._build_result("transaction", schema_issues, semantic_issues)
        return result, transaction if result.is_valid else None

    def validate_event(
        self,
        data: dict[str, Any],
    ) -> tuple[ValidationResult, Optional[NewCalendarEvent]]:
        """
        Run both stages on raw event/reminder input.

        Returns:
            (result, parsed event or None if rejected)
        """
        event, schema_issues = self._validate_schema(NewCalendarEvent, data)
        semantic_issues = self._check_date(event.date) if event else []
        result = self._build_result("event", schema_issues, semantic_issues)
        return result, event if result.is_valid else None

    def get_user_friendly_summary(
        self,
        result: Optional[ValidationResult],
    ) -> str:
        """Generate a user-friendly summary of validation results."""
        if result is None or (result.is_valid and not result.warnings):
            return "✅ All checks passed."

        lines = []

        if not result.is_valid:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)

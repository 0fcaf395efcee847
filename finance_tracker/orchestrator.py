"""
Main Orchestrator for Finance Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Recording (form input → validate → append → audit)
2. Dashboard (load snapshot → summary, chart series, breakdown, reminders)
3. Export (load snapshot → trailing window → CSV)
4. Category suggestion (description → LLM → candidate categories)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Invalid input never reaches the store
- Write failures are reported to the caller, never swallowed
- Views only ever see a loaded snapshot
- Every user action is audited
"""

from datetime import date
from typing import Any, NamedTuple, Optional
from uuid import UUID

from finance_tracker.agents import CategorySuggestionAgent, CategorySuggestionError
from finance_tracker.audit import AuditLogger, create_correlation_id
from finance_tracker.config import AppSettings, Settings, get_settings
from finance_tracker.export import build_trailing_report
from finance_tracker.models.records import StoreWriteResult, ValidationResult
from finance_tracker.models.reports import CsvReport, DashboardSnapshot
from finance_tracker.services.storage import (
    RecordStoreInterface,
    create_record_store,
    sort_newest_first,
)
from finance_tracker.validation import RecordValidator
from finance_tracker.views import (
    category_breakdown,
    daily_series,
    financial_summary,
    on_day,
)


class RecordFlow:
    """
    Orchestrates adding transactions and calendar events.

    Flow:
    1. Validate → Two-stage validation of the raw form data
    2. Append → Store assigns an id and persists the record
    3. Audit → Record added / rejected / save failed
    """

    def __init__(
        self,
        store: RecordStoreInterface,
        validator: Optional[RecordValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._validator = validator or RecordValidator()
        self._audit_logger = audit_logger

    async def _audit_rejection(
        self,
        record_type: str,
        result: ValidationResult,
        correlation_id: UUID,
    ) -> None:
        if self._audit_logger:
            issues = [
                {"field": i.field, "type": i.issue_type, "message": i.message}
                for i in result.issues
                if i.severity == "error"
            ]
            await self._audit_logger.log_validation_failed(
                record_type=record_type,
                issues=issues,
                correlation_id=correlation_id,
            )

    async def submit_transaction(
        self,
        data: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> tuple[ValidationResult, Optional[StoreWriteResult], str]:
        """
        Validate and store a transaction.

        Returns:
            (validation_result, write_result, user_message)

        write_result is None when validation rejected the input.
        """
        correlation_id = correlation_id or create_correlation_id()

        result, transaction = self._validator.validate_transaction(data)
        message = self._validator.get_user_friendly_summary(result)

        if transaction is None:
            await self._audit_rejection("transaction", result, correlation_id)
            return result, None, message

        write = await self._store.add_transaction(transaction)

        if not write.success:
            if self._audit_logger:
                await self._audit_logger.log_save_failed(
                    record_type="transaction",
                    error_message=write.error_message or "unknown error",
                    correlation_id=correlation_id,
                )
            return result, write, (
                "❌ The transaction could not be saved. Please try again.\n"
                f"({write.error_message})"
            )

        stored = write.record
        if self._audit_logger:
            await self._audit_logger.log_transaction_added(
                transaction_id=stored.id,
                transaction_type=stored.type.value,
                amount=str(stored.amount),
                category=stored.category,
                correlation_id=correlation_id,
            )

        return result, write, message

    async def submit_event(
        self,
        data: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> tuple[ValidationResult, Optional[StoreWriteResult], str]:
        """
        Validate and store a calendar event or reminder.

        Returns:
            (validation_result, write_result, user_message)
        """
        correlation_id = correlation_id or create_correlation_id()

        result, event = self._validator.validate_event(data)
        message = self._validator.get_user_friendly_summary(result)

        if event is None:
            await self._audit_rejection("event", result, correlation_id)
            return result, None, message

        write = await self._store.add_event(event)

        if not write.success:
            if self._audit_logger:
                await self._audit_logger.log_save_failed(
                    record_type="event",
                    error_message=write.error_message or "unknown error",
                    correlation_id=correlation_id,
                )
            return result, write, (
                "❌ The event could not be saved. Please try again.\n"
                f"({write.error_message})"
            )

        stored = write.record
        if self._audit_logger:
            await self._audit_logger.log_event_added(
                event_id=stored.id,
                kind=stored.kind.value,
                title=stored.title,
                correlation_id=correlation_id,
            )

        return result, write, message


class DashboardFlow:
    """
    Builds everything the dashboard shows from one store snapshot.

    The store is read once per call; every figure in the returned
    snapshot is consistent with every other.
    """

    def __init__(
        self,
        store: RecordStoreInterface,
        settings: Optional[AppSettings] = None,
    ):
        self._store = store
        self._settings = settings or get_settings().app

    async def load_dashboard(
        self,
        selected_day: Optional[date] = None,
        today: Optional[date] = None,
    ) -> DashboardSnapshot:
        today = today or date.today()
        selected_day = selected_day or today

        store = await self._store.load_store()
        transactions = sort_newest_first(store.transactions)

        return DashboardSnapshot(
            transactions=transactions,
            events=store.events,
            summary=financial_summary(transactions),
            daily_series=daily_series(
                transactions,
                window_days=self._settings.chart_window_days,
                end_date=today,
            ),
            category_breakdown=category_breakdown(transactions),
            selected_day=selected_day,
            events_on_selected_day=on_day(store.events, selected_day),
        )


class ExportFlow:
    """Exports a trailing window of transactions as CSV."""

    def __init__(
        self,
        store: RecordStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger

    async def export_trailing_window(
        self,
        window_days: int,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> CsvReport:
        """
        Export transactions from the last ``window_days`` days.

        The report is returned even when empty; check report.is_empty.
        """
        transactions = await self._store.list_transactions()
        report = build_trailing_report(transactions, window_days, today)

        if self._audit_logger:
            await self._audit_logger.log_report_exported(
                filename=report.filename,
                row_count=report.row_count,
                window_days=window_days,
                correlation_id=correlation_id,
            )

        return report


class CategoryFlow:
    """
    Category suggestions for an expense description.

    The agent is created on first use so the rest of the app works
    without a Gemini key.
    """

    def __init__(
        self,
        agent: Optional[CategorySuggestionAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._agent = agent
        self._audit_logger = audit_logger

    def _get_agent(self) -> CategorySuggestionAgent:
        if self._agent is None:
            try:
                self._agent = CategorySuggestionAgent()
            except Exception as e:
                raise CategorySuggestionError(
                    f"Category suggestions are not configured: {e}"
                ) from e
        return self._agent

    async def suggest(
        self,
        description: str,
        correlation_id: Optional[UUID] = None,
    ) -> list[str]:
        """
        Suggest categories for ``description``.

        Raises:
            ValueError: If the description is blank
            CategorySuggestionError: If the service is unavailable or fails
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            suggestions = await self._get_agent().suggest_categories(description)
        except CategorySuggestionError as e:
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="gemini",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_categories_suggested(
                description=description,
                categories=suggestions.categories,
                correlation_id=correlation_id,
            )

        return suggestions.categories


class AppComponents(NamedTuple):
    store: RecordStoreInterface
    record_flow: RecordFlow
    dashboard_flow: DashboardFlow
    export_flow: ExportFlow
    category_flow: CategoryFlow


def create_app_components(
    settings: Optional[Settings] = None,
    store: Optional[RecordStoreInterface] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Root settings; loaded from the environment if None
        store: Record store to use instead of the configured one

    Returns:
        AppComponents with one shared store and audit logger
    """
    settings = settings or get_settings()
    app_settings = settings.app

    store = store or create_record_store(settings.storage)
    audit_logger = AuditLogger()

    return AppComponents(
        store=store,
        record_flow=RecordFlow(
            store=store,
            validator=RecordValidator(app_settings),
            audit_logger=audit_logger,
        ),
        dashboard_flow=DashboardFlow(store=store, settings=app_settings),
        export_flow=ExportFlow(store=store, audit_logger=audit_logger),
        category_flow=CategoryFlow(audit_logger=audit_logger),
    )

"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Traceability of every record added
2. Debugging capability when saves or suggestions fail
3. A history of user actions

The audit logger:
- Is async so flows can await it uniformly
- Never raises (logging must not break the main flow)
- Supports correlation IDs to trace related events

structlog is configured here once for the whole package. Library
modules only call get_logger(); entrypoints call configure_logging().
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from finance_tracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def _configure_structlog(json_output: bool = True) -> None:
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Configure structlog for local logging
_configure_structlog()


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """
    Configure stdlib logging and structlog for an entrypoint.

    Call once at process start, before the first log line.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )
    _configure_structlog(json_output=json_output)


def get_logger(name: Optional[str] = None):
    """Get a structlog logger bound to the package configuration."""
    return structlog.get_logger(name)


class AuditLogger:
    """
    Central audit logging service.

    Emits each audit event as a structured "audit_event" log record
    at a level matching its severity.
    """

    def __init__(self, logger=None):
        self._logger = logger or get_logger("finance_tracker.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be emitted.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            # Don't raise - audit logging should not break the main flow
            return False

        return True

    async def log_transaction_added(
        self,
        transaction_id: str,
        transaction_type: str,
        amount: str,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Log a stored transaction."""
        event = AuditEventBuilder.transaction_added(
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            amount=amount,
            category=category,
            correlation_id=correlation_id,
        )
        return await self.log(event)

    async def log_event_added(
        self,
        event_id: str,
        kind: str,
        title: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Log a stored calendar event or reminder."""
        event = AuditEventBuilder.event_added(
            event_id=event_id,
            kind=kind,
            title=title,
            correlation_id=correlation_id,
        )
        return await self.log(event)

    async def log_save_failed(
        self,
        record_type: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Log a write that did not reach storage."""
        event = AuditEventBuilder.save_failed(
            record_type=record_type,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        return await self.log(event)

    async def log_validation_failed(
        self,
        record_type: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Log rejected input."""
        event = AuditEventBuilder.validation_failed(
            record_type=record_type,
            issues=issues,
            correlation_id=correlation_id,
        )
        return await self.log(event)

    async def log_categories_suggested(
        self,
        description: str,
        categories: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        event = AuditEventBuilder.categories_suggested(
            description=description,
            categories=categories,
            correlation_id=correlation_id,
        )
        return await self.log(event)

    async def log_report_exported(
        self,
        filename: str,
        row_count: int,
        window_days: int,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        event = AuditEventBuilder.report_exported(
            filename=filename,
            row_count=row_count,
            window_days=window_days,
            correlation_id=correlation_id,
        )
        return await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        return await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., submitting a form).
    """
    return uuid4()

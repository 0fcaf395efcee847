"""
Audit Models for Finance Tracker

Every significant action in the system is logged for audit purposes:
records added, validation rejections, failed saves, category
suggestions and exports.

DESIGN DECISION: Audit events are emitted as structured log records.
They are append-only; nothing ever edits an emitted event.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from finance_tracker.models.records import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Records
    TRANSACTION_ADDED = "transaction_added"
    EVENT_ADDED = "event_added"
    SAVE_FAILED = "save_failed"

    # Validation
    VALIDATION_FAILED = "validation_failed"

    # Category suggestions
    CATEGORIES_SUGGESTED = "categories_suggested"

    # Export
    REPORT_EXPORTED = "report_exported"

    # External services
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what record is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'event', 'report')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the record this event relates to"
    )
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate events of one user action"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None
    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(transaction, correlation_id)
        event = AuditEventBuilder.save_failed("transaction", error, correlation_id)
    """

    @staticmethod
    def transaction_added(
        transaction_id: str,
        transaction_type: str,
        amount: str,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"{transaction_type.capitalize()} of {amount} added ({category})",
            details={
                "type": transaction_type,
                "amount": amount,
                "category": category,
            },
            is_user_action=True,
        )

    @staticmethod
    def event_added(
        event_id: str,
        kind: str,
        title: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EVENT_ADDED,
            entity_type="event",
            entity_id=event_id,
            correlation_id=correlation_id,
            description=f"{kind.capitalize()} added: {title[:100]}",
            details={"kind": kind},
            is_user_action=True,
        )

    @staticmethod
    def save_failed(
        record_type: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=record_type,
            correlation_id=correlation_id,
            description=f"Failed to save {record_type}",
            error_message=error_message,
        )

    @staticmethod
    def validation_failed(
        record_type: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=record_type,
            correlation_id=correlation_id,
            description=f"{record_type.capitalize()} rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def categories_suggested(
        description: str,
        categories: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORIES_SUGGESTED,
            correlation_id=correlation_id,
            description=f"{len(categories)} categories suggested",
            details={
                "description": description[:200],
                "categories": categories,
            },
        )

    @staticmethod
    def report_exported(
        filename: str,
        row_count: int,
        window_days: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_EXPORTED,
            entity_type="report",
            entity_id=filename,
            correlation_id=correlation_id,
            description=f"Exported {row_count} transactions from the last {window_days} days",
            details={
                "row_count": row_count,
                "window_days": window_days,
            },
            is_user_action=True,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"External service error: {service}",
            details={"service": service},
            error_message=error_message,
        )

"""
Data Models Package

This package contains all Pydantic models used in the Finance Tracker system.
All data flowing through the system must conform to these schemas.
"""

from finance_tracker.models.records import (
    UNCATEGORIZED,
    CalendarEvent,
    EventKind,
    NewCalendarEvent,
    NewTransaction,
    Store,
    StoreWriteResult,
    Transaction,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)
from finance_tracker.models.reports import (
    CsvReport,
    DailyTotals,
    DashboardSnapshot,
    FinancialSummary,
)
from finance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "UNCATEGORIZED",
    "CalendarEvent",
    "EventKind",
    "NewCalendarEvent",
    "NewTransaction",
    "Store",
    "StoreWriteResult",
    "Transaction",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    # Report models
    "CsvReport",
    "DailyTotals",
    "DashboardSnapshot",
    "FinancialSummary",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]

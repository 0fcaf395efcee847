"""
Core Data Models for Finance Tracker

These models define the schemas for everything persisted by the record store:
- Transactions (revenue/expense)
- Calendar events and reminders
- The store document that holds both collections

DESIGN DECISION: Input models (NewTransaction, NewCalendarEvent) are strict,
stored models (Transaction, CalendarEvent) are lenient on free-text fields.
Validation rejects bad input before it reaches the store, while documents
written by older versions still load.

Dates have date-only semantics. They are persisted as ISO-8601 date-times at
midnight. On load, a timestamp with an offset is first moved to local time
and then truncated to its day; a naive time-of-day is simply discarded.

Amounts are JSON numbers on disk, so input amounts are capped at
MAX_AMOUNT_DIGITS significant digits, the most a double holds exactly.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)


UNCATEGORIZED = "Uncategorized"
MAX_AMOUNT_DIGITS = 15


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money flow."""
    REVENUE = "revenue"
    EXPENSE = "expense"


class EventKind(str, Enum):
    """
    Calendar entry kind.

    DESIGN DECISION: Events and reminders share every field and lifecycle,
    so they are one entity with a tag rather than two parallel types.
    """
    EVENT = "event"
    REMINDER = "reminder"


# =============================================================================
# DATE HANDLING
# =============================================================================

def utc_now() -> dt.datetime:
    """Timezone-aware current UTC time."""
    return dt.datetime.now(dt.timezone.utc)


def local_day(value: dt.datetime) -> dt.date:
    """Calendar day of a datetime as seen in the local time zone."""
    if value.tzinfo is not None:
        value = value.astimezone()
    return value.date()


def parse_calendar_date(value: Any) -> Any:
    """
    Coerce a serialized date into a ``date``.

    Accepts ``date`` / ``datetime`` objects and ISO-8601 strings with or
    without a time part (a trailing ``Z`` is accepted). Timestamps that
    carry an offset are converted to local time first, so
    ``2024-01-04T19:00:00Z`` is 5 January for a user at UTC+5. Anything
    else is returned untouched so pydantic reports the type error.
    """
    if isinstance(value, dt.datetime):
        return local_day(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return local_day(dt.datetime.fromisoformat(text))
        except ValueError:
            return value
    return value


def format_calendar_date(value: dt.date) -> str:
    """Serialize a date as an ISO-8601 date-time at midnight."""
    return dt.datetime.combine(value, dt.time.min).isoformat()


def amount_to_json(value: Decimal) -> Union[int, float]:
    """Amounts are JSON numbers in the persisted document."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


class CalendarDateModel(BaseModel):
    """Base for records with a date-only ``date`` field."""

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("date", mode="before", check_fields=False)
    @classmethod
    def coerce_date(cls, v: Any) -> Any:
        return parse_calendar_date(v)

    @field_serializer("date", when_used="json", check_fields=False)
    def serialize_date(self, value: dt.date) -> str:
        return format_calendar_date(value)


# =============================================================================
# TRANSACTIONS
# =============================================================================

class NewTransaction(CalendarDateModel):
    """
    A transaction as submitted by the user, before an id is assigned.

    All fields are required; this is what validation produces.
    """

    type: TransactionType = Field(
        ...,
        description="revenue or expense"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date of the transaction"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        max_digits=MAX_AMOUNT_DIGITS,
        description="Positive amount"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="What the money was for"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Free-text category (e.g. Food, Rent, Sales)"
    )


class Transaction(CalendarDateModel):
    """
    A stored transaction.

    Blank categories are tolerated so documents written by older
    versions still load; views group them under "Uncategorized".
    """

    id: str = Field(
        ...,
        min_length=1,
        description="Unique transaction ID"
    )
    type: TransactionType
    date: dt.date
    amount: Decimal = Field(..., gt=0)
    description: str = ""
    category: str = ""

    @field_validator("description", "category", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_serializer("amount", when_used="json")
    def serialize_amount(self, value: Decimal) -> Union[int, float]:
        return amount_to_json(value)

    @classmethod
    def from_new(cls, record_id: str, data: NewTransaction) -> "Transaction":
        """Create a stored transaction from validated input."""
        return cls(id=record_id, **data.model_dump())


# =============================================================================
# CALENDAR EVENTS / REMINDERS
# =============================================================================

class NewCalendarEvent(CalendarDateModel):
    """A calendar event or reminder as submitted by the user."""

    date: dt.date = Field(
        ...,
        description="Day of the event"
    )
    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Short title"
    )
    description: str = Field(
        default="",
        max_length=1000,
        description="Optional details, empty when omitted"
    )
    kind: EventKind = Field(
        default=EventKind.EVENT,
        description="event or reminder"
    )
    add_to_google_calendar: bool = Field(
        default=False,
        description="Presentation-layer hint to offer a calendar link"
    )

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v: Any) -> Any:
        return "" if v is None else v


class CalendarEvent(CalendarDateModel):
    """
    A stored calendar event or reminder.

    The Google Calendar flag only matters to the presentation layer
    at creation time and is never persisted.
    """

    id: str = Field(..., min_length=1)
    date: dt.date
    title: str
    description: str = ""
    kind: EventKind = EventKind.EVENT
    add_to_google_calendar: bool = Field(default=False, exclude=True)

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v: Any) -> Any:
        return "" if v is None else v

    @classmethod
    def from_new(cls, record_id: str, data: NewCalendarEvent) -> "CalendarEvent":
        """Create a stored event from validated input."""
        return cls(id=record_id, **data.model_dump())


# =============================================================================
# STORE DOCUMENT
# =============================================================================

class Store(BaseModel):
    """
    The whole persisted document.

    Both collections are append-only: there is no update or delete.
    """

    transactions: list[Transaction] = Field(default_factory=list)
    events: list[CalendarEvent] = Field(default_factory=list)

    @property
    def record_ids(self) -> set[str]:
        """All ids in use across both collections."""
        return {t.id for t in self.transactions} | {e.id for e in self.events}


class StoreWriteResult(BaseModel):
    """
    Outcome of a write to the record store.

    DESIGN DECISION: Writes never fail silently. The failure is logged
    AND returned, so callers can retry or tell the user.
    """

    success: bool
    record: Optional[Union[Transaction, CalendarEvent]] = None
    error_message: Optional[str] = None


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'greater_than', 'future_date')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Schema validation (types, required fields, amount > 0)
    Stage 2: Semantic validation (suspicious but acceptable values)
    """

    validated_at: dt.datetime = Field(
        default_factory=utc_now
    )
    record_type: str = Field(
        ...,
        pattern="^(transaction|event)$",
        description="What kind of record was validated"
    )

    schema_valid: bool
    semantic_valid: bool
    is_valid: bool = Field(
        ...,
        description="Overall result; only errors make this False"
    )

    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

"""
Report Models

Results of the aggregation views and the CSV export.
These are derived data and are never persisted.
"""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from finance_tracker.models.records import CalendarEvent, Transaction, utc_now


class FinancialSummary(BaseModel):
    """Headline numbers for the dashboard."""

    revenue: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    profit: Decimal = Decimal("0")


class DailyTotals(BaseModel):
    """One point of the revenue/expense chart."""

    date: dt.date
    revenue: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")


class CsvReport(BaseModel):
    """A rendered CSV export."""

    filename: str
    content: str
    row_count: int = Field(ge=0)
    window_days: int = Field(ge=1)
    cutoff: dt.date = Field(
        ...,
        description="Earliest date included in the export"
    )

    @property
    def is_empty(self) -> bool:
        return self.row_count == 0


class DashboardSnapshot(BaseModel):
    """
    Everything the dashboard shows, computed from one store snapshot.

    Writes do not update an existing snapshot; load a new one.
    """

    loaded_at: dt.datetime = Field(default_factory=utc_now)
    transactions: list[Transaction] = Field(default_factory=list)
    events: list[CalendarEvent] = Field(default_factory=list)
    summary: FinancialSummary
    daily_series: list[DailyTotals] = Field(default_factory=list)
    category_breakdown: dict[str, Decimal] = Field(default_factory=dict)
    selected_day: Optional[dt.date] = None
    events_on_selected_day: list[CalendarEvent] = Field(default_factory=list)

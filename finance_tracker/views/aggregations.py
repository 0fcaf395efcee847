"""
Aggregation Views

DESIGN DECISION: Every view is a pure function of a snapshot.
- No I/O, no mutation of the input
- Deterministic (given end_date / today where a clock is involved)
- Safe to call repeatedly, and in parallel, on the same snapshot

Callers load the store once and derive everything the dashboard
shows from that one list of records. A write does not update a
previously computed view; reload and recompute.

All date comparisons are at day granularity. Amounts are Decimal
so profit == revenue - expenses holds exactly.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Protocol, Sequence, TypeVar

from finance_tracker.models.records import UNCATEGORIZED, Transaction, TransactionType
from finance_tracker.models.reports import DailyTotals, FinancialSummary


ZERO = Decimal("0")


class Dated(Protocol):
    date: date


DatedT = TypeVar("DatedT", bound=Dated)


def financial_summary(transactions: Iterable[Transaction]) -> FinancialSummary:
    """
    Total revenue, total expenses and profit.

    An empty input yields all zeros.
    """
    revenue = ZERO
    expenses = ZERO
    for transaction in transactions:
        if transaction.type == TransactionType.REVENUE:
            revenue += transaction.amount
        elif transaction.type == TransactionType.EXPENSE:
            expenses += transaction.amount

    return FinancialSummary(
        revenue=revenue,
        expenses=expenses,
        profit=revenue - expenses,
    )


def daily_series(
    transactions: Iterable[Transaction],
    window_days: int = 30,
    end_date: Optional[date] = None,
) -> list[DailyTotals]:
    """
    Per-day revenue and expenses for the chart.

    Returns exactly ``window_days`` entries in ascending date order,
    covering [end_date - (window_days - 1), end_date]. Days without
    transactions are zero-filled; transactions outside the window
    are ignored.

    Raises:
        ValueError: If window_days < 1
    """
    end_date = end_date or date.today()
    start_date = window_cutoff(window_days, end_date)

    revenue_by_day: dict[date, Decimal] = {}
    expenses_by_day: dict[date, Decimal] = {}
    for transaction in transactions:
        day = transaction.date
        if day < start_date or day > end_date:
            continue
        if transaction.type == TransactionType.REVENUE:
            revenue_by_day[day] = revenue_by_day.get(day, ZERO) + transaction.amount
        else:
            expenses_by_day[day] = expenses_by_day.get(day, ZERO) + transaction.amount

    series = []
    for offset in range(window_days):
        day = start_date + timedelta(days=offset)
        series.append(DailyTotals(
            date=day,
            revenue=revenue_by_day.get(day, ZERO),
            expenses=expenses_by_day.get(day, ZERO),
        ))
    return series


def category_breakdown(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """
    Total expense amount per category.

    Revenue is ignored. Blank categories are grouped under
    "Uncategorized"; every expense is counted exactly once. Keys are
    in order of first occurrence.
    """
    totals: dict[str, Decimal] = {}
    for transaction in transactions:
        if transaction.type != TransactionType.EXPENSE:
            continue
        category = (transaction.category or "").strip() or UNCATEGORIZED
        totals[category] = totals.get(category, ZERO) + transaction.amount
    return totals


def on_day(collection: Iterable[DatedT], day: date) -> list[DatedT]:
    """Records (transactions or events) dated ``day``."""
    return [item for item in collection if item.date == day]


def transactions_since(
    transactions: Iterable[Transaction],
    cutoff: date,
) -> list[Transaction]:
    """Transactions dated on or after ``cutoff``, input order kept."""
    return [t for t in transactions if t.date >= cutoff]


def window_cutoff(window_days: int, today: Optional[date] = None) -> date:
    """
    First day included in a trailing window of ``window_days``.

    The window ends on ``today`` and spans exactly ``window_days``
    calendar days, the same days daily_series() covers.
    """
    if window_days < 1:
        raise ValueError(f"window_days must be at least 1, got {window_days}")
    return (today or date.today()) - timedelta(days=window_days - 1)


def trailing_window(
    transactions: Sequence[Transaction],
    window_days: int,
    today: Optional[date] = None,
) -> list[Transaction]:
    """
    Transactions from the last ``window_days`` days.

    The window length is always the caller's choice (30 for a
    monthly report, 365 for the yearly export).
    """
    return transactions_since(transactions, window_cutoff(window_days, today))

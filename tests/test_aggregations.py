"""Tests for the aggregation views."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from finance_tracker.models.records import UNCATEGORIZED, CalendarEvent, Transaction
from finance_tracker.views import (
    category_breakdown,
    daily_series,
    financial_summary,
    on_day,
    trailing_window,
    transactions_since,
    window_cutoff,
)


def tx(id, type, day, amount, category="Misc"):
    return Transaction(id=id, type=type, date=day, amount=Decimal(amount), category=category)


@pytest.fixture
def transactions():
    return [
        tx("1", "revenue", date(2024, 3, 10), "1000"),
        tx("2", "expense", date(2024, 3, 10), "200", "Rent"),
        tx("3", "expense", date(2024, 3, 8), "50.25", "Food"),
        tx("4", "expense", date(2024, 2, 1), "19.75", "Food"),
        tx("5", "revenue", date(2024, 3, 9), "0.10"),
    ]


class TestFinancialSummary:
    """Tests for financial_summary."""

    def test_empty(self):
        """Test that no transactions means all zeros."""
        summary = financial_summary([])
        assert summary.revenue == summary.expenses == summary.profit == Decimal("0")

    def test_totals(self, transactions):
        """Test revenue, expenses and profit."""
        summary = financial_summary(transactions)
        assert summary.revenue == Decimal("1000.10")
        assert summary.expenses == Decimal("270.00")
        assert summary.profit == summary.revenue - summary.expenses

    def test_accepts_generator(self, transactions):
        summary = financial_summary(t for t in transactions)
        assert summary.revenue == Decimal("1000.10")


class TestDailySeries:
    """Tests for the chart series."""

    def test_length_and_order(self, transactions):
        """Test that exactly window_days ascending days are returned."""
        series = daily_series(transactions, window_days=5, end_date=date(2024, 3, 10))

        assert [p.date for p in series] == [date(2024, 3, d) for d in range(6, 11)]

    def test_zero_fill_and_sums(self, transactions):
        """Test that days are summed and empty days are zero."""
        series = daily_series(transactions, window_days=5, end_date=date(2024, 3, 10))
        by_day = {p.date: p for p in series}

        assert by_day[date(2024, 3, 10)].revenue == Decimal("1000")
        assert by_day[date(2024, 3, 10)].expenses == Decimal("200")
        assert by_day[date(2024, 3, 8)].expenses == Decimal("50.25")
        assert by_day[date(2024, 3, 7)].revenue == Decimal("0")
        assert by_day[date(2024, 3, 7)].expenses == Decimal("0")

    def test_outside_window_ignored(self, transactions):
        """Test that older and future transactions are excluded."""
        series = daily_series(transactions, window_days=2, end_date=date(2024, 3, 9))

        assert sum(p.revenue for p in series) == Decimal("0.10")
        assert sum(p.expenses for p in series) == Decimal("50.25")

    def test_single_day_window(self):
        series = daily_series([], window_days=1, end_date=date(2024, 1, 1))
        assert len(series) == 1
        assert series[0].date == date(2024, 1, 1)

    def test_defaults_to_thirty_days_ending_today(self):
        series = daily_series([])
        assert len(series) == 30
        assert series[-1].date == date.today()

    def test_rejects_empty_window(self):
        """Test that window_days < 1 is an error."""
        with pytest.raises(ValueError):
            daily_series([], window_days=0)


class TestCategoryBreakdown:
    """Tests for the expense breakdown."""

    def test_expenses_only(self, transactions):
        """Test that revenue never appears in the breakdown."""
        breakdown = category_breakdown(transactions)
        assert breakdown == {"Rent": Decimal("200"), "Food": Decimal("70.00")}
        assert "Misc" not in breakdown

    def test_blank_category_grouped(self):
        """Test that blank categories count under Uncategorized."""
        breakdown = category_breakdown([
            tx("1", "expense", date(2024, 3, 1), "5", ""),
            tx("2", "expense", date(2024, 3, 1), "7", "  "),
        ])
        assert breakdown == {UNCATEGORIZED: Decimal("12")}

    def test_total_matches_summary(self, transactions):
        """Test that every expense is counted exactly once."""
        assert sum(category_breakdown(transactions).values()) == financial_summary(transactions).expenses

    def test_first_occurrence_order(self, transactions):
        assert list(category_breakdown(transactions)) == ["Rent", "Food"]


class TestDayAndWindowFilters:
    """Tests for on_day, transactions_since and trailing_window."""

    def test_on_day_events(self):
        """Test that reminders are selected by calendar day."""
        events = [
            CalendarEvent(id="a", date="2024-03-01T00:00:00.000Z", title="Pay rent"),
            CalendarEvent(id="b", date="2024-03-02", title="Call bank"),
        ]
        assert [e.id for e in on_day(events, date(2024, 3, 1))] == ["a"]

    def test_on_day_transactions(self, transactions):
        assert [t.id for t in on_day(transactions, date(2024, 3, 10))] == ["1", "2"]

    def test_transactions_since_inclusive(self, transactions):
        """Test that the cutoff day itself is included."""
        assert [t.id for t in transactions_since(transactions, date(2024, 3, 9))] == ["1", "2", "5"]

    def test_window_cutoff(self):
        """Test that an N-day window spans exactly N calendar days."""
        assert window_cutoff(365, today=date(2024, 12, 31)) == date(2024, 1, 2)
        assert window_cutoff(30, today=date(2024, 3, 31)) == date(2024, 3, 2)
        assert window_cutoff(1, today=date(2024, 3, 31)) == date(2024, 3, 31)

    def test_window_cutoff_rejects_empty_window(self):
        with pytest.raises(ValueError):
            window_cutoff(0)

    def test_trailing_window(self, transactions):
        """Test the caller-chosen window length."""
        today = date(2024, 3, 10)
        assert len(trailing_window(transactions, 30, today)) == 4
        assert len(trailing_window(transactions, 365, today)) == 5
        assert trailing_window(transactions, 1, today + timedelta(days=30)) == []

    def test_one_day_window_is_today_only(self, transactions):
        """Test that a one-day window excludes yesterday."""
        today = date(2024, 3, 10)
        assert [t.id for t in trailing_window(transactions, 1, today)] == ["1", "2"]

    @pytest.mark.parametrize("window_days", [1, 2, 7, 30])
    def test_trailing_window_matches_daily_series(self, transactions, window_days):
        """Test that the export window and the chart cover the same days."""
        today = date(2024, 3, 10)
        exported_days = {t.date for t in trailing_window(transactions, window_days, today)}
        charted_days = {p.date for p in daily_series(transactions, window_days, today)}
        assert exported_days <= charted_days
        assert min(charted_days) == window_cutoff(window_days, today)

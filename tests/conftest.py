"""Shared fixtures: isolated stores and settings, no real API calls."""

import time
from datetime import date
from decimal import Decimal

import pytest

from finance_tracker.audit import AuditLogger
from finance_tracker.config import AppSettings
from finance_tracker.models.records import (
    NewCalendarEvent,
    NewTransaction,
    TransactionType,
)
from finance_tracker.services.storage import JsonFileRecordStore, SqliteRecordStore


def _set_timezone(monkeypatch, tz):
    monkeypatch.setenv("TZ", tz)
    time.tzset()


@pytest.fixture(autouse=True)
def utc_timezone(monkeypatch):
    """Pin local time to UTC so stored timestamps map to a fixed day."""
    if not hasattr(time, "tzset"):
        yield
        return
    _set_timezone(monkeypatch, "UTC")
    yield
    monkeypatch.undo()
    time.tzset()


@pytest.fixture
def local_timezone(monkeypatch):
    """Switch local time to a POSIX TZ string, e.g. "PKT-5" for UTC+5."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    return lambda tz: _set_timezone(monkeypatch, tz)


@pytest.fixture
def app_settings():
    return AppSettings(
        _env_file=None,
        chart_window_days=7,
        export_window_days=365,
        future_date_tolerance_days=7,
        max_transaction_amount=1_000_000.0,
    )


@pytest.fixture
def json_store(tmp_path):
    return JsonFileRecordStore(tmp_path / "db.json")


@pytest.fixture
def sqlite_store(tmp_path):
    store = SqliteRecordStore(path=tmp_path / "finance.db")
    yield store
    store.close()


@pytest.fixture(params=["json", "sqlite"])
def store(request, tmp_path):
    """Every backend must honour the same contract."""
    if request.param == "json":
        yield JsonFileRecordStore(tmp_path / "db.json")
    else:
        sqlite = SqliteRecordStore(path=tmp_path / "finance.db")
        yield sqlite
        sqlite.close()


class RecordingLogger:
    """Collects audit log calls instead of emitting them."""

    def __init__(self):
        self.calls = []

    def _record(self, level, event, **kwargs):
        self.calls.append((level, event, kwargs))

    def info(self, event, **kwargs):
        self._record("info", event, **kwargs)

    def warning(self, event, **kwargs):
        self._record("warning", event, **kwargs)

    def error(self, event, **kwargs):
        self._record("error", event, **kwargs)

    def debug(self, event, **kwargs):
        self._record("debug", event, **kwargs)

    def event_types(self):
        return [kwargs["event_type"] for _, _, kwargs in self.calls]


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def audit_logger(recording_logger):
    return AuditLogger(logger=recording_logger)


def make_transaction(
    amount="50",
    type=TransactionType.EXPENSE,
    on=date(2024, 3, 1),
    description="Lunch",
    category="Food",
) -> NewTransaction:
    return NewTransaction(
        type=type,
        date=on,
        amount=Decimal(amount),
        description=description,
        category=category,
    )


def make_event(title="Kickoff", on=date(2024, 3, 1), **kwargs) -> NewCalendarEvent:
    return NewCalendarEvent(title=title, date=on, **kwargs)

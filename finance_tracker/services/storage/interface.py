"""
Abstract Record Store Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the original single-JSON-document format
2. Use an embedded SQLite log where concurrent appends matter
3. Keep flows and views decoupled from the storage implementation

The interface is intentionally small. Records are append-only:
there are no update or delete operations.

FAILURE CONTRACT:
- Reads are fail-soft: a corrupt store is logged and read as empty.
- Writes never raise: they return a StoreWriteResult that says
  whether the record reached storage.
"""

from abc import ABC, abstractmethod
from typing import Iterable

from finance_tracker.models.records import (
    CalendarEvent,
    NewCalendarEvent,
    NewTransaction,
    Store,
    StoreWriteResult,
    Transaction,
)


class RecordStoreInterface(ABC):
    """
    Abstract interface for the transaction/event record store.

    Any storage implementation must implement load, save and the two
    append operations. Listing is derived from load_store().
    """

    @abstractmethod
    async def load_store(self) -> Store:
        """
        Read the whole store.

        Returns:
            The persisted store. An empty store is created and persisted
            when none exists. A corrupt store is logged and returned as
            empty instead of raising.
        """
        pass

    @abstractmethod
    async def save_store(self, doc: Store) -> StoreWriteResult:
        """
        Replace the whole persisted store with ``doc``.

        Returns:
            StoreWriteResult with success=False (and the error message)
            if the write failed. Never raises for I/O failures.
        """
        pass

    @abstractmethod
    async def add_transaction(self, data: NewTransaction) -> StoreWriteResult:
        """
        Append a transaction under a newly assigned unique id.

        Returns:
            StoreWriteResult carrying the stored Transaction on success
        """
        pass

    @abstractmethod
    async def add_event(self, data: NewCalendarEvent) -> StoreWriteResult:
        """
        Append a calendar event/reminder under a newly assigned unique id.

        Returns:
            StoreWriteResult carrying the stored CalendarEvent on success
        """
        pass

    async def list_transactions(self) -> list[Transaction]:
        """All transactions, most recent date first."""
        store = await self.load_store()
        return sort_newest_first(store.transactions)

    async def list_events(self) -> list[CalendarEvent]:
        """All events in insertion order."""
        store = await self.load_store()
        return list(store.events)


def sort_newest_first(transactions: Iterable[Transaction]) -> list[Transaction]:
    """
    Sort by date descending.

    sorted() is stable with reverse=True, so transactions on the same
    day keep their insertion order.
    """
    return sorted(transactions, key=lambda t: t.date, reverse=True)


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptStoreError(StorageError):
    """The persisted store exists but cannot be decoded."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a record with an id already in use."""
    pass

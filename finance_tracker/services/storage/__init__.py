"""
Storage Services Package

Provides the abstract record store interface and its implementations:
a single JSON document and an embedded SQLite append log.
"""

from finance_tracker.services.storage.interface import (
    CorruptStoreError,
    DuplicateError,
    RecordStoreInterface,
    StorageError,
    sort_newest_first,
)
from finance_tracker.services.storage.json_file import JsonFileRecordStore
from finance_tracker.services.storage.sqlite import SqliteRecordStore
from finance_tracker.services.storage.factory import create_record_store

__all__ = [
    # Interface
    "RecordStoreInterface",
    "sort_newest_first",
    # Exceptions
    "CorruptStoreError",
    "DuplicateError",
    "StorageError",
    # Implementations
    "JsonFileRecordStore",
    "SqliteRecordStore",
    "create_record_store",
]

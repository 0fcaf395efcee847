"""Services package."""

from finance_tracker.services.storage import (
    CorruptStoreError,
    DuplicateError,
    JsonFileRecordStore,
    RecordStoreInterface,
    SqliteRecordStore,
    StorageError,
    create_record_store,
)

__all__ = [
    "CorruptStoreError",
    "DuplicateError",
    "JsonFileRecordStore",
    "RecordStoreInterface",
    "SqliteRecordStore",
    "StorageError",
    "create_record_store",
]

"""Pick the record store backend from configuration."""

from typing import Optional

from finance_tracker.config import StorageSettings, get_settings
from finance_tracker.services.storage.interface import RecordStoreInterface
from finance_tracker.services.storage.json_file import JsonFileRecordStore
from finance_tracker.services.storage.sqlite import SqliteRecordStore


def create_record_store(
    settings: Optional[StorageSettings] = None,
) -> RecordStoreInterface:
    """
    Create the configured record store.

    Args:
        settings: Storage settings; loaded from the environment if None

    Returns:
        A JsonFileRecordStore or SqliteRecordStore
    """
    settings = settings or get_settings().storage

    if settings.backend == "json":
        return JsonFileRecordStore(settings.json_path)

    if settings.database_url:
        return SqliteRecordStore(database_url=settings.database_url)
    return SqliteRecordStore(path=settings.sqlite_path)

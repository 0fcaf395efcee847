"""
JSON File Storage Implementation

The whole store is one JSON document on disk, read and rewritten on
every operation.

TRADEOFFS:
- Human readable and trivially backed up
- Whole-document read-modify-write: fine for one writer, but two
  processes appending at the same time can lose one of the appends.
  Use the SQLite backend when more than one writer is possible.

Writes go to a temp file in the same directory and are moved into place
with os.replace, so a crash never leaves a half-written document.
"""

import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional, Union

from finance_tracker.audit.logger import get_logger
from finance_tracker.config import get_settings
from finance_tracker.models.records import (
    CalendarEvent,
    NewCalendarEvent,
    NewTransaction,
    Store,
    StoreWriteResult,
    Transaction,
)
from finance_tracker.services.storage.document import (
    DecodedDocument,
    decode_document,
    encode_store,
    new_record_id,
)
from finance_tracker.services.storage.interface import (
    CorruptStoreError,
    RecordStoreInterface,
)


logger = get_logger(__name__)

# Read failures that degrade to an empty store
READ_ERRORS = (CorruptStoreError, OSError, UnicodeDecodeError)


class JsonFileRecordStore(RecordStoreInterface):
    """
    Record store backed by a single JSON document.

    Missing file: created empty on first read.
    Corrupt file: read as empty, never overwritten by an append.
    Malformed record: skipped on read, written back unchanged on append.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self._path = Path(path) if path else get_settings().storage.json_path

    @property
    def path(self) -> Path:
        return self._path

    def _read_document(self) -> DecodedDocument:
        """Strict read; raises FileNotFoundError or one of READ_ERRORS."""
        text = self._path.read_text(encoding="utf-8")
        return decode_document(text)

    def _write_document(
        self,
        doc: Store,
        skipped: Optional[dict[str, list[tuple[int, Any]]]] = None,
    ) -> None:
        """Atomic write via temp file + rename."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = encode_store(doc, skipped)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.",
            suffix=".tmp",
            dir=self._path.parent,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def load_store(self) -> Store:
        """Read the document, creating it empty if missing."""
        try:
            return self._read_document().store
        except FileNotFoundError:
            store = Store()
            await self.save_store(store)
            return store
        except READ_ERRORS as e:
            # Return empty structure to keep the app usable
            logger.error(
                "store_read_failed",
                path=str(self._path),
                error=str(e),
                error_type=type(e).__name__,
            )
            return Store()

    async def save_store(self, doc: Store) -> StoreWriteResult:
        """Replace the document on disk."""
        return self._save(doc)

    def _save(
        self,
        doc: Store,
        skipped: Optional[dict[str, list[tuple[int, Any]]]] = None,
    ) -> StoreWriteResult:
        try:
            self._write_document(doc, skipped)
        except (OSError, TypeError, ValueError) as e:
            logger.error(
                "store_write_failed",
                path=str(self._path),
                error=str(e),
                error_type=type(e).__name__,
            )
            return StoreWriteResult(
                success=False,
                error_message=f"Failed to write {self._path}: {e}",
            )
        return StoreWriteResult(success=True)

    async def _append(
        self,
        collection: str,
        build: Callable[[str], Union[Transaction, CalendarEvent]],
    ) -> StoreWriteResult:
        """Read-modify-write one appended record."""
        try:
            document = self._read_document()
        except FileNotFoundError:
            document = DecodedDocument(Store(), {})
        except READ_ERRORS as e:
            # Appending to an empty store here would overwrite the existing data
            logger.error(
                "store_append_refused",
                path=str(self._path),
                collection=collection,
                error=str(e),
            )
            return StoreWriteResult(
                success=False,
                error_message=f"Store could not be read, nothing was saved: {e}",
            )

        # Records this version cannot read are written back untouched
        record = build(new_record_id(document.record_ids))
        getattr(document.store, collection).append(record)

        result = self._save(document.store, document.skipped)
        if not result.success:
            return result
        return StoreWriteResult(success=True, record=record)

    async def add_transaction(self, data: NewTransaction) -> StoreWriteResult:
        return await self._append(
            "transactions",
            lambda record_id: Transaction.from_new(record_id, data),
        )

    async def add_event(self, data: NewCalendarEvent) -> StoreWriteResult:
        return await self._append(
            "events",
            lambda record_id: CalendarEvent.from_new(record_id, data),
        )

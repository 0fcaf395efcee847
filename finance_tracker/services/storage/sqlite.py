"""
Embedded SQLite Storage Implementation

DESIGN DECISION: Records live in a single append-log table keyed by
collection, instead of one document rewritten on every change:

    records(seq, collection, record_id UNIQUE, body, created_at)

- Appending is one INSERT in its own transaction, so two writers can
  no longer overwrite each other's appends.
- A load reads the whole log ordered by seq, which yields the same
  Store snapshot as the JSON backend (insertion order preserved).
- save_store() replaces every row in one transaction.
- The UNIQUE constraint on record_id backs the id uniqueness guarantee.

Each row body uses the same JSON record layout as the document backend.
"""

import json
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Callable, Iterator, Optional, Union

from sqlalchemy import DateTime, Integer, String, Text, create_engine, delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finance_tracker.audit.logger import get_logger
from finance_tracker.config import get_settings
from finance_tracker.models.records import (
    CalendarEvent,
    NewCalendarEvent,
    NewTransaction,
    Store,
    StoreWriteResult,
    Transaction,
    utc_now,
)
from finance_tracker.services.storage.document import (
    COLLECTIONS,
    decode_record,
    encode_record,
    new_record_id,
)
from finance_tracker.services.storage.interface import (
    DuplicateError,
    RecordStoreInterface,
    StorageError,
)


logger = get_logger(__name__)


class Base(DeclarativeBase):
    pass


class RecordRow(Base):
    __tablename__ = "records"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    collection: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    record_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )


# "database is locked" and friends are worth another try; anything else is not
transient_retry = retry(
    retry=retry_if_exception_type((OperationalError, DuplicateError)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
    reraise=True,
)


def sqlite_url(path: Union[str, Path]) -> str:
    return f"sqlite+pysqlite:///{path}"


class SqliteRecordStore(RecordStoreInterface):
    """
    Record store backed by an embedded SQLite database.

    The engine is created lazily; the schema is created on first use,
    which is the "initialize an empty store" step of the JSON backend.
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        path: Optional[Union[str, Path]] = None,
    ):
        if database_url is None and path is None:
            settings = get_settings().storage
            database_url = settings.database_url
            path = settings.sqlite_path
        self._path = Path(path) if path and not database_url else None
        self._url = database_url or sqlite_url(self._path)
        self._engine: Optional[Engine] = None
        self._session_maker: Optional[sessionmaker[Session]] = None

    @property
    def url(self) -> str:
        return self._url

    def _get_engine(self) -> Engine:
        if self._engine is None:
            if self._path is not None:
                self._path.parent.mkdir(parents=True, exist_ok=True)
            engine = create_engine(self._url, connect_args={"timeout": 15})
            Base.metadata.create_all(engine)
            self._session_maker = sessionmaker(
                bind=engine, expire_on_commit=False, class_=Session
            )
            self._engine = engine
        return self._engine

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        """Provide a transactional scope around a series of operations."""
        self._get_engine()
        assert self._session_maker is not None  # bound by _get_engine
        session = self._session_maker()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        """Release pooled connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_maker = None

    def _read_snapshot(self) -> Store:
        decoded: dict[str, list] = {name: [] for name in COLLECTIONS}
        with self._session_scope() as session:
            rows = session.scalars(select(RecordRow).order_by(RecordRow.seq)).all()
            for row in rows:
                model = COLLECTIONS.get(row.collection)
                if model is None:
                    logger.warning(
                        "store_record_skipped",
                        collection=row.collection,
                        record_id=row.record_id,
                        error="unknown collection",
                    )
                    continue
                try:
                    raw = json.loads(row.body, parse_float=Decimal)
                except json.JSONDecodeError as e:
                    logger.warning(
                        "store_record_skipped",
                        collection=row.collection,
                        record_id=row.record_id,
                        error=str(e),
                    )
                    continue
                record = decode_record(model, raw, row.collection)
                if record is not None:
                    decoded[row.collection].append(record)
        return Store(**decoded)

    @transient_retry
    def _replace_all(self, doc: Store) -> None:
        with self._session_scope() as session:
            session.execute(delete(RecordRow))
            for collection in COLLECTIONS:
                for record in getattr(doc, collection):
                    session.add(RecordRow(
                        collection=collection,
                        record_id=record.id,
                        body=encode_record(record),
                    ))

    @transient_retry
    def _insert_new(
        self,
        collection: str,
        build: Callable[[str], Union[Transaction, CalendarEvent]],
    ) -> Union[Transaction, CalendarEvent]:
        # A fresh id on every attempt; a collision surfaces as DuplicateError
        record = build(new_record_id())
        try:
            with self._session_scope() as session:
                session.add(RecordRow(
                    collection=collection,
                    record_id=record.id,
                    body=encode_record(record),
                ))
        except IntegrityError as e:
            raise DuplicateError(f"Record id already exists: {record.id}") from e
        return record

    async def load_store(self) -> Store:
        try:
            return self._read_snapshot()
        except (SQLAlchemyError, OSError) as e:
            logger.error(
                "store_read_failed",
                url=self._url,
                error=str(e),
                error_type=type(e).__name__,
            )
            return Store()

    async def save_store(self, doc: Store) -> StoreWriteResult:
        try:
            self._replace_all(doc)
        except (SQLAlchemyError, OSError) as e:
            logger.error(
                "store_write_failed",
                url=self._url,
                error=str(e),
                error_type=type(e).__name__,
            )
            return StoreWriteResult(
                success=False,
                error_message=f"Failed to write store: {e}",
            )
        return StoreWriteResult(success=True)

    async def _append(
        self,
        collection: str,
        build: Callable[[str], Union[Transaction, CalendarEvent]],
    ) -> StoreWriteResult:
        try:
            record = self._insert_new(collection, build)
        except (SQLAlchemyError, StorageError, OSError) as e:
            logger.error(
                "store_write_failed",
                url=self._url,
                collection=collection,
                error=str(e),
                error_type=type(e).__name__,
            )
            return StoreWriteResult(
                success=False,
                error_message=f"Failed to save to {collection}: {e}",
            )
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

"""
Store Document Codec

Converts between the persisted JSON text and Store models. Shared by
both backends: the JSON backend stores the whole document in one file,
the SQLite backend stores each record body as one row.

Layout:
    {
      "transactions": [{"id", "type", "date", "amount", "description", "category"}],
      "events": [{"id", "date", "title", "description", "kind"}]
    }

Dates are ISO-8601 date-times, amounts are JSON numbers. Amounts are
parsed as Decimal so totals stay exact after a round trip.
"""

import json
from decimal import Decimal
from typing import Any, Collection, NamedTuple, Optional, Type, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ValidationError

from finance_tracker.audit.logger import get_logger
from finance_tracker.models.records import (
    CalendarEvent,
    Store,
    Transaction,
    amount_to_json,
)
from finance_tracker.services.storage.interface import CorruptStoreError


logger = get_logger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

COLLECTIONS: dict[str, Type[BaseModel]] = {
    "transactions": Transaction,
    "events": CalendarEvent,
}


def new_record_id(existing: Collection[str] = ()) -> str:
    """Generate an id not present in ``existing``."""
    record_id = str(uuid4())
    while record_id in existing:
        record_id = str(uuid4())
    return record_id


def decode_record(
    model: Type[RecordT],
    raw: Any,
    collection: str,
) -> Optional[RecordT]:
    """
    Validate one stored record.

    Malformed records are logged and skipped (None) rather than failing
    the whole load.
    """
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        record_id = raw.get("id") if isinstance(raw, dict) else None
        logger.warning(
            "store_record_skipped",
            collection=collection,
            record_id=record_id,
            error_count=e.error_count(),
            error=str(e),
        )
        return None


class DecodedDocument(NamedTuple):
    """A parsed document plus the raw records that failed validation."""

    store: Store
    # collection -> [(original index, raw record)]
    skipped: dict[str, list[tuple[int, Any]]]

    @property
    def record_ids(self) -> set[str]:
        """Ids of valid and skipped records alike."""
        ids = set(self.store.record_ids)
        for items in self.skipped.values():
            ids.update(
                str(raw["id"]) for _, raw in items
                if isinstance(raw, dict) and raw.get("id") is not None
            )
        return ids


def decode_document(text: str) -> DecodedDocument:
    """
    Parse a persisted document, keeping malformed records aside.

    Raises:
        CorruptStoreError: If the text is not a JSON object or a
            collection is not a list
    """
    try:
        raw = json.loads(text, parse_float=Decimal)
    except json.JSONDecodeError as e:
        raise CorruptStoreError(f"Store is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise CorruptStoreError(
            f"Store root must be an object, got {type(raw).__name__}"
        )

    decoded: dict[str, list] = {}
    skipped: dict[str, list[tuple[int, Any]]] = {}
    for collection, model in COLLECTIONS.items():
        items = raw.get(collection) or []
        if not isinstance(items, list):
            raise CorruptStoreError(f"'{collection}' must be a list")
        decoded[collection] = []
        for index, item in enumerate(items):
            record = decode_record(model, item, collection)
            if record is None:
                skipped.setdefault(collection, []).append((index, item))
            else:
                decoded[collection].append(record)

    return DecodedDocument(Store(**decoded), skipped)


def decode_store(text: str) -> Store:
    """Parse a persisted document; malformed records are dropped."""
    return decode_document(text).store


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return amount_to_json(value)
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def encode_record(record: BaseModel) -> str:
    """Serialize one record as JSON text."""
    return json.dumps(record.model_dump(mode="json"))


def encode_store(
    store: Store,
    skipped: Optional[dict[str, list[tuple[int, Any]]]] = None,
) -> str:
    """
    Serialize the whole document, pretty-printed for hand inspection.

    Records in ``skipped`` are written back unchanged at their original
    positions, so a write never drops data this version cannot read.
    """
    payload = store.model_dump(mode="json")
    for collection, items in (skipped or {}).items():
        records = payload.setdefault(collection, [])
        for index, raw in sorted(items, key=lambda item: item[0]):
            records.insert(min(index, len(records)), raw)
    return json.dumps(payload, indent=2, default=_json_default)

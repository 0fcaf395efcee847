"""
Tests for the record stores

The contract tests run against both backends through the
parametrized ``store`` fixture.
"""

import asyncio
import json
from datetime import date
from decimal import Decimal

import pytest

from conftest import make_event, make_transaction
from finance_tracker.config import StorageSettings
from finance_tracker.models.records import (
    CalendarEvent,
    EventKind,
    Store,
    Transaction,
    TransactionType,
)
from finance_tracker.services.storage import (
    CorruptStoreError,
    JsonFileRecordStore,
    SqliteRecordStore,
    create_record_store,
    sort_newest_first,
)
from finance_tracker.services.storage import document as document_module
from finance_tracker.services.storage.document import (
    decode_document,
    decode_store,
    encode_store,
    new_record_id,
)
from finance_tracker.views import financial_summary


class TestRecordStoreContract:
    """Behaviour shared by every backend."""

    def test_fresh_store_is_empty(self, store):
        """Test that loading a missing store yields empty collections."""
        loaded = asyncio.run(store.load_store())
        assert loaded.transactions == []
        assert loaded.events == []

    def test_add_transaction_then_list(self, store):
        """Test that an appended transaction is listed with a new id."""
        write = asyncio.run(store.add_transaction(make_transaction()))

        assert write.success is True
        assert write.error_message is None
        assert isinstance(write.record, Transaction)
        assert write.record.id

        listed = asyncio.run(store.list_transactions())
        assert len(listed) == 1
        assert listed[0].id == write.record.id
        assert listed[0].amount == Decimal("50")
        assert listed[0].category == "Food"

    def test_ids_are_unique(self, store):
        """Test that every appended record gets its own id."""
        ids = set()
        for i in range(5):
            ids.add(asyncio.run(store.add_transaction(make_transaction(amount=str(i + 1)))).record.id)
            ids.add(asyncio.run(store.add_event(make_event(title=f"Event {i}"))).record.id)
        assert len(ids) == 10

    def test_lunch_scenario(self, store):
        """Test empty store -> one expense -> summary."""
        asyncio.run(store.add_transaction(make_transaction(amount="50", description="Lunch")))

        summary = financial_summary(asyncio.run(store.list_transactions()))

        assert summary.revenue == Decimal("0")
        assert summary.expenses == Decimal("50")
        assert summary.profit == Decimal("-50")

    def test_event_without_description(self, store):
        """Test that the Kickoff event is stored with an empty description."""
        write = asyncio.run(store.add_event(make_event(title="Kickoff")))
        assert write.success is True

        events = asyncio.run(store.list_events())
        assert len(events) == 1
        assert events[0].title == "Kickoff"
        assert events[0].description == ""
        assert events[0].kind == EventKind.EVENT

    def test_events_keep_insertion_order(self, store):
        """Test that events are listed in the order they were added."""
        for title, day in [("B", date(2024, 3, 5)), ("A", date(2024, 3, 1)), ("C", date(2024, 3, 3))]:
            asyncio.run(store.add_event(make_event(title=title, on=day)))

        titles = [e.title for e in asyncio.run(store.list_events())]
        assert titles == ["B", "A", "C"]

    def test_transactions_listed_newest_first_and_stable(self, store):
        """Test date-descending order with ties kept in insertion order."""
        asyncio.run(store.add_transaction(make_transaction(description="first", on=date(2024, 3, 1))))
        asyncio.run(store.add_transaction(make_transaction(description="later", on=date(2024, 3, 9))))
        asyncio.run(store.add_transaction(make_transaction(description="second", on=date(2024, 3, 1))))

        descriptions = [t.description for t in asyncio.run(store.list_transactions())]
        assert descriptions == ["later", "first", "second"]

    def test_save_then_load_preserves_records(self, store):
        """Test that save_store followed by load_store returns the same data."""
        doc = Store(
            transactions=[
                Transaction(id="t1", type="revenue", date="2024-02-01", amount=Decimal("1200.75"),
                            description="Invoice", category="Sales"),
                Transaction(id="t2", type="expense", date="2024-02-02", amount=Decimal("0.1"),
                            description="Fee", category="Bank"),
            ],
            events=[
                CalendarEvent(id="e1", date="2024-02-10", title="Tax day", kind="reminder"),
            ],
        )

        assert asyncio.run(store.save_store(doc)).success is True
        loaded = asyncio.run(store.load_store())

        assert loaded == doc

    def test_decimal_totals_exact_after_reload(self, store):
        """Test that cent amounts add up exactly after a round trip."""
        for _ in range(3):
            asyncio.run(store.add_transaction(make_transaction(amount="0.1")))

        summary = financial_summary(asyncio.run(store.list_transactions()))
        assert summary.expenses == Decimal("0.3")

    def test_largest_accepted_amount_exact_after_reload(self, store):
        """Test that a fifteen-digit amount survives the JSON number round trip."""
        asyncio.run(store.add_transaction(make_transaction(amount="1234567890123.45")))

        reloaded = asyncio.run(store.list_transactions())[0]
        assert reloaded.amount == Decimal("1234567890123.45")

    def test_google_flag_not_reloaded(self, store):
        """Test that the add-to-calendar flag is dropped on persist."""
        write = asyncio.run(store.add_event(make_event(add_to_google_calendar=True)))
        assert write.record.add_to_google_calendar is True

        reloaded = asyncio.run(store.list_events())[0]
        assert reloaded.add_to_google_calendar is False


class TestJsonFileRecordStore:
    """Tests specific to the single-document backend."""

    def test_missing_file_created_empty(self, json_store):
        """Test that the first read writes an empty document."""
        asyncio.run(json_store.load_store())

        assert json_store.path.exists()
        assert json.loads(json_store.path.read_text()) == {"transactions": [], "events": []}

    def test_document_layout(self, json_store):
        """Test the persisted field layout of a transaction."""
        write = asyncio.run(json_store.add_transaction(make_transaction(amount="12.5")))

        raw = json.loads(json_store.path.read_text())
        assert raw["transactions"] == [{
            "id": write.record.id,
            "type": "expense",
            "date": "2024-03-01T00:00:00",
            "amount": 12.5,
            "description": "Lunch",
            "category": "Food",
        }]

    def test_reads_documents_with_utc_timestamps(self, json_store):
        """Test that dates written with a time and Z suffix load as days."""
        json_store.path.write_text(json.dumps({
            "transactions": [{
                "id": "1700000000000",
                "type": "revenue",
                "date": "2024-03-01T00:00:00.000Z",
                "amount": 300,
                "description": "Consulting",
                "category": "Sales",
            }],
            "events": [{"id": "1700000000001", "date": "2024-03-02T00:00:00.000Z", "title": "Kickoff"}],
        }))

        loaded = asyncio.run(json_store.load_store())

        assert loaded.transactions[0].date == date(2024, 3, 1)
        assert loaded.transactions[0].type == TransactionType.REVENUE
        assert loaded.events[0].date == date(2024, 3, 2)

    def test_corrupt_file_reads_as_empty(self, json_store):
        """Test that a corrupt document fails soft."""
        json_store.path.write_text("{not json")

        loaded = asyncio.run(json_store.load_store())

        assert loaded == Store()

    def test_corrupt_file_not_overwritten_by_append(self, json_store):
        """Test that an append against a corrupt document is refused."""
        json_store.path.write_text("{not json")

        write = asyncio.run(json_store.add_transaction(make_transaction()))

        assert write.success is False
        assert write.record is None
        assert write.error_message
        assert json_store.path.read_text() == "{not json"

    def test_malformed_record_skipped(self, json_store):
        """Test that one bad record does not hide the others."""
        json_store.path.write_text(json.dumps({
            "transactions": [
                {"id": "bad", "type": "expense", "date": "2024-03-01", "amount": -5},
                {"id": "good", "type": "expense", "date": "2024-03-01", "amount": 5},
            ],
            "events": [],
        }))

        loaded = asyncio.run(json_store.load_store())

        assert [t.id for t in loaded.transactions] == ["good"]

    def test_append_keeps_unreadable_records(self, json_store):
        """Test that an append writes skipped records back unchanged and in place."""
        unknown = {"id": "2", "type": "refund", "date": "2024-03-02", "amount": 7.25}
        json_store.path.write_text(json.dumps({
            "transactions": [
                {"id": "1", "type": "expense", "date": "2024-03-01", "amount": 5},
                unknown,
            ],
            "events": [{"id": "e1", "date": "2024-03-01"}],
        }))

        write = asyncio.run(json_store.add_transaction(make_transaction()))

        raw = json.loads(json_store.path.read_text())
        assert write.success is True
        assert [t["id"] for t in raw["transactions"]] == ["1", "2", write.record.id]
        assert raw["transactions"][1] == unknown
        assert raw["events"] == [{"id": "e1", "date": "2024-03-01"}]

    def test_new_id_avoids_unreadable_records(self, json_store, monkeypatch):
        """Test that a skipped record still reserves its id."""
        json_store.path.write_text(json.dumps({
            "transactions": [{"id": "taken", "type": "refund", "date": "2024-03-01", "amount": 1}],
            "events": [],
        }))
        ids = iter(["taken", "fresh"])
        monkeypatch.setattr(document_module, "uuid4", lambda: next(ids))

        write = asyncio.run(json_store.add_transaction(make_transaction()))

        assert write.record.id == "fresh"

    def test_offset_dates_load_as_local_days(self, json_store, local_timezone):
        """Test that UTC timestamps written east of UTC load on the local day."""
        local_timezone("PKT-5")
        json_store.path.write_text(json.dumps({
            "transactions": [{
                "id": "1", "type": "expense", "date": "2024-01-04T19:00:00.000Z",
                "amount": 20, "description": "Dinner", "category": "Food",
            }],
            "events": [],
        }))

        loaded = asyncio.run(json_store.load_store())

        assert loaded.transactions[0].date == date(2024, 1, 5)

    def test_missing_collection_treated_as_empty(self, json_store):
        """Test that a document with only one collection loads."""
        json_store.path.write_text(json.dumps({"transactions": []}))

        loaded = asyncio.run(json_store.load_store())

        assert loaded.events == []

    def test_write_failure_reported(self, tmp_path):
        """Test that an unwritable location returns success=False."""
        blocker = tmp_path / "not-a-directory"
        blocker.write_text("")
        store = JsonFileRecordStore(blocker / "db.json")

        write = asyncio.run(store.add_transaction(make_transaction()))

        assert write.success is False
        assert write.record is None
        assert "db.json" in write.error_message

    def test_no_temp_files_left_behind(self, json_store):
        """Test that the atomic write cleans up after itself."""
        asyncio.run(json_store.add_transaction(make_transaction()))

        leftovers = [p.name for p in json_store.path.parent.iterdir() if p.name != "db.json"]
        assert leftovers == []


class TestSqliteRecordStore:
    """Tests specific to the embedded SQLite backend."""

    def test_database_created_on_first_use(self, sqlite_store, tmp_path):
        """Test that the first load creates the database file."""
        asyncio.run(sqlite_store.load_store())
        assert (tmp_path / "finance.db").exists()

    def test_data_survives_reopen(self, tmp_path):
        """Test that records persist across store instances."""
        path = tmp_path / "finance.db"
        first = SqliteRecordStore(path=path)
        asyncio.run(first.add_transaction(make_transaction()))
        asyncio.run(first.add_event(make_event()))
        first.close()

        second = SqliteRecordStore(path=path)
        loaded = asyncio.run(second.load_store())
        second.close()

        assert len(loaded.transactions) == 1
        assert len(loaded.events) == 1

    def test_save_store_replaces_contents(self, sqlite_store):
        """Test that save_store is a full replacement."""
        asyncio.run(sqlite_store.add_transaction(make_transaction()))

        asyncio.run(sqlite_store.save_store(Store()))

        assert asyncio.run(sqlite_store.load_store()) == Store()

    def test_unusable_database_fails_soft(self, tmp_path):
        """Test that a file that is not a database reads as empty and refuses writes."""
        path = tmp_path / "finance.db"
        path.write_text("this is not a sqlite database" * 100)
        store = SqliteRecordStore(path=path)

        loaded = asyncio.run(store.load_store())
        write = asyncio.run(store.add_transaction(make_transaction()))
        store.close()

        assert loaded == Store()
        assert write.success is False
        assert write.error_message

    def test_url_from_path(self, tmp_path):
        store = SqliteRecordStore(path=tmp_path / "x.db")
        assert store.url == f"sqlite+pysqlite:///{tmp_path / 'x.db'}"


class TestDocumentCodec:
    """Tests for the shared JSON document codec."""

    def test_round_trip(self):
        """Test encode_store / decode_store."""
        doc = Store(
            transactions=[Transaction(id="t1", type="expense", date="2024-01-31",
                                      amount=Decimal("19.99"), description='He said "hi"',
                                      category="Misc")],
            events=[CalendarEvent(id="e1", date="2024-02-29", title="Leap day")],
        )
        assert decode_store(encode_store(doc)) == doc

    def test_skipped_records_restored_in_place(self):
        """Test that encode_store puts skipped records back at their index."""
        text = json.dumps({
            "transactions": [
                {"id": "a", "type": "refund", "date": "2024-03-01", "amount": 1},
                {"id": "b", "type": "expense", "date": "2024-03-01", "amount": 2},
                {"id": "c", "type": "expense", "date": "2024-03-01", "amount": -3},
            ],
            "events": [],
        })

        decoded = decode_document(text)
        raw = json.loads(encode_store(decoded.store, decoded.skipped))

        assert [t.id for t in decoded.store.transactions] == ["b"]
        assert [t["id"] for t in raw["transactions"]] == ["a", "b", "c"]
        assert decoded.record_ids == {"a", "b", "c"}

    @pytest.mark.parametrize("text", ["", "[]", '{"transactions": {"id": "t1"}}', "null"])
    def test_corrupt_documents_rejected(self, text):
        """Test that structurally invalid documents raise CorruptStoreError."""
        with pytest.raises(CorruptStoreError):
            decode_store(text)

    def test_new_record_id_avoids_existing(self):
        existing = {new_record_id() for _ in range(10)}
        assert new_record_id(existing) not in existing


class TestOrdering:

    def test_sort_newest_first_is_stable(self):
        """Test that same-day transactions keep their relative order."""
        transactions = [
            Transaction(id=str(i), type="expense", date=day, amount=1)
            for i, day in enumerate(["2024-03-01", "2024-03-02", "2024-03-01", "2024-03-02"])
        ]
        assert [t.id for t in sort_newest_first(transactions)] == ["1", "3", "0", "2"]


class TestStoreFactory:

    def test_json_backend(self, tmp_path):
        settings = StorageSettings(backend="json", json_path=tmp_path / "db.json")
        store = create_record_store(settings)
        assert isinstance(store, JsonFileRecordStore)
        assert store.path == tmp_path / "db.json"

    def test_sqlite_backend_with_url(self, tmp_path):
        url = f"sqlite+pysqlite:///{tmp_path / 'custom.db'}"
        store = create_record_store(StorageSettings(backend="sqlite", database_url=url))
        assert isinstance(store, SqliteRecordStore)
        assert store.url == url

    def test_non_sqlite_url_rejected(self):
        with pytest.raises(ValueError):
            StorageSettings(database_url="postgresql://localhost/finance")

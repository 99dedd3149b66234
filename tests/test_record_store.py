"""Tests for the local record store."""

import asyncio
import sqlite3
from pathlib import Path

import pytest

from catchlog.errors import StorageError
from catchlog.storage import CatchOrigin, InMemoryStorage, LocalRecordStore, SQLiteStorage, SyncState
from catchlog.storage.record_store import RECORDS_CONTAINER

from conftest import make_input


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path: Path) -> LocalRecordStore:
    if request.param == "memory":
        return LocalRecordStore(InMemoryStorage())
    return LocalRecordStore(SQLiteStorage(tmp_path / "catchlog.db"))


class TestAppend:
    def test_pending_in_append_order(self, store: LocalRecordStore) -> None:
        species = ["Walleye", "Northern Pike", "Bluegill", "Crappie", "Walleye"]

        async def scenario():
            ids = [await store.append(make_input(name)) for name in species]
            return ids, await store.list_pending()

        ids, pending = asyncio.run(scenario())
        assert [r.id for r in pending] == ids
        assert [r.species for r in pending] == species
        assert len(set(ids)) == len(ids)

    def test_new_record_is_pending_offline_capture(self, store: LocalRecordStore) -> None:
        record_id = asyncio.run(store.append(make_input(notes="by the weed line")))
        [record] = asyncio.run(store.list_pending())
        assert record.id == record_id
        assert record_id.startswith("offline_")
        assert record.origin == CatchOrigin.CAPTURED_OFFLINE
        assert record.sync_state == SyncState.PENDING
        assert record.notes == "by the weed line"

    def test_append_without_existing_store_file(self, tmp_path: Path) -> None:
        db_path = tmp_path / "fresh" / "nested" / "catchlog.db"
        assert not db_path.exists()
        store = LocalRecordStore(SQLiteStorage(db_path))

        record_id = asyncio.run(store.append(make_input()))

        assert record_id
        assert [r.id for r in asyncio.run(store.list_pending())] == [record_id]

    def test_append_propagates_write_failure(self, flaky_storage) -> None:
        store = LocalRecordStore(flaky_storage)
        flaky_storage.fail_writes = True
        with pytest.raises(StorageError):
            asyncio.run(store.append(make_input()))

    def test_photo_order_preserved(self, store: LocalRecordStore) -> None:
        photos = ["/photos/c.jpg", "/photos/a.jpg", "/photos/b.jpg"]
        asyncio.run(store.append(make_input(photos=photos)))
        [record] = asyncio.run(store.list_pending())
        assert record.photos == photos


class TestMarkAndEvict:
    def test_evict_removes_only_synced_record(self, store: LocalRecordStore) -> None:
        async def scenario():
            a = await store.append(make_input("A"))
            b = await store.append(make_input("B"))
            c = await store.append(make_input("C"))
            await store.mark_synced(b)
            removed = await store.evict_synced()
            return a, c, removed, await store.list_all()

        a, c, removed, remaining = asyncio.run(scenario())
        assert removed == 1
        assert [r.id for r in remaining] == [a, c]
        assert all(r.sync_state == SyncState.PENDING for r in remaining)

    def test_mark_synced_is_idempotent(self, store: LocalRecordStore) -> None:
        async def scenario():
            record_id = await store.append(make_input())
            await store.mark_synced(record_id)
            await store.mark_synced(record_id)
            await store.mark_synced("offline_0_unknown")
            return await store.list_all()

        [record] = asyncio.run(scenario())
        assert record.sync_state == SyncState.SYNCED

    def test_synced_record_not_listed_as_pending(self, store: LocalRecordStore) -> None:
        async def scenario():
            record_id = await store.append(make_input())
            await store.mark_synced(record_id)
            return await store.list_pending(), await store.count_pending()

        pending, count = asyncio.run(scenario())
        assert pending == []
        assert count == 0

    def test_evict_with_nothing_synced(self, store: LocalRecordStore) -> None:
        async def scenario():
            await store.append(make_input())
            return await store.evict_synced(), await store.count_pending()

        assert asyncio.run(scenario()) == (0, 1)

    def test_record_failure_counts_attempts(self, store: LocalRecordStore) -> None:
        async def scenario():
            record_id = await store.append(make_input())
            await store.record_failure(record_id, "permission denied")
            await store.record_failure(record_id, "deadline exceeded")
            return await store.list_pending()

        [record] = asyncio.run(scenario())
        assert record.attempts == 2
        assert record.last_error == "deadline exceeded"
        assert record.sync_state == SyncState.PENDING


class TestDegradedReads:
    def test_unreadable_storage_lists_nothing(self, flaky_storage) -> None:
        store = LocalRecordStore(flaky_storage)
        asyncio.run(store.append(make_input()))
        flaky_storage.fail_reads = True

        assert asyncio.run(store.list_pending()) == []
        assert store.last_read_error is not None

        flaky_storage.fail_reads = False
        assert len(asyncio.run(store.list_pending())) == 1
        assert store.last_read_error is None

    def test_corrupt_sqlite_row_skipped(self, tmp_path: Path) -> None:
        db_path = tmp_path / "catchlog.db"
        store = LocalRecordStore(SQLiteStorage(db_path))
        first, middle, last = [
            asyncio.run(store.append(make_input(name))) for name in ("Walleye", "Perch", "Pike")
        ]

        with sqlite3.connect(db_path) as conn:
            conn.execute(
                "UPDATE items SET value = '{not json' WHERE container = ? AND key = ?",
                (RECORDS_CONTAINER, middle),
            )

        assert [r.id for r in asyncio.run(store.list_pending())] == [first, last]
        assert middle in store.last_read_error
        assert asyncio.run(store.count_pending()) == 2

    def test_corrupt_sqlite_row_does_not_block_eviction(self, tmp_path: Path) -> None:
        db_path = tmp_path / "catchlog.db"
        store = LocalRecordStore(SQLiteStorage(db_path))
        synced = asyncio.run(store.append(make_input("Walleye")))
        corrupt = asyncio.run(store.append(make_input("Perch")))
        asyncio.run(store.mark_synced(synced))

        with sqlite3.connect(db_path) as conn:
            conn.execute(
                "UPDATE items SET value = '{not json' WHERE container = ? AND key = ?",
                (RECORDS_CONTAINER, corrupt),
            )

        assert asyncio.run(store.evict_synced()) == 1
        assert [key for key, _ in store.storage.items(RECORDS_CONTAINER)] == [corrupt]

    def test_invalid_record_skipped(self, storage) -> None:
        store = LocalRecordStore(storage)
        good = asyncio.run(store.append(make_input()))
        storage.put(RECORDS_CONTAINER, "broken", {"species": "Perch"})

        assert [r.id for r in asyncio.run(store.list_pending())] == [good]


class TestDurability:
    def test_pending_survives_reopen(self, tmp_path: Path) -> None:
        db_path = tmp_path / "catchlog.db"
        first = LocalRecordStore(SQLiteStorage(db_path))
        ids = [asyncio.run(first.append(make_input(name))) for name in ("Trout", "Salmon")]

        reopened = LocalRecordStore(SQLiteStorage(db_path))
        assert [r.id for r in asyncio.run(reopened.list_pending())] == ids

    def test_sync_state_visible_to_other_instance(self, tmp_path: Path) -> None:
        db_path = tmp_path / "catchlog.db"
        writer = LocalRecordStore(SQLiteStorage(db_path))
        reader = LocalRecordStore(SQLiteStorage(db_path))

        record_id = asyncio.run(writer.append(make_input()))
        assert asyncio.run(reader.count_pending()) == 1
        asyncio.run(writer.mark_synced(record_id))
        assert asyncio.run(reader.count_pending()) == 0

"""Unit tests for the serialized, durable history store."""

from __future__ import annotations

import asyncio
import json
import unittest
from datetime import datetime, timedelta, timezone

from scanvault.errors import CorruptStateWarning, PersistenceError
from scanvault.scanning.codec import decode_snapshot, encode_snapshot
from scanvault.scanning.history import HistoryStore
from scanvault.scanning.records import ContentType, HistorySnapshot, ScanMode
from scanvault.storage.checkpoints import MemorySnapshotStore

KEY = "history"
T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def at(ms: int) -> datetime:
    return T0 + timedelta(milliseconds=ms)


async def _spin(rounds: int = 10) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


class _FlakyStore(MemorySnapshotStore):
    def __init__(self) -> None:
        super().__init__()
        self.fail_writes = False
        self.fail_reads = False
        self.writes: list[str] = []

    async def read(self, key: str) -> str | None:
        if self.fail_reads:
            raise OSError("disk unavailable")
        return await super().read(key)

    async def write(self, key: str, value: str) -> None:
        self.writes.append(value)
        if self.fail_writes:
            raise OSError("disk full")
        await super().write(key, value)


class _RejectingStore(MemorySnapshotStore):
    async def write(self, key: str, value: str) -> bool:  # type: ignore[override]
        return False


class _GatedStore(MemorySnapshotStore):
    def __init__(self) -> None:
        super().__init__()
        self.release = asyncio.Event()
        self.writes: list[str] = []
        self.fail_next = False

    async def write(self, key: str, value: str) -> None:
        self.writes.append(value)
        await self.release.wait()
        if self.fail_next:
            self.fail_next = False
            raise OSError("transient failure")
        await super().write(key, value)


class HistoryStoreTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.adapter = _FlakyStore()
        self.store = HistoryStore(self.adapter, key=KEY)
        await self.store.load_initial()

    def persisted(self) -> HistorySnapshot:
        raw = self.adapter.peek(KEY)
        self.assertIsNotNone(raw)
        return decode_snapshot(raw or "")

    async def test_append_classifies_persists_and_prepends(self) -> None:
        first = await self.store.append("https://a.com", at(0))
        second = await self.store.append("WIFI:S:HomeNet;T:WPA;P:secret;;", at(10))

        self.assertEqual(first.content_type, ContentType.URL)
        self.assertEqual(second.content_type, ContentType.WIFI_CREDENTIAL)
        self.assertEqual(second.display_value, "HomeNet")
        self.assertEqual(second.raw_payload, "WIFI:S:HomeNet;T:WPA;P:secret;;")
        self.assertEqual(second.created_at, at(10))
        self.assertNotEqual(first.id, second.id)
        self.assertEqual(self.store.snapshot.ids(), [second.id, first.id])
        self.assertEqual(self.persisted(), self.store.snapshot)

    async def test_append_records_source(self) -> None:
        record = await self.store.append("hello", at(0), source=ScanMode.GALLERY.value)
        self.assertEqual(record.source, "gallery")
        self.assertEqual(self.persisted().records[0].source, "gallery")

    async def test_failed_append_leaves_snapshot_unchanged(self) -> None:
        kept = await self.store.append("https://a.com", at(0))
        before = self.store.snapshot
        persisted_before = self.adapter.peek(KEY)

        self.adapter.fail_writes = True
        with self.assertRaises(PersistenceError):
            await self.store.append("https://b.com", at(5))

        self.assertIs(self.store.snapshot, before)
        self.assertEqual(self.store.snapshot.ids(), [kept.id])
        self.assertEqual(self.adapter.peek(KEY), persisted_before)

        self.adapter.fail_writes = False
        retried = await self.store.append("https://b.com", at(6))
        self.assertEqual(self.store.snapshot.ids(), [retried.id, kept.id])

    async def test_rejected_write_is_a_persistence_error(self) -> None:
        store = HistoryStore(_RejectingStore(), key=KEY)
        with self.assertRaises(PersistenceError):
            await store.append("x", at(0))
        self.assertEqual(len(store.snapshot), 0)

    async def test_append_refused_by_admit_guard_writes_nothing(self) -> None:
        writes_before = len(self.adapter.writes)
        record = await self.store.append("https://a.com", at(0), admit=lambda: False)
        self.assertIsNone(record)
        self.assertEqual(len(self.store.snapshot), 0)
        self.assertEqual(len(self.adapter.writes), writes_before)

        kept = await self.store.append("https://b.com", at(1), admit=lambda: True)
        self.assertIsNotNone(kept)
        self.assertEqual(len(self.store.snapshot), 1)

    async def test_created_at_never_goes_backwards(self) -> None:
        first = await self.store.append("one", at(100))
        second = await self.store.append("two", at(50))
        self.assertEqual(second.created_at, first.created_at)

    async def test_naive_timestamps_are_treated_as_utc(self) -> None:
        record = await self.store.append("naive", datetime(2026, 3, 1, 12, 0))
        self.assertEqual(record.created_at, T0)

    async def test_remove_existing_and_missing(self) -> None:
        record = await self.store.append("https://a.com", at(0))
        writes_before = len(self.adapter.writes)
        snapshot_before = self.store.snapshot

        self.assertFalse(await self.store.remove("missing"))
        self.assertIs(self.store.snapshot, snapshot_before)
        self.assertEqual(len(self.adapter.writes), writes_before)

        self.assertTrue(await self.store.remove(record.id))
        self.assertEqual(len(self.store.snapshot), 0)
        self.assertEqual(len(self.persisted()), 0)

    async def test_failed_remove_keeps_record(self) -> None:
        record = await self.store.append("https://a.com", at(0))
        self.adapter.fail_writes = True
        with self.assertRaises(PersistenceError):
            await self.store.remove(record.id)
        self.assertEqual(self.store.snapshot.ids(), [record.id])

    async def test_clear_persists_empty_snapshot(self) -> None:
        await self.store.append("a", at(0))
        await self.store.append("b", at(1))
        await self.store.clear()
        self.assertEqual(len(self.store.snapshot), 0)
        self.assertEqual(len(self.persisted()), 0)

        await self.store.clear()
        self.assertEqual(len(self.persisted()), 0)

    async def test_subscribers_get_full_snapshots(self) -> None:
        seen: list[HistorySnapshot] = []
        unsubscribe = self.store.subscribe(seen.append)

        def broken(_snapshot: HistorySnapshot) -> None:
            raise ValueError("boom")

        self.store.subscribe(broken)
        a = await self.store.append("a", at(0))
        b = await self.store.append("b", at(1))
        await self.store.remove(a.id)

        self.assertEqual([snap.ids() for snap in seen], [[a.id], [b.id, a.id], [b.id]])
        unsubscribe()
        await self.store.clear()
        self.assertEqual(len(seen), 3)

    async def test_failed_mutation_does_not_notify(self) -> None:
        seen: list[HistorySnapshot] = []
        self.store.subscribe(seen.append)
        self.adapter.fail_writes = True
        with self.assertRaises(PersistenceError):
            await self.store.append("a", at(0))
        self.assertEqual(seen, [])


class HistoryStoreLoadTests(unittest.IsolatedAsyncioTestCase):
    async def test_missing_data_loads_empty(self) -> None:
        store = HistoryStore(MemorySnapshotStore(), key=KEY)
        snapshot = await store.load_initial()
        self.assertEqual(len(snapshot), 0)

    async def test_loads_persisted_records(self) -> None:
        adapter = MemorySnapshotStore()
        writer = HistoryStore(adapter, key=KEY)
        await writer.append("https://a.com", at(0))
        await writer.append("tel:555-0100-22", at(1))

        reader = HistoryStore(adapter, key=KEY)
        snapshot = await reader.load_initial()
        self.assertEqual(snapshot, writer.snapshot)
        self.assertEqual(reader.snapshot, writer.snapshot)

    async def test_corrupt_data_warns_and_loads_empty(self) -> None:
        for raw in ("{not json", json.dumps({"records": [{"id": 1}]}), json.dumps("text")):
            store = HistoryStore(MemorySnapshotStore({KEY: raw}), key=KEY)
            with self.assertWarns(CorruptStateWarning):
                snapshot = await store.load_initial()
            self.assertEqual(len(snapshot), 0, raw)

    async def test_blank_data_loads_empty_without_warning(self) -> None:
        store = HistoryStore(MemorySnapshotStore({KEY: "  "}), key=KEY)
        snapshot = await store.load_initial()
        self.assertEqual(len(snapshot), 0)

    async def test_read_failure_is_a_persistence_error(self) -> None:
        adapter = _FlakyStore()
        adapter.fail_reads = True
        store = HistoryStore(adapter, key=KEY)
        with self.assertRaises(PersistenceError):
            await store.load_initial()


class HistoryStoreSerializationTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.adapter = _GatedStore()
        self.store = HistoryStore(self.adapter, key=KEY)

    async def test_queued_mutations_apply_in_order_against_updated_state(self) -> None:
        first = asyncio.create_task(self.store.append("https://a.com", at(0)))
        second = asyncio.create_task(self.store.append("https://b.com", at(1)))
        await _spin()

        self.assertEqual(len(self.adapter.writes), 1)
        self.assertEqual(len(self.store.snapshot), 0)

        self.adapter.release.set()
        a, b = await asyncio.gather(first, second)

        self.assertEqual(self.store.snapshot.ids(), [b.id, a.id])
        self.assertEqual(len(decode_snapshot(self.adapter.writes[1])), 2)

    async def test_clear_queued_behind_append_sees_the_new_record(self) -> None:
        ids: list[str] = []
        self.store.subscribe(lambda snap: ids.extend(snap.ids()[:1]))
        appending = asyncio.create_task(self.store.append("https://a.com", at(0)))
        await _spin()
        clearing = asyncio.create_task(self.store.clear())
        await _spin()
        self.assertEqual(len(self.adapter.writes), 1)

        self.adapter.release.set()
        await asyncio.gather(appending, clearing)
        self.assertEqual(len(self.store.snapshot), 0)
        self.assertEqual(len(ids), 1)

    async def test_failure_in_queue_does_not_poison_later_mutations(self) -> None:
        self.adapter.fail_next = True
        first = asyncio.create_task(self.store.append("https://a.com", at(0)))
        second = asyncio.create_task(self.store.append("https://b.com", at(1)))
        await _spin()
        self.adapter.release.set()
        results = await asyncio.gather(first, second, return_exceptions=True)

        self.assertIsInstance(results[0], PersistenceError)
        self.assertEqual(self.store.snapshot.ids(), [results[1].id])
        self.assertEqual(len(decode_snapshot(self.adapter.writes[1])), 1)

    async def test_cancelled_caller_still_commits_inflight_write(self) -> None:
        task = asyncio.create_task(self.store.append("https://a.com", at(0)))
        await _spin()
        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task
        self.adapter.release.set()
        await _spin()
        self.assertEqual(len(self.store.snapshot), 1)
        self.assertEqual(
            encode_snapshot(self.store.snapshot), self.adapter.peek(KEY)
        )


if __name__ == "__main__":
    unittest.main()

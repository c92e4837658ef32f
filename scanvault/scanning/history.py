"""Durable, serialized scan history."""

from __future__ import annotations

import asyncio
import logging
import warnings
from datetime import datetime, timezone
from typing import Callable

from ..config import constants
from ..errors import CorruptStateWarning, PersistenceError, SnapshotDecodeError
from ..storage.checkpoints import PersistenceAdapter
from .classifier import Classification, classify
from .codec import decode_snapshot, encode_snapshot
from .records import EMPTY_SNAPSHOT, HistorySnapshot, ScanMode, ScanRecord, new_record_id

logger = logging.getLogger(__name__)

HistoryListener = Callable[[HistorySnapshot], None]


class HistoryStore:
    """Sole writer of the scan history.

    Mutations run one at a time in request order. Each one derives the next
    snapshot from the last committed one, persists it, and only then makes it
    visible to readers and subscribers. A failed write leaves the visible
    snapshot untouched and surfaces as ``PersistenceError``.
    """

    def __init__(
        self,
        adapter: PersistenceAdapter,
        *,
        key: str = constants.DEFAULT_HISTORY_KEY,
        classifier: Callable[[str], Classification] = classify,
        id_factory: Callable[[], str] = new_record_id,
    ) -> None:
        self._adapter = adapter
        self._key = key
        self._classify = classifier
        self._new_id = id_factory
        self._snapshot: HistorySnapshot = EMPTY_SNAPSHOT
        self._lock = asyncio.Lock()
        self._listeners: list[HistoryListener] = []

    @property
    def snapshot(self) -> HistorySnapshot:
        return self._snapshot

    @property
    def key(self) -> str:
        return self._key

    def subscribe(self, listener: HistoryListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self, snapshot: HistorySnapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("history subscriber failed")

    async def _persist(self, snapshot: HistorySnapshot) -> None:
        encoded = encode_snapshot(snapshot)
        try:
            result = await self._adapter.write(self._key, encoded)
        except PersistenceError:
            raise
        except OSError as exc:
            raise PersistenceError(f"failed to write history: {exc}", key=self._key) from exc
        if result is False:
            raise PersistenceError("history write was rejected", key=self._key)

    async def load_initial(self) -> HistorySnapshot:
        async with self._lock:
            try:
                raw = await self._adapter.read(self._key)
            except OSError as exc:
                raise PersistenceError(f"failed to read history: {exc}", key=self._key) from exc

            if raw is None or not raw.strip():
                snapshot = EMPTY_SNAPSHOT
            else:
                try:
                    snapshot = decode_snapshot(raw)
                except SnapshotDecodeError as exc:
                    logger.warning("discarding corrupt history %s: %s", self._key, exc)
                    warnings.warn(
                        f"persisted history {self._key!r} is unreadable: {exc}",
                        CorruptStateWarning,
                        stacklevel=2,
                    )
                    snapshot = EMPTY_SNAPSHOT
            logger.info("loaded %d history records", len(snapshot))
            self._publish(snapshot)
            return snapshot

    async def _append(
        self,
        raw_payload: str,
        now: datetime,
        source: str,
        admit: Callable[[], bool] | None,
    ) -> ScanRecord | None:
        async with self._lock:
            if admit is not None and not admit():
                logger.debug("discarded scan whose session ended while queued")
                return None
            current = self._snapshot
            if now.tzinfo is None:
                now = now.replace(tzinfo=timezone.utc)
            if current.records and now < current.records[0].created_at:
                now = current.records[0].created_at

            result = self._classify(raw_payload)
            record = ScanRecord(
                id=self._new_id(),
                raw_payload=raw_payload,
                content_type=result.content_type,
                display_value=result.display_value,
                created_at=now,
                source=source,
            )
            updated = current.prepend(record)
            await self._persist(updated)
            self._publish(updated)
            logger.debug("appended %s record %s", record.content_type.name, record.id)
            return record

    async def _remove(self, record_id: str) -> bool:
        async with self._lock:
            current = self._snapshot
            if current.find(record_id) is None:
                return False
            updated = current.without(record_id)
            await self._persist(updated)
            self._publish(updated)
            return True

    async def _clear(self) -> None:
        async with self._lock:
            await self._persist(EMPTY_SNAPSHOT)
            self._publish(EMPTY_SNAPSHOT)

    async def append(
        self,
        raw_payload: str,
        now: datetime,
        *,
        source: str = ScanMode.CAMERA.value,
        admit: Callable[[], bool] | None = None,
    ) -> ScanRecord | None:
        """Classify, persist and prepend a new record.

        ``admit`` is re-checked once the mutation reaches the front of the
        queue; when it returns False nothing is written and None is returned.
        """

        # Shielded so a caller cancelled mid-write cannot leave disk and memory apart.
        return await asyncio.shield(self._append(raw_payload, now, source, admit))

    async def remove(self, record_id: str) -> bool:
        return await asyncio.shield(self._remove(record_id))

    async def clear(self) -> None:
        await asyncio.shield(self._clear())


__all__ = ["HistoryStore", "HistoryListener"]

"""Scanning session lifecycle: detections in, history records out."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import AsyncIterable, Callable

from ..errors import PersistenceError
from .clock import Clock, SystemClock
from .debounce import DEFAULT_DEBOUNCE_WINDOW, DetectionDebouncer
from .history import HistoryStore
from .records import ScanMode, ScanRecord

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[PersistenceError], None]
RecordHandler = Callable[[ScanRecord], None]


class ScanSession:
    """Cancellation handle for one running scanning session."""

    def __init__(self, mode: ScanMode, debouncer: DetectionDebouncer | None) -> None:
        self.mode = mode
        self._debouncer = debouncer
        self._active = True
        self._task: asyncio.Task | None = None
        self.accepted = 0
        self.suppressed = 0

    @property
    def active(self) -> bool:
        return self._active

    @property
    def debouncer(self) -> DetectionDebouncer | None:
        return self._debouncer

    def admit(self, payload: str, now: datetime) -> bool:
        if not self._active:
            return False
        if self._debouncer is None:
            return True
        if self._debouncer.accept(payload, now):
            return True
        self.suppressed += 1
        return False

    def stop(self) -> None:
        if not self._active:
            return
        self._active = False
        self._debouncer = None
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.info(
            "%s session stopped (accepted=%d suppressed=%d)",
            self.mode.value,
            self.accepted,
            self.suppressed,
        )

    __call__ = stop

    async def wait(self) -> None:
        """Wait for the session's source to end or for the session to be stopped."""

        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise


class Orchestrator:
    def __init__(
        self,
        store: HistoryStore,
        *,
        clock: Clock | None = None,
        debounce_window: timedelta = DEFAULT_DEBOUNCE_WINDOW,
        on_error: ErrorHandler | None = None,
        on_record: RecordHandler | None = None,
    ) -> None:
        self._store = store
        self._clock = clock or SystemClock()
        self._window = debounce_window
        self._on_error = on_error
        self._on_record = on_record
        self._session: ScanSession | None = None

    @property
    def session(self) -> ScanSession | None:
        return self._session

    def start(
        self,
        event_source: AsyncIterable[str],
        *,
        mode: ScanMode = ScanMode.CAMERA,
    ) -> ScanSession:
        self.stop()
        debouncer = DetectionDebouncer(self._window) if mode is ScanMode.CAMERA else None
        session = ScanSession(mode, debouncer)
        session._task = asyncio.get_running_loop().create_task(
            self._consume(session, event_source)
        )
        self._session = session
        logger.info("%s session started", mode.value)
        return session

    def stop(self) -> None:
        session, self._session = self._session, None
        if session is not None:
            session.stop()

    async def import_gallery(self, payload: str) -> ScanRecord:
        """Single-shot gallery read; there is no stream to de-duplicate."""

        record = await self._store.append(
            payload, self._clock.now(), source=ScanMode.GALLERY.value
        )
        assert record is not None
        return record

    async def _consume(self, session: ScanSession, event_source: AsyncIterable[str]) -> None:
        iterator = event_source.__aiter__()
        try:
            async for payload in iterator:
                now = self._clock.now()
                if not session.admit(payload, now):
                    if not session.active:
                        break
                    continue
                try:
                    record = await self._store.append(
                        payload,
                        now,
                        source=session.mode.value,
                        admit=lambda: session.active,
                    )
                except PersistenceError as exc:
                    logger.warning("failed to persist scan: %s", exc)
                    if self._on_error is not None:
                        self._on_error(exc)
                    continue
                if record is None:
                    break
                session.accepted += 1
                if self._on_record is not None and session.active:
                    self._on_record(record)
        finally:
            aclose = getattr(iterator, "aclose", None)
            if callable(aclose):
                await aclose()
            if session.active:
                logger.info("%s source ended", session.mode.value)


__all__ = ["Orchestrator", "ScanSession"]

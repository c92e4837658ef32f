"""Detection event sources feeding a scanning session."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, TextIO

_CLOSED = object()


async def single_shot(payload: str) -> AsyncIterator[str]:
    """Gallery imports decode exactly one payload."""

    yield payload


class QueueEventSource:
    """Async iterable fed by a decoder callback via ``push``."""

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, payload: str) -> None:
        if self._closed:
            raise RuntimeError("event source already closed")
        self._queue.put_nowait(payload)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> AsyncIterator[str]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[str]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item


async def iter_lines(stream: TextIO) -> AsyncIterator[str]:
    """Yield non-empty lines from a blocking text stream without blocking the loop."""

    while True:
        line = await asyncio.to_thread(stream.readline)
        if not line:
            return
        payload = line.rstrip("\r\n")
        if payload:
            yield payload


__all__ = ["single_shot", "QueueEventSource", "iter_lines"]

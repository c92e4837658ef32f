"""Key-value byte stores backing the scan history."""

from __future__ import annotations

import asyncio
import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class PersistenceAdapter(Protocol):
    async def read(self, key: str) -> str | None:
        ...

    async def write(self, key: str, value: str) -> None:
        ...


class FileSnapshotStore:
    """One file per key under ``directory``; writes replace the file atomically."""

    def __init__(self, directory: str) -> None:
        self._dir = Path(directory)
        self._dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        safe = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._dir / f"{safe}.snapshot"

    def _read_sync(self, key: str) -> str | None:
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _write_sync(self, key: str, value: str) -> None:
        path = self._path_for(key)
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", delete=False, dir=str(self._dir), suffix=".tmp"
        ) as tmp:
            tmp.write(value)
            tmp.flush()
            os.fsync(tmp.fileno())
        temp_path = Path(tmp.name)
        try:
            os.replace(temp_path, path)
        finally:
            if temp_path.exists():
                temp_path.unlink()
        logger.debug("wrote %s bytes to %s", len(value), path)

    async def read(self, key: str) -> str | None:
        return await asyncio.to_thread(self._read_sync, key)

    async def write(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write_sync, key, value)


class MemorySnapshotStore:
    """Process-local store, used for ephemeral sessions and tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    async def read(self, key: str) -> str | None:
        return self._values.get(key)

    async def write(self, key: str, value: str) -> None:
        self._values[key] = value

    def peek(self, key: str) -> str | None:
        return self._values.get(key)


__all__ = ["PersistenceAdapter", "FileSnapshotStore", "MemorySnapshotStore"]

"""Exception hierarchy shared across scanvault components."""

from __future__ import annotations


class ScanvaultError(RuntimeError):
    pass


class PersistenceError(ScanvaultError):
    """Durable read or write of the history snapshot failed."""

    def __init__(self, message: str, *, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


class SnapshotDecodeError(ScanvaultError, ValueError):
    pass


class CorruptStateWarning(UserWarning):
    """Persisted history was unreadable and has been replaced by an empty one."""


__all__ = [
    "ScanvaultError",
    "PersistenceError",
    "SnapshotDecodeError",
    "CorruptStateWarning",
]

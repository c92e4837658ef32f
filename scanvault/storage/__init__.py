"""Durable storage adapters."""

from .checkpoints import FileSnapshotStore, MemorySnapshotStore, PersistenceAdapter

__all__ = ["FileSnapshotStore", "MemorySnapshotStore", "PersistenceAdapter"]

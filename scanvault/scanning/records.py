"""Scan history value types."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterator


class ContentType(Enum):
    URL = "URL"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    WIFI_CREDENTIAL = "WIFI_CREDENTIAL"
    PLAIN_TEXT = "PLAIN_TEXT"


class ScanMode(Enum):
    CAMERA = "camera"
    GALLERY = "gallery"


def new_record_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class ScanRecord:
    id: str
    raw_payload: str
    content_type: ContentType
    display_value: str
    created_at: datetime
    source: str = ScanMode.CAMERA.value


@dataclass(frozen=True)
class HistorySnapshot:
    """Newest-first view of the scan history."""

    records: tuple[ScanRecord, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[ScanRecord]:
        return iter(self.records)

    def ids(self) -> list[str]:
        return [record.id for record in self.records]

    def find(self, record_id: str) -> ScanRecord | None:
        for record in self.records:
            if record.id == record_id:
                return record
        return None

    def prepend(self, record: ScanRecord) -> "HistorySnapshot":
        if self.find(record.id) is not None:
            raise ValueError(f"duplicate record id {record.id!r}")
        return HistorySnapshot(records=(record,) + self.records)

    def without(self, record_id: str) -> "HistorySnapshot":
        return HistorySnapshot(
            records=tuple(record for record in self.records if record.id != record_id)
        )


EMPTY_SNAPSHOT = HistorySnapshot()


__all__ = [
    "ContentType",
    "ScanMode",
    "ScanRecord",
    "HistorySnapshot",
    "EMPTY_SNAPSHOT",
    "new_record_id",
]

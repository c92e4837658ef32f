"""Pydantic API schemas for the local scan surface."""

from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from ..scanning.records import ScanRecord


class ScanRecordModel(BaseModel):
    id: str
    raw_payload: str
    content_type: str
    display_value: str
    created_at: datetime
    source: str

    @classmethod
    def from_record(cls, record: ScanRecord) -> "ScanRecordModel":
        return cls(
            id=record.id,
            raw_payload=record.raw_payload,
            content_type=record.content_type.name,
            display_value=record.display_value,
            created_at=record.created_at,
            source=record.source,
        )


class HistoryResponse(BaseModel):
    count: int
    records: List[ScanRecordModel]


class GalleryScanRequest(BaseModel):
    payload: str = Field(..., min_length=1)


class RemoveResponse(BaseModel):
    id: str
    removed: bool


class FeatureResponse(BaseModel):
    enhanced: bool
    connectivity: str

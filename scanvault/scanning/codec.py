"""Serialized form of the scan history."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from ..errors import SnapshotDecodeError
from .records import ContentType, HistorySnapshot, ScanMode, ScanRecord

FORMAT_VERSION = 1


def _format_ts(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _parse_ts(value: Any) -> datetime:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise SnapshotDecodeError(f"invalid createdAt {value!r}") from exc
    if not isinstance(value, str):
        raise SnapshotDecodeError(f"invalid createdAt {value!r}")
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise SnapshotDecodeError(f"invalid createdAt {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _require_str(row: dict[str, Any], name: str) -> str:
    value = row.get(name)
    if not isinstance(value, str):
        raise SnapshotDecodeError(f"record field {name!r} missing or not a string")
    return value


def record_to_dict(record: ScanRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "rawPayload": record.raw_payload,
        "contentType": record.content_type.name,
        "displayValue": record.display_value,
        "createdAt": _format_ts(record.created_at),
        "source": record.source,
    }


def record_from_dict(row: Any) -> ScanRecord:
    if not isinstance(row, dict):
        raise SnapshotDecodeError("record entry is not an object")
    content_type = _require_str(row, "contentType")
    try:
        kind = ContentType[content_type]
    except KeyError as exc:
        raise SnapshotDecodeError(f"unknown contentType {content_type!r}") from exc
    source = row.get("source") or ScanMode.CAMERA.value
    if not isinstance(source, str):
        raise SnapshotDecodeError("record field 'source' is not a string")
    return ScanRecord(
        id=_require_str(row, "id"),
        raw_payload=_require_str(row, "rawPayload"),
        content_type=kind,
        display_value=_require_str(row, "displayValue"),
        created_at=_parse_ts(row.get("createdAt")),
        source=source,
    )


def encode_snapshot(snapshot: HistorySnapshot) -> str:
    payload = {
        "version": FORMAT_VERSION,
        "records": [record_to_dict(record) for record in snapshot.records],
    }
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def decode_snapshot(raw: str) -> HistorySnapshot:
    try:
        parsed = json.loads(raw)
    except ValueError as exc:
        raise SnapshotDecodeError(f"history is not valid JSON: {exc}") from exc

    if isinstance(parsed, dict):
        version = parsed.get("version", FORMAT_VERSION)
        if version != FORMAT_VERSION:
            raise SnapshotDecodeError(f"unsupported history version {version!r}")
        rows = parsed.get("records")
    else:
        rows = parsed
    if not isinstance(rows, list):
        raise SnapshotDecodeError("history records are not a list")

    records = tuple(record_from_dict(row) for row in rows)
    seen: set[str] = set()
    for record in records:
        if record.id in seen:
            raise SnapshotDecodeError(f"duplicate record id {record.id!r}")
        seen.add(record.id)
    return HistorySnapshot(records=records)


__all__ = [
    "FORMAT_VERSION",
    "encode_snapshot",
    "decode_snapshot",
    "record_to_dict",
    "record_from_dict",
]

"""Run one scanning session over decoder output."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from typing import Sequence, TextIO

from ..config import settings as config_settings
from ..errors import PersistenceError
from ..runtime import ScanRuntime
from ..scanning import HistorySnapshot, ScanMode, iter_lines
from ..scanning.codec import record_to_dict
from ..storage import MemorySnapshotStore

logger = logging.getLogger(__name__)


async def _offline() -> bool:
    return False


def _emit_summary(
    snapshot: HistorySnapshot,
    *,
    mode: ScanMode,
    enhanced: bool,
    accepted: int,
    suppressed: int,
    limit: int | None,
) -> None:
    records = list(snapshot)[:limit] if limit else list(snapshot)
    payload = {
        "mode": mode.value,
        "enhanced": enhanced,
        "accepted": accepted,
        "suppressed": suppressed,
        "count": len(snapshot),
        "history": [record_to_dict(record) for record in records],
    }
    print(json.dumps(payload, indent=2, ensure_ascii=False))


async def _run(args: argparse.Namespace, stream: TextIO) -> int:
    cfg = config_settings.get_settings()
    if args.data_dir:
        cfg = dataclasses.replace(cfg, data_dir=args.data_dir)
    runtime = ScanRuntime(
        cfg,
        adapter=MemorySnapshotStore() if args.ephemeral else None,
        reachability=_offline if args.offline else None,
        monitor=False,
    )
    await runtime.start()
    try:
        if args.clear:
            await runtime.store.clear()

        if args.gallery is not None:
            try:
                record = await runtime.orchestrator.import_gallery(args.gallery)
            except PersistenceError as exc:
                logger.error("gallery import failed: %s", exc)
                return 1
            logger.info("imported %s as %s", record.id, record.content_type.name)
            _emit_summary(
                runtime.store.snapshot,
                mode=ScanMode.GALLERY,
                enhanced=runtime.gate.active,
                accepted=1,
                suppressed=0,
                limit=args.show,
            )
            return 0

        session = runtime.orchestrator.start(iter_lines(stream), mode=ScanMode.CAMERA)
        try:
            await session.wait()
        finally:
            session.stop()
        accepted, suppressed = session.accepted, session.suppressed
        _emit_summary(
            runtime.store.snapshot,
            mode=ScanMode.CAMERA,
            enhanced=runtime.gate.active,
            accepted=accepted,
            suppressed=suppressed,
            limit=args.show,
        )
        return 1 if runtime.last_error is not None and accepted == 0 else 0
    finally:
        await runtime.close()


def main(argv: Sequence[str] | None = None, stream: TextIO | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="scan-session",
        description="Record decoded payloads (one per line on stdin) into the scan history",
    )
    parser.add_argument("--gallery", help="Import a single payload decoded from a gallery image")
    parser.add_argument("--data-dir", help="Override the history directory")
    parser.add_argument(
        "--ephemeral",
        action="store_true",
        help="Keep history in memory only",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip the network reachability probe",
    )
    parser.add_argument("--clear", action="store_true", help="Clear history before scanning")
    parser.add_argument("--show", type=int, default=None, help="Records to print in the summary")

    args = parser.parse_args(argv)
    try:
        return asyncio.run(_run(args, stream or sys.stdin))
    except PersistenceError as exc:
        logger.error("scan session failed: %s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))

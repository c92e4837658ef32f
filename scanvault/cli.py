"""Command line entrypoint: service router plus direct history inspection."""

from __future__ import annotations

import argparse
import asyncio
import importlib
import json
import logging
import sys
from typing import Sequence

from . import __version__
from .config import constants, settings
from .errors import PersistenceError
from .scanning import HistoryStore
from .scanning.codec import record_to_dict
from .storage import FileSnapshotStore

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _load_service_main(name: str):
    module = importlib.import_module(f"scanvault.services.{name}")
    return getattr(module, "main")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="scanvault")
    parser.add_argument(
        "--version",
        action="version",
        version=f"scanvault {__version__}",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=_LOG_LEVELS,
        default="INFO",
        help="Root logging level",
    )
    subparsers = parser.add_subparsers(dest="command", required=False)

    service_parser = subparsers.add_parser("service", help="Run a service by name")
    service_parser.add_argument(
        "--name",
        choices=constants.SERVICE_NAMES,
        required=True,
    )
    service_parser.add_argument(
        "service_args",
        nargs=argparse.REMAINDER,
        help="Arguments forwarded to the service",
    )

    history_parser = subparsers.add_parser("history", help="Inspect or edit stored scans")
    history_parser.add_argument("--data-dir", help="Override the history directory")
    actions = history_parser.add_subparsers(dest="action", required=True)
    show_parser = actions.add_parser("show", help="Print stored scans, newest first")
    show_parser.add_argument("--limit", type=int, default=None)
    remove_parser = actions.add_parser("remove", help="Delete one scan by id")
    remove_parser.add_argument("record_id")
    actions.add_parser("clear", help="Delete every stored scan")
    return parser


async def _history(args: argparse.Namespace) -> int:
    cfg = settings.get_settings()
    store = HistoryStore(
        FileSnapshotStore(args.data_dir or cfg.data_dir), key=cfg.history_key
    )
    snapshot = await store.load_initial()

    if args.action == "remove":
        if not await store.remove(args.record_id):
            logger.warning("no scan with id %s", args.record_id)
            return 1
        print(json.dumps({"removed": args.record_id, "count": len(store.snapshot)}))
        return 0
    if args.action == "clear":
        await store.clear()
        print(json.dumps({"cleared": len(snapshot), "count": 0}))
        return 0

    records = list(snapshot)
    if args.limit is not None:
        records = records[: max(args.limit, 0)]
    print(
        json.dumps(
            [record_to_dict(record) for record in records], indent=2, ensure_ascii=False
        )
    )
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1
    _configure_logging(args.log_level)

    if args.command == "history":
        try:
            return asyncio.run(_history(args))
        except PersistenceError as exc:
            logger.error("history %s failed: %s", args.action, exc)
            return 1

    settings.get_settings()
    forwarded = args.service_args
    if forwarded and forwarded[0] == "--":
        forwarded = forwarded[1:]
    result = _load_service_main(args.name)(forwarded)
    return result if isinstance(result, int) else 0


if __name__ == "__main__":
    raise SystemExit(main())

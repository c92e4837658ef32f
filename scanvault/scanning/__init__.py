"""Scan pipeline: debounce, classify, record."""

from __future__ import annotations

from .classifier import Classification, WifiCredential, classify, parse_wifi
from .clock import Clock, SystemClock
from .debounce import DEFAULT_DEBOUNCE_WINDOW, DebounceWindow, DetectionDebouncer
from .history import HistoryStore
from .orchestrator import Orchestrator, ScanSession
from .records import EMPTY_SNAPSHOT, ContentType, HistorySnapshot, ScanMode, ScanRecord
from .sources import QueueEventSource, iter_lines, single_shot

__all__ = [
    "Classification",
    "WifiCredential",
    "classify",
    "parse_wifi",
    "Clock",
    "SystemClock",
    "DEFAULT_DEBOUNCE_WINDOW",
    "DebounceWindow",
    "DetectionDebouncer",
    "HistoryStore",
    "Orchestrator",
    "ScanSession",
    "EMPTY_SNAPSHOT",
    "ContentType",
    "HistorySnapshot",
    "ScanMode",
    "ScanRecord",
    "QueueEventSource",
    "iter_lines",
    "single_shot",
]

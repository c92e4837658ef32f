"""Offline-first scan event pipeline."""

from .config import constants, settings
from .errors import CorruptStateWarning, PersistenceError, ScanvaultError

__all__ = [
    "config",
    "connectivity",
    "scanning",
    "storage",
    "constants",
    "settings",
    "CorruptStateWarning",
    "PersistenceError",
    "ScanvaultError",
]

__version__ = "0.1.0"

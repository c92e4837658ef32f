"""Suppress repeated detections of the same code from a continuous stream."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_WINDOW = timedelta(milliseconds=500)


@dataclass
class DebounceWindow:
    last_accepted_payload: str | None = None
    last_accepted_at: datetime | None = None


class DetectionDebouncer:
    def __init__(self, window: timedelta = DEFAULT_DEBOUNCE_WINDOW) -> None:
        self.window = window
        self._state = DebounceWindow()

    @property
    def state(self) -> DebounceWindow:
        return DebounceWindow(
            last_accepted_payload=self._state.last_accepted_payload,
            last_accepted_at=self._state.last_accepted_at,
        )

    def accept(self, payload: str, now: datetime) -> bool:
        """Return True when ``payload`` should propagate as a new detection.

        A repeat of the last accepted payload is only let through once more
        than ``window`` has elapsed since it was accepted.
        """

        last_payload = self._state.last_accepted_payload
        last_at = self._state.last_accepted_at
        if last_payload is not None and last_at is not None and payload == last_payload:
            if now - last_at <= self.window:
                logger.debug("suppressed repeat detection within %s", self.window)
                return False
        self._state = DebounceWindow(last_accepted_payload=payload, last_accepted_at=now)
        return True

    def reset(self) -> None:
        self._state = DebounceWindow()


__all__ = ["DEFAULT_DEBOUNCE_WINDOW", "DebounceWindow", "DetectionDebouncer"]

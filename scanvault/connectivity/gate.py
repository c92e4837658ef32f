"""Boolean switch for optional, network-dependent features."""

from __future__ import annotations

import logging
from typing import Callable

from .probe import ConnectivityProbe, ConnectivityState

logger = logging.getLogger(__name__)

GateListener = Callable[[bool], None]


class FeatureGate:
    def __init__(self, probe: ConnectivityProbe) -> None:
        self._probe = probe
        self._active = False
        self._initial_resolved = False
        self._listeners: list[GateListener] = []
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def active(self) -> bool:
        return self._active

    @property
    def connectivity(self) -> ConnectivityState:
        return self._probe.state

    def subscribe(self, listener: GateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def start(self) -> bool:
        if self._unsubscribe is None:
            self._unsubscribe = self._probe.subscribe(self._recompute)
        await self._probe.check()
        self._initial_resolved = True
        self._recompute(self._probe.state)
        return self._active

    def _recompute(self, state: ConnectivityState) -> None:
        value = self._initial_resolved and state is ConnectivityState.ONLINE
        if value == self._active:
            return
        self._active = value
        logger.info("enhanced features %s", "enabled" if value else "disabled")
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                logger.exception("feature gate subscriber failed")

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None


__all__ = ["FeatureGate"]

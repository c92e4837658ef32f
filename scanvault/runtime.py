"""Wire the scan pipeline together from settings."""

from __future__ import annotations

import logging
from datetime import timedelta

from .config import Settings, get_settings
from .connectivity import ConnectivityProbe, FeatureGate, HttpReachability, Reachability
from .errors import PersistenceError
from .scanning import Clock, HistoryStore, Orchestrator
from .storage import FileSnapshotStore, PersistenceAdapter

logger = logging.getLogger(__name__)


class ScanRuntime:
    """Owns one history store, connectivity probe, feature gate and orchestrator."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        adapter: PersistenceAdapter | None = None,
        reachability: Reachability | None = None,
        clock: Clock | None = None,
        monitor: bool = True,
    ) -> None:
        cfg = settings or get_settings()
        self.settings = cfg
        self.adapter = adapter if adapter is not None else FileSnapshotStore(cfg.data_dir)
        self.store = HistoryStore(self.adapter, key=cfg.history_key)
        self.probe = ConnectivityProbe(
            reachability
            if reachability is not None
            else HttpReachability(cfg.probe_url, user_agent=cfg.user_agent),
            timeout=cfg.probe_timeout,
        )
        self.gate = FeatureGate(self.probe)
        self.last_error: PersistenceError | None = None
        self.orchestrator = Orchestrator(
            self.store,
            clock=clock,
            debounce_window=timedelta(milliseconds=cfg.debounce_window_ms),
            on_error=self._record_error,
        )
        self._monitor = monitor
        self._started = False

    def _record_error(self, exc: PersistenceError) -> None:
        self.last_error = exc

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        await self.store.load_initial()
        await self.gate.start()
        if self._monitor and self.settings.monitor_interval > 0:
            self.probe.start_monitoring(self.settings.monitor_interval)
        logger.info(
            "scan runtime ready (records=%d enhanced=%s)",
            len(self.store.snapshot),
            self.gate.active,
        )

    async def close(self) -> None:
        self.orchestrator.stop()
        self.gate.close()
        await self.probe.close()


__all__ = ["ScanRuntime"]

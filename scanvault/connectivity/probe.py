"""Bounded-latency network reachability checks."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Protocol

import httpx

from ..config import constants

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT = constants.DEFAULT_PROBE_TIMEOUT


class ConnectivityState(Enum):
    UNKNOWN = "unknown"
    CHECKING = "checking"
    ONLINE = "online"
    OFFLINE = "offline"


StateListener = Callable[[ConnectivityState], None]


class Reachability(Protocol):
    def __call__(self) -> Awaitable[bool]:
        ...


class HttpReachability:
    """Treat any HTTP response from ``url`` as proof the network is reachable."""

    def __init__(
        self,
        url: str = constants.DEFAULT_PROBE_URL,
        *,
        http_client: httpx.AsyncClient | None = None,
        user_agent: str = constants.DEFAULT_USER_AGENT,
    ) -> None:
        self.url = url
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            headers={"User-Agent": user_agent},
            follow_redirects=False,
        )

    async def __call__(self) -> bool:
        try:
            response = await self._http_client.head(self.url)
        except httpx.HTTPError as exc:
            logger.debug("reachability probe to %s failed: %s", self.url, exc)
            return False
        logger.debug("reachability probe to %s -> %s", self.url, response.status_code)
        return True

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http_client.aclose()


class ConnectivityProbe:
    def __init__(
        self,
        reachability: Reachability,
        *,
        timeout: float = DEFAULT_PROBE_TIMEOUT,
    ) -> None:
        self._reachability = reachability
        self.timeout = timeout
        self._state = ConnectivityState.UNKNOWN
        self._generation = 0
        self._listeners: list[StateListener] = []
        self._monitor_task: asyncio.Task | None = None
        self._closed = False

    @property
    def state(self) -> ConnectivityState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _set_state(self, state: ConnectivityState) -> None:
        if state is self._state:
            return
        logger.info("connectivity %s -> %s", self._state.value, state.value)
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("connectivity subscriber failed")

    async def _observe(self) -> ConnectivityState:
        try:
            reachable = await asyncio.wait_for(self._reachability(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.info("connectivity check timed out after %.1fs", self.timeout)
            return ConnectivityState.OFFLINE
        except Exception as exc:
            logger.warning("connectivity check failed: %s", exc)
            return ConnectivityState.OFFLINE
        return ConnectivityState.ONLINE if reachable else ConnectivityState.OFFLINE

    async def check(self) -> ConnectivityState:
        """Resolve to ONLINE or OFFLINE within ``timeout`` seconds.

        Only the most recently started check may update ``state``; a check
        overtaken by a newer one (or by ``notify``) returns what it observed
        without publishing it.
        """

        self._generation += 1
        generation = self._generation
        previous = self._state
        if previous is ConnectivityState.UNKNOWN:
            self._set_state(ConnectivityState.CHECKING)

        try:
            result = await self._observe()
        except asyncio.CancelledError:
            if generation == self._generation and self._state is ConnectivityState.CHECKING:
                self._set_state(previous)
            raise
        if generation != self._generation:
            logger.debug("discarding superseded connectivity result %s", result.value)
            return result
        self._set_state(result)
        return result

    def notify(self, online: bool) -> None:
        """Feed a platform network-change notification."""

        self._generation += 1
        self._set_state(ConnectivityState.ONLINE if online else ConnectivityState.OFFLINE)

    def start_monitoring(self, interval: float = constants.DEFAULT_MONITOR_INTERVAL) -> None:
        if self._closed:
            raise RuntimeError("connectivity probe is closed")
        if self._monitor_task is not None and not self._monitor_task.done():
            return
        self._monitor_task = asyncio.get_running_loop().create_task(self._monitor(interval))

    async def _monitor(self, interval: float) -> None:
        logger.debug("connectivity monitor polling every %ss", interval)
        while True:
            await asyncio.sleep(interval)
            await self.check()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        task, self._monitor_task = self._monitor_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._listeners.clear()
        aclose = getattr(self._reachability, "aclose", None)
        if callable(aclose):
            await aclose()


__all__ = [
    "DEFAULT_PROBE_TIMEOUT",
    "ConnectivityState",
    "ConnectivityProbe",
    "HttpReachability",
    "Reachability",
]

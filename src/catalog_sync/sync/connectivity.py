"""Connectivity signal and an optional background probe."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

ConnectivityListener = Callable[[bool], None]


class ConnectivitySignal:
    """Boolean online/offline state with change notification.

    Listeners are called synchronously on every transition, never for a
    repeated value.
    """

    def __init__(self, online: bool = True) -> None:
        self._online = online
        self._listeners: list[ConnectivityListener] = []

    @property
    def is_online(self) -> bool:
        return self._online

    def set_online(self, online: bool) -> None:
        if online == self._online:
            return
        self._online = online
        logger.info("Connectivity changed: %s", "online" if online else "offline")
        for listener in list(self._listeners):
            try:
                listener(online)
            except Exception as e:
                logger.warning("Connectivity listener error: %s", e)

    def subscribe(self, listener: ConnectivityListener) -> Callable[[], None]:
        """Register a listener and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


class ConnectivityProbe:
    """Polls a health check and feeds the result into a ConnectivitySignal."""

    def __init__(
        self,
        signal: ConnectivitySignal,
        check: Callable[[], Awaitable[bool]],
        interval_seconds: float = 15.0,
    ) -> None:
        self._signal = signal
        self._check = check
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def probe_once(self) -> bool:
        try:
            online = bool(await self._check())
        except Exception as e:
            logger.debug("Connectivity check failed: %s", e)
            online = False
        self._signal.set_online(online)
        return online

    def start(self) -> asyncio.Task[None]:
        if self._task is not None and not self._task.done():
            return self._task
        self._task = asyncio.create_task(self._loop())
        self._task.add_done_callback(_log_probe_exception)
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _loop(self) -> None:
        while True:
            await self.probe_once()
            await asyncio.sleep(self._interval)


def _log_probe_exception(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Connectivity probe raised unhandled exception: %s", exc)

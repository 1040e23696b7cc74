"""Registry of data-synced observers."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from catalog_sync.sync.protocol import DataSyncedEvent

logger = logging.getLogger(__name__)

DataSyncedHandler = Callable[[DataSyncedEvent], Any]


class SyncObservers:
    """Views register here to re-read their lists after a merge refresh."""

    def __init__(self) -> None:
        self._handlers: list[DataSyncedHandler] = []

    def __len__(self) -> int:
        return len(self._handlers)

    def on(self, handler: DataSyncedHandler) -> None:
        """Register a handler. Sync and async callables are both accepted."""
        if handler not in self._handlers:
            self._handlers.append(handler)

    def off(self, handler: DataSyncedHandler | None = None) -> None:
        """Unregister a handler (all if None)."""
        if handler is None:
            self._handlers.clear()
        else:
            self._handlers = [h for h in self._handlers if h != handler]

    async def emit(self, event: DataSyncedEvent) -> None:
        for handler in list(self._handlers):
            try:
                result = handler(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.warning("Data-synced handler error: %s", e)

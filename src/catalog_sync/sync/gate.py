"""Readiness gate: categories settle before products sync."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from catalog_sync.core.identity import is_temporary_id

if TYPE_CHECKING:
    from catalog_sync.storage.base import LocalStore
    from catalog_sync.sync.identity_resolver import IdentityResolver

logger = logging.getLogger(__name__)


async def ready_for_primary_sync(store: LocalStore) -> bool:
    """True once no category is pending and no product points at a temporary one."""
    for category in await store.get_categories():
        if category.pending_sync or category.is_temporary:
            return False
    for product in await store.get_products():
        if is_temporary_id(product.category_id):
            return False
    return True


@dataclass(frozen=True)
class GateOutcome:
    ready: bool
    attempts: int
    resolved: int = 0
    failed: int = 0


class CategoryGate:
    """Bounded retry loop driving the resolver until the store is ready."""

    def __init__(
        self,
        store: LocalStore,
        resolver: IdentityResolver,
        *,
        attempts: int = 5,
        interval_seconds: float = 0.8,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._attempts = max(1, attempts)
        self._interval = interval_seconds
        self._sleep = sleep

    async def wait_until_ready(self) -> GateOutcome:
        resolved = 0
        failed = 0
        for attempt in range(1, self._attempts + 1):
            result = await self._resolver.resolve_dependents()
            resolved += result.resolved
            failed = result.failed
            if await ready_for_primary_sync(self._store):
                return GateOutcome(True, attempt, resolved, failed)
            if attempt < self._attempts:
                logger.debug(
                    "Categories not settled (attempt %d/%d), retrying in %.1fs",
                    attempt,
                    self._attempts,
                    self._interval,
                )
                await self._sleep(self._interval)

        logger.info("Categories still pending after %d attempts; deferring", self._attempts)
        return GateOutcome(False, self._attempts, resolved, failed)

"""Reconciler: pushes local mutations and merges the authoritative view back."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from catalog_sync.core.category import find_by_name
from catalog_sync.core.identity import is_temporary_id
from catalog_sync.core.ordering import sort_categories_for_display, sort_products_for_display
from catalog_sync.remote.base import RemoteServiceError
from catalog_sync.sync.gate import CategoryGate
from catalog_sync.sync.identity_resolver import IdentityResolver
from catalog_sync.sync.matching import find_by_id, match_created_product
from catalog_sync.sync.observers import SyncObservers
from catalog_sync.sync.protocol import DataSyncedEvent, SyncReport, SyncStatus, SyncTrigger

if TYPE_CHECKING:
    from catalog_sync.core.category import Category
    from catalog_sync.core.product import Product
    from catalog_sync.remote.base import RemoteService
    from catalog_sync.storage.base import LocalStore

logger = logging.getLogger(__name__)


@dataclass
class DeletionDrain:
    acknowledged: int = 0
    dropped: int = 0
    failed: int = 0


@dataclass
class ProductDrain:
    created: int = 0
    updated: int = 0
    failed: int = 0
    still_pending: set[str] = field(default_factory=set)


class Reconciler:
    """Runs one sync pass against the remote services.

    Phases, in this order:
    1. Deletion drain: queued category deletions, then queued product deletions
    2. Category drain: the gate drives the identity resolver until no product
       points at a temporary category, or gives up and the run is deferred
    3. Product drain: create or update every pending product
    4. Merge refresh: fetch the authoritative lists, overlay what is still
       pending locally, persist, notify observers

    A failure on one record never aborts the drain; the record stays queued
    for the next run.
    """

    def __init__(
        self,
        store: LocalStore,
        products_api: RemoteService[Product],
        categories_api: RemoteService[Category],
        *,
        gate: CategoryGate | None = None,
        observers: SyncObservers | None = None,
    ) -> None:
        self._store = store
        self._products_api = products_api
        self._categories_api = categories_api
        self._gate = gate or CategoryGate(store, IdentityResolver(store, categories_api))
        self._observers = observers or SyncObservers()

    @property
    def observers(self) -> SyncObservers:
        return self._observers

    async def run(self, trigger: SyncTrigger | None = None) -> SyncReport:
        started = time.monotonic()

        deletions = await self.drain_deletions()

        outcome = await self._gate.wait_until_ready()
        if not outcome.ready:
            return SyncReport(
                status=SyncStatus.DEFERRED,
                trigger=trigger,
                deletions_acknowledged=deletions.acknowledged,
                deletions_failed=deletions.failed,
                categories_resolved=outcome.resolved,
                categories_failed=outcome.failed,
                products_pending=await self._count_pending(),
                message=f"categories not settled after {outcome.attempts} attempts",
                duration_seconds=time.monotonic() - started,
            )

        drain = await self.drain_products()
        merged = await self.refresh()

        if merged is None:
            pending = await self._count_pending()
            total = len(await self._store.get_products())
        else:
            pending = sum(1 for p in merged if p.pending_sync)
            total = len(merged)

        partial = deletions.failed or outcome.failed or drain.failed or merged is None
        report = SyncReport(
            status=SyncStatus.PARTIAL if partial else SyncStatus.SUCCESS,
            trigger=trigger,
            deletions_acknowledged=deletions.acknowledged,
            deletions_failed=deletions.failed,
            categories_resolved=outcome.resolved,
            categories_failed=outcome.failed,
            products_created=drain.created,
            products_updated=drain.updated,
            products_pending=pending,
            products_total=total,
            message="refresh failed" if merged is None else "",
            duration_seconds=time.monotonic() - started,
        )
        logger.info("Sync run finished: %s", report.summary())
        return report

    # ========== Phase 1: deletions ==========

    async def drain_deletions(self) -> DeletionDrain:
        result = DeletionDrain()
        for category_id in await self._store.get_category_deletions():
            if await self._push_deletion(self._categories_api, "category", category_id, result):
                await self._store.remove_category_deletion(category_id)
        for product_id in await self._store.get_product_deletions():
            if await self._push_deletion(self._products_api, "product", product_id, result):
                await self._store.remove_product_deletion(product_id)
        return result

    async def _push_deletion(
        self,
        api: RemoteService[Product] | RemoteService[Category],
        kind: str,
        record_id: str,
        result: DeletionDrain,
    ) -> bool:
        if is_temporary_id(record_id):
            # Never reached the server.
            result.dropped += 1
            return True
        try:
            await api.delete(record_id)
        except RemoteServiceError as e:
            logger.warning("Remote delete of %s %s failed: %s", kind, record_id, e)
            result.failed += 1
            return False
        result.acknowledged += 1
        return True

    # ========== Phase 3: products ==========

    async def drain_products(self) -> ProductDrain:
        result = ProductDrain()
        queued = set(await self._store.get_product_deletions())
        local = await self._store.get_products()
        pending = [p for p in local if p.pending_sync and p.id not in queued]
        if not pending:
            return result

        known = {p.id for p in local if not p.is_temporary}
        remote = await self._list_products()
        if remote is not None:
            known.update(p.id for p in remote)

        for candidate in pending:
            current = await self._store.get_product(candidate.id)
            if current is None or not current.pending_sync:
                continue
            if current.id in set(await self._store.get_product_deletions()):
                continue
            if current.references_temporary_category:
                logger.warning(
                    "Product %s still references temporary category %s; leaving queued",
                    current.id,
                    current.category_id,
                )
                result.failed += 1
                result.still_pending.add(current.id)
                continue

            if current.is_temporary:
                ok = await self._push_create(current, known, result)
            else:
                ok = await self._push_update(current, result)
            if not ok:
                result.failed += 1
                result.still_pending.add(current.id)
        return result

    async def _push_create(self, product: Product, known: set[str], result: ProductDrain) -> bool:
        try:
            collection = await self._products_api.create_or_update(product)
        except RemoteServiceError as e:
            logger.warning("Remote create of product %r failed: %s", product.name, e)
            return False

        match = match_created_product(collection, product, known)
        if match is None:
            refetched = await self._list_products()
            if refetched is not None:
                match = match_created_product(refetched, product, known)
        if match is None:
            logger.warning(
                "Could not identify created product %r (%s); keeping it pending",
                product.name,
                product.id,
            )
            return False

        known.add(match.id)
        latest = await self._store.get_product(product.id)
        if latest is None:
            # Deleted while the create was in flight: remove the server copy next run.
            logger.info("Product %s deleted during create; queueing %s", product.id, match.id)
            await self._store.add_product_deletion(match.id)
            result.created += 1
            return True
        if latest != product:
            # Edited while the create was in flight: keep the edit, queue an update.
            permanent = replace(latest, id=match.id, pending_sync=True)
        else:
            permanent = match.carry_category_from(product).as_synced()
        await self._store.replace_product(product.id, permanent)
        result.created += 1
        logger.debug("Product %s created as %s", product.id, permanent.id)
        return True

    async def _push_update(self, product: Product, result: ProductDrain) -> bool:
        try:
            collection = await self._products_api.create_or_update(product)
        except RemoteServiceError as e:
            logger.warning("Remote update of product %s failed: %s", product.id, e)
            return False

        updated = find_by_id(collection, product.id)
        if updated is None:
            refetched = await self._list_products()
            updated = find_by_id(refetched or [], product.id)
        if updated is None:
            logger.warning("Product %s missing from server after update", product.id)
            return False

        # The UI may have written again while the call was in flight.
        latest = await self._store.get_product(product.id)
        if latest is None:
            await self._store.add_product_deletion(product.id)
            result.updated += 1
            return True
        if latest != product:
            result.updated += 1
            return True

        await self._store.put_product(updated.carry_category_from(product).as_synced())
        result.updated += 1
        return True

    async def _list_products(self) -> list[Product] | None:
        try:
            return await self._products_api.list_all()
        except RemoteServiceError as e:
            logger.warning("Could not list remote products: %s", e)
            return None

    # ========== Phase 4: merge refresh ==========

    async def refresh(self) -> list[Product] | None:
        """Merge the authoritative lists into the store and notify observers.

        Returns the merged product list, or None if the product list could
        not be fetched (the store is then left untouched).
        """
        categories = await self._refresh_categories()

        remote = await self._list_products()
        if remote is None:
            return None

        queued = set(await self._store.get_product_deletions())
        local = await self._store.get_products()
        local_by_id = {p.id: p for p in local}
        server_ids = {p.id for p in remote}
        overlay_ids: set[str] = set()

        merged: list[Product] = []
        for product in local:
            if product.id in queued:
                continue
            if product.pending_sync or product.is_temporary:
                merged.append(product)
                overlay_ids.add(product.id)
            elif product.id not in server_ids:
                logger.debug("Dropping product %s removed on server", product.id)

        for product in remote:
            if product.id in queued or product.id in overlay_ids:
                continue
            local_copy = local_by_id.get(product.id)
            merged.append(product.carry_category_from(local_copy) if local_copy else product)

        merged = sort_products_for_display(merged)
        await self._store.replace_products(merged)

        if categories is None:
            categories = sort_categories_for_display(await self._store.get_categories())
        await self._observers.emit(DataSyncedEvent(products=merged, categories=categories))
        return merged

    async def _refresh_categories(self) -> list[Category] | None:
        try:
            remote = await self._categories_api.list_all()
        except RemoteServiceError as e:
            logger.warning("Could not list remote categories: %s", e)
            return None

        queued = set(await self._store.get_category_deletions())
        server_names = {c.name_key for c in remote}
        local_pending: list[Category] = []
        for category in await self._store.get_categories():
            if not (category.pending_sync or category.is_temporary):
                continue
            if category.name_key not in server_names:
                local_pending.append(category)
            elif category.is_temporary:
                adopted = find_by_name(remote, category.name)
                if adopted is not None:
                    count = await self._store.resolve_category(category.id, adopted)
                    logger.debug(
                        "Category %s adopted as %s during refresh (%d products rewritten)",
                        category.id,
                        adopted.id,
                        count,
                    )
        skip = queued | {c.id for c in local_pending}
        merged = sort_categories_for_display(
            [*local_pending, *(c for c in remote if c.id not in skip)]
        )
        await self._store.replace_categories(merged)
        return merged

    async def _count_pending(self) -> int:
        return sum(1 for p in await self._store.get_products() if p.pending_sync)

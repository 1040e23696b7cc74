"""Offline-first create/read/update/delete for products and categories.

Every mutation is tried against the server when online. When offline, or
when the server call fails, the mutation lands in the local store flagged
``pending_sync`` (deletions go to a queue) for the reconciler to push later.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from catalog_sync.core.category import Category, find_by_name, normalize_name
from catalog_sync.core.identity import is_temporary_id
from catalog_sync.core.ordering import sort_categories_for_display, sort_products_for_display
from catalog_sync.core.product import Product
from catalog_sync.remote.base import RemoteServiceError
from catalog_sync.sync.matching import find_by_id, match_created_product

if TYPE_CHECKING:
    from catalog_sync.remote.base import RemoteService
    from catalog_sync.storage.base import LocalStore
    from catalog_sync.sync.connectivity import ConnectivitySignal

logger = logging.getLogger(__name__)

_EDITABLE_PRODUCT_FIELDS = frozenset(
    {"name", "description", "price", "category_id", "category_name"}
)


class DuplicateCategoryError(ValueError):
    """Another category already uses this name (case-insensitive)."""


class RecordNotFoundError(LookupError):
    """The record does not exist in the local store."""


class OfflineCatalog:
    """Mutation API used by the UI layer."""

    def __init__(
        self,
        store: LocalStore,
        products_api: RemoteService[Product],
        categories_api: RemoteService[Category],
        connectivity: ConnectivitySignal,
    ) -> None:
        self._store = store
        self._products_api = products_api
        self._categories_api = categories_api
        self._connectivity = connectivity

    @property
    def is_online(self) -> bool:
        return self._connectivity.is_online

    # ========== Products ==========

    async def fetch_products(self) -> list[Product]:
        """Products in display order, refreshed from the server when possible."""
        if self.is_online:
            try:
                remote = await self._products_api.list_all()
            except RemoteServiceError as e:
                logger.warning("Falling back to local products: %s", e)
            else:
                return await self._merge_products(remote)
        return sort_products_for_display(await self._store.get_products())

    async def _merge_products(self, remote: list[Product]) -> list[Product]:
        queued = set(await self._store.get_product_deletions())
        local = await self._store.get_products()
        local_by_id = {p.id: p for p in local}
        pending = [p for p in local if p.pending_sync]
        pending_ids = {p.id for p in pending}

        server = [
            p.carry_category_from(local_by_id[p.id]) if p.id in local_by_id else p
            for p in remote
            if p.id not in pending_ids and p.id not in queued
        ]
        merged = sort_products_for_display([*pending, *server])
        await self._store.replace_products(merged)
        return merged

    async def create_product(
        self,
        name: str,
        description: str = "",
        price: float = 0.0,
        category_id: str | None = None,
        category_name: str | None = None,
    ) -> Product:
        if category_name and not category_id:
            category = find_by_name(await self._store.get_categories(), category_name)
            if category is not None:
                category_id = category.id

        draft = Product.create_offline(
            name=name,
            description=description,
            price=price,
            category_id=category_id,
            category_name=category_name,
        )

        if self.is_online and not draft.references_temporary_category:
            known = {p.id for p in await self._store.get_products() if not p.is_temporary}
            try:
                collection = await self._products_api.create_or_update(draft)
            except RemoteServiceError as e:
                logger.warning("Remote create of %r failed, saving offline: %s", name, e)
            else:
                created = match_created_product(collection, draft, known)
                if created is not None:
                    saved = created.carry_category_from(draft).as_synced()
                    await self._store.put_product(saved)
                    return saved
                logger.warning("Could not identify created product %r; saving offline", name)

        await self._store.put_product(draft)
        return draft

    async def update_product(self, product_id: str, **changes: Any) -> Product:
        """Apply field changes to a product.

        Raises:
            RecordNotFoundError: If the product is not in the local store.
            ValueError: If a change names a field that cannot be edited.
        """
        unknown = set(changes) - _EDITABLE_PRODUCT_FIELDS
        if unknown:
            raise ValueError(f"Cannot edit product fields: {sorted(unknown)}")

        current = await self._store.get_product(product_id)
        if current is None:
            raise RecordNotFoundError(f"Product {product_id} not found")

        if "price" in changes:
            changes["price"] = float(changes["price"] or 0.0)
        updated = replace(current, **changes)

        sendable = not updated.is_temporary and not updated.references_temporary_category
        if self.is_online and sendable:
            try:
                collection = await self._products_api.create_or_update(updated)
            except RemoteServiceError as e:
                logger.warning("Remote update of %s failed, saving offline: %s", product_id, e)
            else:
                server = find_by_id(collection, updated.id)
                if server is not None:
                    saved = server.carry_category_from(updated).as_synced()
                    await self._store.put_product(saved)
                    return saved

        pending = updated.as_pending()
        await self._store.put_product(pending)
        return pending

    async def delete_product(self, product_id: str) -> None:
        product_id = str(product_id)
        if is_temporary_id(product_id):
            await self._store.delete_product(product_id)
            return

        if self.is_online:
            try:
                await self._products_api.delete(product_id)
            except RemoteServiceError as e:
                logger.warning("Remote delete of %s failed, queueing: %s", product_id, e)
            else:
                await self._store.delete_product(product_id)
                return

        await self._store.delete_product(product_id)
        await self._store.add_product_deletion(product_id)

    # ========== Categories ==========

    async def fetch_categories(self) -> list[Category]:
        """Categories newest first, refreshed from the server when possible."""
        if self.is_online:
            try:
                remote = await self._categories_api.list_all()
            except RemoteServiceError as e:
                logger.warning("Falling back to local categories: %s", e)
            else:
                return await self._merge_categories(remote)
        return sort_categories_for_display(await self._store.get_categories())

    async def _merge_categories(self, remote: list[Category]) -> list[Category]:
        queued = set(await self._store.get_category_deletions())
        pending: list[Category] = []
        for category in await self._store.get_categories():
            if not (category.pending_sync or category.is_temporary):
                continue
            match = find_by_name(remote, category.name) if category.is_temporary else None
            if match is not None:
                # Already on the server under that name: adopt its identity now.
                await self._store.resolve_category(category.id, match)
                continue
            pending.append(category)

        pending_ids = {c.id for c in pending}
        merged = sort_categories_for_display(
            [*pending, *(c for c in remote if c.id not in queued and c.id not in pending_ids)]
        )
        await self._store.replace_categories(merged)
        return merged

    async def save_category(self, name: str, category_id: str | None = None) -> Category:
        """Create a category, or rename the one with ``category_id``.

        Raises:
            ValueError: If the name is empty.
            DuplicateCategoryError: If another category already has the name.
        """
        name = str(name or "").strip()
        if not name:
            raise ValueError("Category name must not be empty")

        local = await self._store.get_categories()
        key = normalize_name(name)
        if any(c.name_key == key and c.id != category_id for c in local):
            raise DuplicateCategoryError(f"A category named {name!r} already exists")

        existing = next((c for c in local if c.id == category_id), None) if category_id else None
        if existing is not None:
            draft = replace(existing, name=name, pending_sync=True)
        else:
            draft = Category.create_offline(name, category_id=category_id)

        if self.is_online:
            try:
                collection = await self._categories_api.create_or_update(draft)
            except RemoteServiceError as e:
                logger.warning("Remote save of category %r failed, saving offline: %s", name, e)
            else:
                if draft.is_temporary:
                    saved = find_by_name(collection, name)
                else:
                    saved = next((c for c in collection if c.id == draft.id), None)
                if saved is not None:
                    await self._store.resolve_category(draft.id, saved)
                    return saved.as_synced()

        await self._store.put_category(draft)
        return draft

    async def delete_category(self, category_id: str) -> None:
        category_id = str(category_id)
        if is_temporary_id(category_id):
            await self._store.delete_category(category_id)
            await self._detach_products(category_id)
            return

        if self.is_online:
            try:
                await self._categories_api.delete(category_id)
            except RemoteServiceError as e:
                logger.warning("Remote delete of category %s failed, queueing: %s", category_id, e)
            else:
                await self._store.delete_category(category_id)
                return

        await self._store.delete_category(category_id)
        await self._store.add_category_deletion(category_id)

    async def _detach_products(self, category_id: str) -> None:
        for product in await self._store.get_products():
            if product.category_id == category_id:
                await self._store.put_product(product.with_category(None, None).as_pending())

"""Temporary-to-permanent identity resolution for categories."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from catalog_sync.core.category import Category, find_by_name
from catalog_sync.core.identity import is_temporary_id
from catalog_sync.remote.base import RemoteServiceError

if TYPE_CHECKING:
    from catalog_sync.remote.base import RemoteService
    from catalog_sync.storage.base import LocalStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of one resolution pass."""

    resolved: int = 0
    failed: int = 0
    references_rewritten: int = 0
    references_detached: int = 0


def needs_resolution(category: Category) -> bool:
    return category.pending_sync or category.is_temporary


class IdentityResolver:
    """Pushes pending categories to the server and adopts permanent identities.

    For each pending category the remote collection is searched first by
    case-insensitive name; a match is adopted without issuing a create, so a
    retry after a lost response never duplicates the category. Otherwise the
    category is created (or renamed, for a permanent identity) and the
    affected record is picked out of the returned collection.

    A failure leaves the category pending for the next pass.
    """

    def __init__(
        self,
        store: LocalStore,
        categories_api: RemoteService[Category],
    ) -> None:
        self._store = store
        self._api = categories_api
        self._remote: list[Category] | None = None

    async def resolve_dependents(self) -> ResolutionResult:
        """Run one pass over every pending category."""
        detached = await self._detach_orphaned_references()

        queued = set(await self._store.get_category_deletions())
        pending = [
            c
            for c in await self._store.get_categories()
            if needs_resolution(c) and c.id not in queued
        ]
        if not pending:
            return ResolutionResult(references_detached=detached)

        self._remote = await self._fetch_remote()

        resolved = 0
        failed = 0
        rewritten = 0
        for candidate in pending:
            # The UI may have renamed or deleted it since the list was read.
            current = await self._store.get_category(candidate.id)
            if current is None or not needs_resolution(current):
                continue

            permanent = await self._resolve_one(current)
            if permanent is None:
                failed += 1
                continue

            count = await self._store.resolve_category(current.id, permanent)
            resolved += 1
            rewritten += count
            if current.id != permanent.id:
                logger.info(
                    "Category %r resolved %s -> %s (%d products rewritten)",
                    current.name,
                    current.id,
                    permanent.id,
                    count,
                )

        return ResolutionResult(
            resolved=resolved,
            failed=failed,
            references_rewritten=rewritten,
            references_detached=detached,
        )

    async def _fetch_remote(self) -> list[Category] | None:
        try:
            return await self._api.list_all()
        except RemoteServiceError as e:
            logger.warning("Could not list remote categories: %s", e)
            return None

    async def _resolve_one(self, category: Category) -> Category | None:
        if category.is_temporary:
            return await self._create(category)
        return await self._update(category)

    async def _create(self, category: Category) -> Category | None:
        existing = find_by_name(self._remote or [], category.name)
        if existing is not None:
            logger.debug("Adopting remote category %s for %r", existing.id, category.name)
            return existing

        try:
            collection = await self._api.create_or_update(category)
        except RemoteServiceError as e:
            # A duplicate-name rejection means the record is already there.
            logger.warning("Remote create of category %r failed: %s", category.name, e)
            collection = await self._fetch_remote()
            if collection is None:
                return None

        self._remote = collection
        created = find_by_name(collection, category.name)
        if created is None:
            logger.warning("Category %r not found in server response", category.name)
        return created

    async def _update(self, category: Category) -> Category | None:
        current = next((c for c in self._remote or [] if c.id == category.id), None)
        if current is not None and current.name_key == category.name_key:
            return current

        try:
            collection = await self._api.create_or_update(category)
        except RemoteServiceError as e:
            logger.warning("Remote update of category %s failed: %s", category.id, e)
            return None

        self._remote = collection
        updated = next((c for c in collection if c.id == category.id), None)
        if updated is None:
            logger.warning("Category %s missing from server response", category.id)
        return updated

    async def _detach_orphaned_references(self) -> int:
        """Clear product references to temporary categories that no longer exist."""
        known = {c.id for c in await self._store.get_categories()}
        detached = 0
        for product in await self._store.get_products():
            if not is_temporary_id(product.category_id) or product.category_id in known:
                continue
            logger.warning(
                "Product %s references missing category %s; detaching",
                product.id,
                product.category_id,
            )
            await self._store.put_product(
                product.with_category(None, product.category_name).as_pending()
            )
            detached += 1
        return detached

"""Abstract base class for the client-side local store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from catalog_sync.core.category import Category
    from catalog_sync.core.product import Product


class LocalStore(ABC):
    """
    Durable keyed record store shared by the UI layer and the reconciler.

    Four logical collections: products, queued product deletions, categories
    and queued category deletions. Every record carries its own
    ``pending_sync`` flag. Operations that touch more than one collection
    (``resolve_category``, ``replace_product``) are atomic.
    """

    async def initialize(self) -> None:  # noqa: B027
        """Open underlying resources. No-op by default."""

    async def close(self) -> None:  # noqa: B027
        """Release underlying resources. No-op by default."""

    async def __aenter__(self) -> LocalStore:
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ========== Products ==========

    @abstractmethod
    async def get_products(self) -> list[Product]:
        """All products in insertion order."""
        ...

    @abstractmethod
    async def get_product(self, product_id: str) -> Product | None:
        ...

    @abstractmethod
    async def put_product(self, product: Product) -> None:
        """Insert or overwrite a product keyed by its id."""
        ...

    async def put_products(self, products: list[Product]) -> None:
        for product in products:
            await self.put_product(product)

    @abstractmethod
    async def delete_product(self, product_id: str) -> None:
        ...

    @abstractmethod
    async def clear_products(self) -> None:
        ...

    @abstractmethod
    async def replace_products(self, products: list[Product]) -> None:
        """Atomically swap the whole product collection."""
        ...

    @abstractmethod
    async def replace_product(self, old_id: str, product: Product) -> None:
        """Atomically drop ``old_id`` and store ``product`` under its own id.

        Used when a temporary identity becomes permanent.
        """
        ...

    # ========== Categories ==========

    @abstractmethod
    async def get_categories(self) -> list[Category]:
        ...

    @abstractmethod
    async def get_category(self, category_id: str) -> Category | None:
        ...

    @abstractmethod
    async def put_category(self, category: Category) -> None:
        ...

    @abstractmethod
    async def delete_category(self, category_id: str) -> None:
        ...

    @abstractmethod
    async def replace_categories(self, categories: list[Category]) -> None:
        """Atomically swap the whole category collection."""
        ...

    @abstractmethod
    async def resolve_category(self, old_id: str, category: Category) -> int:
        """Move a category to its permanent identity and rewrite references.

        In one transaction: remove the record stored under ``old_id``, store
        ``category`` (its pending flag cleared) and point every product that
        referenced ``old_id`` at ``category.id``. A product's own
        ``category_name`` is kept; an empty one is filled from the category.

        Returns:
            Number of products whose reference was rewritten.
        """
        ...

    # ========== Deletion queues ==========

    @abstractmethod
    async def get_product_deletions(self) -> list[str]:
        """Queued product deletions, oldest first."""
        ...

    @abstractmethod
    async def add_product_deletion(self, product_id: str) -> None:
        ...

    @abstractmethod
    async def remove_product_deletion(self, product_id: str) -> None:
        ...

    @abstractmethod
    async def get_category_deletions(self) -> list[str]:
        ...

    @abstractmethod
    async def add_category_deletion(self, category_id: str) -> None:
        ...

    @abstractmethod
    async def remove_category_deletion(self, category_id: str) -> None:
        ...

    async def clear_deletions(self) -> None:
        """Empty both deletion queues."""
        for product_id in await self.get_product_deletions():
            await self.remove_product_deletion(product_id)
        for category_id in await self.get_category_deletions():
            await self.remove_category_deletion(category_id)

    # ========== Statistics ==========

    async def get_stats(self) -> dict[str, int]:
        products = await self.get_products()
        categories = await self.get_categories()
        return {
            "product_count": len(products),
            "pending_products": sum(1 for p in products if p.pending_sync),
            "category_count": len(categories),
            "pending_categories": sum(1 for c in categories if c.pending_sync),
            "queued_product_deletions": len(await self.get_product_deletions()),
            "queued_category_deletions": len(await self.get_category_deletions()),
        }

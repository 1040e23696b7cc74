"""In-memory local store for development and testing."""

from __future__ import annotations

from dataclasses import replace

from catalog_sync.core.category import Category
from catalog_sync.core.product import Product
from catalog_sync.storage.base import LocalStore


class InMemoryLocalStore(LocalStore):
    """Dict-backed store. Data is lost when the process exits."""

    def __init__(self) -> None:
        self._products: dict[str, Product] = {}
        self._categories: dict[str, Category] = {}
        self._product_deletions: dict[str, None] = {}
        self._category_deletions: dict[str, None] = {}

    # ========== Products ==========

    async def get_products(self) -> list[Product]:
        return list(self._products.values())

    async def get_product(self, product_id: str) -> Product | None:
        return self._products.get(str(product_id))

    async def put_product(self, product: Product) -> None:
        self._products[product.id] = product

    async def delete_product(self, product_id: str) -> None:
        self._products.pop(str(product_id), None)

    async def clear_products(self) -> None:
        self._products.clear()

    async def replace_products(self, products: list[Product]) -> None:
        self._products = {p.id: p for p in products}

    async def replace_product(self, old_id: str, product: Product) -> None:
        self._products.pop(str(old_id), None)
        self._products[product.id] = product

    # ========== Categories ==========

    async def get_categories(self) -> list[Category]:
        return list(self._categories.values())

    async def get_category(self, category_id: str) -> Category | None:
        return self._categories.get(str(category_id))

    async def put_category(self, category: Category) -> None:
        self._categories[category.id] = category

    async def delete_category(self, category_id: str) -> None:
        self._categories.pop(str(category_id), None)

    async def replace_categories(self, categories: list[Category]) -> None:
        self._categories = {c.id: c for c in categories}

    async def resolve_category(self, old_id: str, category: Category) -> int:
        old_id = str(old_id)
        resolved = category.as_synced()
        self._categories.pop(old_id, None)
        self._categories[resolved.id] = resolved

        rewritten = 0
        for product_id, product in list(self._products.items()):
            if product.category_id != old_id:
                continue
            self._products[product_id] = replace(
                product,
                category_id=resolved.id,
                category_name=product.category_name or resolved.name,
            )
            rewritten += 1
        return rewritten

    # ========== Deletion queues ==========

    async def get_product_deletions(self) -> list[str]:
        return list(self._product_deletions)

    async def add_product_deletion(self, product_id: str) -> None:
        self._product_deletions[str(product_id)] = None

    async def remove_product_deletion(self, product_id: str) -> None:
        self._product_deletions.pop(str(product_id), None)

    async def get_category_deletions(self) -> list[str]:
        return list(self._category_deletions)

    async def add_category_deletion(self, category_id: str) -> None:
        self._category_deletions[str(category_id)] = None

    async def remove_category_deletion(self, category_id: str) -> None:
        self._category_deletions.pop(str(category_id), None)

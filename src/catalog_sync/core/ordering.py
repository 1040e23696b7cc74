"""Display ordering for product and category lists."""

from __future__ import annotations

from datetime import datetime

from catalog_sync.core.category import Category
from catalog_sync.core.identity import is_temporary_id, numeric_key
from catalog_sync.core.product import Product


def sort_products_for_display(products: list[Product]) -> list[Product]:
    """Pending products first, then the rest; newest identity first in each group."""
    pending = [p for p in products if p.pending_sync]
    stable = [p for p in products if not p.pending_sync]
    pending.sort(key=lambda p: numeric_key(p.id), reverse=True)
    stable.sort(key=lambda p: numeric_key(p.id), reverse=True)
    return [*pending, *stable]


def _category_sort_key(category: Category) -> int:
    if is_temporary_id(category.id):
        return numeric_key(category.id)
    value = numeric_key(category.id)
    if value:
        return value
    if category.created_on:
        try:
            return int(datetime.fromisoformat(category.created_on).timestamp() * 1000)
        except ValueError:
            return 0
    return 0


def sort_categories_for_display(categories: list[Category]) -> list[Category]:
    """Newest first, by identity or by creation timestamp when the id is not numeric."""
    return sorted(categories, key=_category_sort_key, reverse=True)

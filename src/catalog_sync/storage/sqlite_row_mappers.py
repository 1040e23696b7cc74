"""Row <-> record conversion for the SQLite local store."""

from __future__ import annotations

from typing import Any

from catalog_sync.core.category import Category
from catalog_sync.core.product import Product


def row_to_product(row: Any) -> Product:
    return Product(
        id=str(row["id"]),
        name=str(row["name"] or ""),
        description=str(row["description"] or ""),
        price=float(row["price"] or 0.0),
        category_id=str(row["category_id"]) if row["category_id"] else None,
        category_name=row["category_name"] or None,
        updated_by=str(row["updated_by"] or ""),
        updated_on=str(row["updated_on"] or ""),
        pending_sync=bool(row["pending_sync"]),
    )


def product_params(product: Product) -> tuple[Any, ...]:
    return (
        product.id,
        product.name,
        product.description,
        product.price,
        product.category_id,
        product.category_name,
        product.updated_by,
        product.updated_on,
        1 if product.pending_sync else 0,
    )


def row_to_category(row: Any) -> Category:
    return Category(
        id=str(row["id"]),
        name=str(row["name"] or ""),
        created_on=row["created_on"] or None,
        pending_sync=bool(row["pending_sync"]),
    )


def category_params(category: Category) -> tuple[Any, ...]:
    return (
        category.id,
        category.name,
        category.created_on,
        1 if category.pending_sync else 0,
    )

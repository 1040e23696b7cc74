"""SQLite product operations mixin."""

from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING

from catalog_sync.storage.sqlite_row_mappers import product_params, row_to_product

if TYPE_CHECKING:
    import aiosqlite

    from catalog_sync.core.product import Product

logger = logging.getLogger(__name__)

_UPSERT_PRODUCT = """
INSERT INTO products
    (id, name, description, price, category_id, category_name,
     updated_by, updated_on, pending_sync)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(id) DO UPDATE SET
    name = excluded.name,
    description = excluded.description,
    price = excluded.price,
    category_id = excluded.category_id,
    category_name = excluded.category_name,
    updated_by = excluded.updated_by,
    updated_on = excluded.updated_on,
    pending_sync = excluded.pending_sync
"""


class SQLiteProductMixin:
    """Mixin providing product CRUD for SQLiteLocalStore."""

    # ------------------------------------------------------------------
    # Protocol stubs, satisfied by SQLiteLocalStore at runtime.
    # ------------------------------------------------------------------

    def _ensure_conn(self) -> aiosqlite.Connection:
        raise NotImplementedError

    def _transaction(self) -> AbstractAsyncContextManager[aiosqlite.Connection]:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_products(self) -> list[Product]:
        conn = self._ensure_conn()
        async with conn.execute("SELECT * FROM products ORDER BY rowid ASC") as cursor:
            rows = await cursor.fetchall()
        return [row_to_product(row) for row in rows]

    async def get_product(self, product_id: str) -> Product | None:
        conn = self._ensure_conn()
        async with conn.execute(
            "SELECT * FROM products WHERE id = ?", (str(product_id),)
        ) as cursor:
            row = await cursor.fetchone()
        return row_to_product(row) if row is not None else None

    async def put_product(self, product: Product) -> None:
        async with self._transaction() as conn:
            await conn.execute(_UPSERT_PRODUCT, product_params(product))

    async def put_products(self, products: list[Product]) -> None:
        async with self._transaction() as conn:
            await conn.executemany(_UPSERT_PRODUCT, [product_params(p) for p in products])

    async def delete_product(self, product_id: str) -> None:
        async with self._transaction() as conn:
            await conn.execute("DELETE FROM products WHERE id = ?", (str(product_id),))

    async def clear_products(self) -> None:
        async with self._transaction() as conn:
            await conn.execute("DELETE FROM products")

    async def replace_products(self, products: list[Product]) -> None:
        async with self._transaction() as conn:
            await conn.execute("DELETE FROM products")
            await conn.executemany(_UPSERT_PRODUCT, [product_params(p) for p in products])

    async def replace_product(self, old_id: str, product: Product) -> None:
        async with self._transaction() as conn:
            await conn.execute("DELETE FROM products WHERE id = ?", (str(old_id),))
            await conn.execute(_UPSERT_PRODUCT, product_params(product))
        logger.debug("Replaced product %s with %s", old_id, product.id)

"""SQLite category operations mixin."""

from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING

from catalog_sync.storage.sqlite_row_mappers import category_params, row_to_category

if TYPE_CHECKING:
    import aiosqlite

    from catalog_sync.core.category import Category

logger = logging.getLogger(__name__)

_UPSERT_CATEGORY = """
INSERT INTO categories (id, name, created_on, pending_sync)
VALUES (?, ?, ?, ?)
ON CONFLICT(id) DO UPDATE SET
    name = excluded.name,
    created_on = excluded.created_on,
    pending_sync = excluded.pending_sync
"""


class SQLiteCategoryMixin:
    """Mixin providing category CRUD and reference rewriting for SQLiteLocalStore."""

    def _ensure_conn(self) -> aiosqlite.Connection:
        raise NotImplementedError

    def _transaction(self) -> AbstractAsyncContextManager[aiosqlite.Connection]:
        raise NotImplementedError

    async def get_categories(self) -> list[Category]:
        conn = self._ensure_conn()
        async with conn.execute("SELECT * FROM categories ORDER BY rowid ASC") as cursor:
            rows = await cursor.fetchall()
        return [row_to_category(row) for row in rows]

    async def get_category(self, category_id: str) -> Category | None:
        conn = self._ensure_conn()
        async with conn.execute(
            "SELECT * FROM categories WHERE id = ?", (str(category_id),)
        ) as cursor:
            row = await cursor.fetchone()
        return row_to_category(row) if row is not None else None

    async def put_category(self, category: Category) -> None:
        async with self._transaction() as conn:
            await conn.execute(_UPSERT_CATEGORY, category_params(category))

    async def delete_category(self, category_id: str) -> None:
        async with self._transaction() as conn:
            await conn.execute("DELETE FROM categories WHERE id = ?", (str(category_id),))

    async def replace_categories(self, categories: list[Category]) -> None:
        async with self._transaction() as conn:
            await conn.execute("DELETE FROM categories")
            await conn.executemany(_UPSERT_CATEGORY, [category_params(c) for c in categories])

    async def resolve_category(self, old_id: str, category: Category) -> int:
        resolved = category.as_synced()
        async with self._transaction() as conn:
            await conn.execute("DELETE FROM categories WHERE id = ?", (str(old_id),))
            await conn.execute(_UPSERT_CATEGORY, category_params(resolved))
            cursor = await conn.execute(
                """UPDATE products
                   SET category_id = ?,
                       category_name = COALESCE(NULLIF(category_name, ''), ?)
                   WHERE category_id = ?""",
                (resolved.id, resolved.name, str(old_id)),
            )
            rewritten = cursor.rowcount
        logger.debug(
            "Resolved category %s -> %s (%d product references rewritten)",
            old_id,
            resolved.id,
            rewritten,
        )
        return rewritten

"""SQLite deletion-queue operations mixin."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING

from catalog_sync.utils.timeutils import utcnow

if TYPE_CHECKING:
    import aiosqlite

_QUEUE_TABLES = frozenset({"product_deletions", "category_deletions"})


class SQLiteDeletionQueueMixin:
    """Mixin: per-entity queues of deletions made while offline."""

    def _ensure_conn(self) -> aiosqlite.Connection:
        raise NotImplementedError

    def _transaction(self) -> AbstractAsyncContextManager[aiosqlite.Connection]:
        raise NotImplementedError

    async def _queued_ids(self, table: str) -> list[str]:
        assert table in _QUEUE_TABLES
        conn = self._ensure_conn()
        async with conn.execute(f"SELECT id FROM {table} ORDER BY rowid ASC") as cursor:
            rows = await cursor.fetchall()
        return [str(row["id"]) for row in rows]

    async def _enqueue(self, table: str, record_id: str) -> None:
        assert table in _QUEUE_TABLES
        async with self._transaction() as conn:
            await conn.execute(
                f"INSERT OR IGNORE INTO {table} (id, queued_at) VALUES (?, ?)",
                (str(record_id), utcnow().isoformat()),
            )

    async def _dequeue(self, table: str, record_id: str) -> None:
        assert table in _QUEUE_TABLES
        async with self._transaction() as conn:
            await conn.execute(f"DELETE FROM {table} WHERE id = ?", (str(record_id),))

    async def get_product_deletions(self) -> list[str]:
        return await self._queued_ids("product_deletions")

    async def add_product_deletion(self, product_id: str) -> None:
        await self._enqueue("product_deletions", product_id)

    async def remove_product_deletion(self, product_id: str) -> None:
        await self._dequeue("product_deletions", product_id)

    async def get_category_deletions(self) -> list[str]:
        return await self._queued_ids("category_deletions")

    async def add_category_deletion(self, category_id: str) -> None:
        await self._enqueue("category_deletions", category_id)

    async def remove_category_deletion(self, category_id: str) -> None:
        await self._dequeue("category_deletions", category_id)

    async def clear_deletions(self) -> None:
        async with self._transaction() as conn:
            await conn.execute("DELETE FROM product_deletions")
            await conn.execute("DELETE FROM category_deletions")

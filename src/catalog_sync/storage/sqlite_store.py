"""SQLite backend for the client-side local store."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from catalog_sync.storage.base import LocalStore
from catalog_sync.storage.sqlite_categories import SQLiteCategoryMixin
from catalog_sync.storage.sqlite_deletions import SQLiteDeletionQueueMixin
from catalog_sync.storage.sqlite_products import SQLiteProductMixin
from catalog_sync.storage.sqlite_schema import SCHEMA, stamp_schema_version

logger = logging.getLogger(__name__)


class SQLiteLocalStore(
    SQLiteProductMixin,
    SQLiteCategoryMixin,
    SQLiteDeletionQueueMixin,
    LocalStore,
):
    """SQLite-based local store.

    Survives restarts, so pending edits and queued deletions made offline
    are still there when connectivity returns. Writes are serialized through
    one lock so multi-statement operations never interleave.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path).expanduser().resolve()
        self._conn: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    @property
    def db_path(self) -> Path:
        return self._db_path

    async def initialize(self) -> None:
        """Open the database and create tables if needed."""
        if self._conn is not None:
            return
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = await aiosqlite.connect(self._db_path)
        self._conn.row_factory = aiosqlite.Row

        await self._conn.execute("PRAGMA journal_mode=WAL")
        await self._conn.execute("PRAGMA synchronous=NORMAL")

        await self._conn.executescript(SCHEMA)
        await self._conn.commit()
        version = await stamp_schema_version(self._conn)
        logger.debug("Opened local store %s (schema v%d)", self._db_path, version)

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _ensure_conn(self) -> aiosqlite.Connection:
        """Ensure connection is available."""
        if self._conn is None:
            raise RuntimeError("Local store not initialized. Call initialize() first.")
        return self._conn

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        conn = self._ensure_conn()
        async with self._write_lock:
            try:
                yield conn
            except BaseException:
                await conn.rollback()
                raise
            else:
                await conn.commit()

    # ========== Statistics ==========

    async def get_stats(self) -> dict[str, int]:
        conn = self._ensure_conn()
        async with conn.execute(
            """SELECT
                (SELECT COUNT(*) FROM products) AS product_count,
                (SELECT COUNT(*) FROM products WHERE pending_sync = 1) AS pending_products,
                (SELECT COUNT(*) FROM categories) AS category_count,
                (SELECT COUNT(*) FROM categories WHERE pending_sync = 1) AS pending_categories,
                (SELECT COUNT(*) FROM product_deletions) AS queued_product_deletions,
                (SELECT COUNT(*) FROM category_deletions) AS queued_category_deletions
            """
        ) as cursor:
            row = await cursor.fetchone()
        keys = (
            "product_count",
            "pending_products",
            "category_count",
            "pending_categories",
            "queued_product_deletions",
            "queued_category_deletions",
        )
        return {key: (row[key] if row else 0) for key in keys}

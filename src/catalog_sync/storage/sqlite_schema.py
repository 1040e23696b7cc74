"""SQLite schema definition for the local store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import aiosqlite

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

# Rowid order is the insertion order of each collection; upserts use
# ON CONFLICT DO UPDATE so an overwrite keeps its position.
SCHEMA = """
CREATE TABLE IF NOT EXISTS products (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL DEFAULT '',
    description TEXT NOT NULL DEFAULT '',
    price REAL NOT NULL DEFAULT 0,
    category_id TEXT,
    category_name TEXT,
    updated_by TEXT NOT NULL DEFAULT '',
    updated_on TEXT NOT NULL DEFAULT '',
    pending_sync INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_products_pending ON products(pending_sync);
CREATE INDEX IF NOT EXISTS idx_products_category ON products(category_id);

CREATE TABLE IF NOT EXISTS categories (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    created_on TEXT,
    pending_sync INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_categories_name ON categories(name COLLATE NOCASE);

CREATE TABLE IF NOT EXISTS product_deletions (
    id TEXT PRIMARY KEY,
    queued_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS category_deletions (
    id TEXT PRIMARY KEY,
    queued_at TEXT NOT NULL
);
"""


async def stamp_schema_version(conn: aiosqlite.Connection) -> int:
    """Record the schema version for a new database and return the stored one."""
    await conn.execute("CREATE TABLE IF NOT EXISTS schema_version (version INTEGER PRIMARY KEY)")
    async with conn.execute("SELECT version FROM schema_version") as cursor:
        row = await cursor.fetchone()

    if row is None:
        await conn.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
        await conn.commit()
        return SCHEMA_VERSION

    version = int(row[0])
    if version > SCHEMA_VERSION:
        logger.warning(
            "Local store schema version %d is newer than supported version %d",
            version,
            SCHEMA_VERSION,
        )
    return version

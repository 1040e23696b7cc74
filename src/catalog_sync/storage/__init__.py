"""Local store backends."""

from catalog_sync.storage.base import LocalStore
from catalog_sync.storage.memory_store import InMemoryLocalStore
from catalog_sync.storage.sqlite_store import SQLiteLocalStore

__all__ = [
    "LocalStore",
    "InMemoryLocalStore",
    "SQLiteLocalStore",
]

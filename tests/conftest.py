"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

from catalog_sync.core.category import Category
from catalog_sync.core.identity import is_temporary_id
from catalog_sync.core.product import Product
from catalog_sync.remote.base import RemoteService, RemoteServiceError
from catalog_sync.storage.memory_store import InMemoryLocalStore
from catalog_sync.storage.sqlite_store import SQLiteLocalStore
from catalog_sync.sync.connectivity import ConnectivitySignal
from catalog_sync.sync.gate import CategoryGate
from catalog_sync.sync.identity_resolver import IdentityResolver
from catalog_sync.sync.observers import SyncObservers
from catalog_sync.sync.reconciler import Reconciler


class FakeProductService(RemoteService[Product]):
    """In-memory stand-in for the product API.

    Mirrors the real server: every mutation returns the whole collection,
    new records get increasing numeric ids.
    """

    def __init__(self, records: list[Product] | None = None, next_id: int = 100) -> None:
        self.records: dict[str, Product] = {p.id: p for p in records or []}
        self.next_id = next_id
        self.calls: list[tuple[str, Any]] = []
        self.failing: set[str] = set()
        self.omit_category = False

    def _check(self, op: str) -> None:
        if op in self.failing:
            raise RemoteServiceError(f"{op} unavailable", status_code=503)

    async def list_all(self) -> list[Product]:
        self.calls.append(("list", None))
        self._check("list")
        return list(self.records.values())

    async def create_or_update(self, record: Product) -> list[Product]:
        self.calls.append(("create_or_update", record))
        self._check("create_or_update")
        if record.is_temporary:
            record_id = str(self.next_id)
            self.next_id += 1
        elif record.id in self.records:
            record_id = record.id
        else:
            raise RemoteServiceError("Product not found.", status_code=404)
        self.records[record_id] = Product(
            id=record_id,
            name=record.name,
            description=record.description,
            price=record.price,
            category_id=None if self.omit_category else record.category_id,
            category_name=None if self.omit_category else record.category_name,
            updated_by="admin",
        )
        return list(self.records.values())

    async def delete(self, record_id: str) -> None:
        self.calls.append(("delete", record_id))
        self._check("delete")
        self.records.pop(str(record_id), None)

    def sent(self, op: str) -> list[Any]:
        return [arg for name, arg in self.calls if name == op]


class FakeCategoryService(RemoteService[Category]):
    """In-memory stand-in for the category API with a unique-name rule.

    ``duplicate_mode`` is "reject" (raise) or "return_existing" (answer with
    the unchanged collection), the two behaviors the real server may show.
    """

    def __init__(
        self,
        records: list[Category] | None = None,
        next_id: int = 10,
        duplicate_mode: str = "reject",
    ) -> None:
        self.records: dict[str, Category] = {c.id: c for c in records or []}
        self.next_id = next_id
        self.duplicate_mode = duplicate_mode
        self.calls: list[tuple[str, Any]] = []
        self.failing: set[str] = set()

    def _check(self, op: str) -> None:
        if op in self.failing:
            raise RemoteServiceError(f"{op} unavailable", status_code=503)

    async def list_all(self) -> list[Category]:
        self.calls.append(("list", None))
        self._check("list")
        return list(self.records.values())

    async def create_or_update(self, record: Category) -> list[Category]:
        self.calls.append(("create_or_update", record))
        self._check("create_or_update")
        clash = next(
            (c for c in self.records.values() if c.name_key == record.name_key and c.id != record.id),
            None,
        )
        if clash is not None:
            if self.duplicate_mode == "reject":
                raise RemoteServiceError("Category name already exists.", status_code=409)
            return list(self.records.values())

        if is_temporary_id(record.id):
            record_id = str(self.next_id)
            self.next_id += 1
        elif record.id in self.records:
            record_id = record.id
        else:
            raise RemoteServiceError("Category not found.", status_code=404)
        self.records[record_id] = Category(id=record_id, name=record.name.strip())
        return list(self.records.values())

    async def delete(self, record_id: str) -> None:
        self.calls.append(("delete", record_id))
        self._check("delete")
        self.records.pop(str(record_id), None)

    def sent(self, op: str) -> list[Any]:
        return [arg for name, arg in self.calls if name == op]


@pytest.fixture
def store() -> InMemoryLocalStore:
    """Create an in-memory local store."""
    return InMemoryLocalStore()


@pytest_asyncio.fixture
async def sqlite_store(tmp_path: Path) -> AsyncGenerator[SQLiteLocalStore, None]:
    """Create an initialized SQLite local store in a temp directory."""
    db = SQLiteLocalStore(tmp_path / "store.db")
    await db.initialize()
    yield db
    await db.close()


@pytest.fixture
def products_api() -> FakeProductService:
    return FakeProductService()


@pytest.fixture
def categories_api() -> FakeCategoryService:
    return FakeCategoryService()


@pytest.fixture
def connectivity() -> ConnectivitySignal:
    return ConnectivitySignal(online=True)


def make_reconciler(
    store: Any,
    products_api: FakeProductService,
    categories_api: FakeCategoryService,
    *,
    attempts: int = 5,
    observers: SyncObservers | None = None,
) -> Reconciler:
    """Reconciler whose gate retries without real sleeping."""
    gate = CategoryGate(
        store,
        IdentityResolver(store, categories_api),
        attempts=attempts,
        interval_seconds=0,
    )
    return Reconciler(store, products_api, categories_api, gate=gate, observers=observers)


@pytest.fixture
def reconciler(
    store: InMemoryLocalStore,
    products_api: FakeProductService,
    categories_api: FakeCategoryService,
) -> Reconciler:
    return make_reconciler(store, products_api, categories_api)


@pytest.fixture
def build_reconciler() -> Any:
    """Factory for reconcilers over arbitrary stores and fakes."""
    return make_reconciler

"""Tests for sync/reconciler.py: drain phases and merge refresh."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock

from catalog_sync.core.category import Category
from catalog_sync.core.product import Product
from catalog_sync.storage.memory_store import InMemoryLocalStore
from catalog_sync.sync.observers import SyncObservers
from catalog_sync.sync.protocol import DataSyncedEvent, SyncStatus, SyncTrigger
from catalog_sync.sync.reconciler import Reconciler

if TYPE_CHECKING:
    from conftest import FakeCategoryService, FakeProductService

# ─────────── Deletion drain ───────────


class TestDeletionDrain:
    async def test_acknowledged_deletion_clears_marker(
        self,
        store: InMemoryLocalStore,
        products_api: FakeProductService,
        reconciler: Reconciler,
    ) -> None:
        products_api.records["42"] = Product(id="42", name="Cola")
        await store.add_product_deletion("42")

        report = await reconciler.run(SyncTrigger.MANUAL)

        assert report.status == SyncStatus.SUCCESS
        assert report.deletions_acknowledged == 1
        assert products_api.sent("delete") == ["42"]
        assert await store.get_product_deletions() == []
        assert "42" not in products_api.records

    async def test_failed_deletion_keeps_marker(
        self,
        store: InMemoryLocalStore,
        products_api: FakeProductService,
        reconciler: Reconciler,
    ) -> None:
        products_api.records["42"] = Product(id="42", name="Cola")
        products_api.failing.add("delete")
        await store.add_product_deletion("42")

        report = await reconciler.run()

        assert report.status == SyncStatus.PARTIAL
        assert report.deletions_failed == 1
        assert await store.get_product_deletions() == ["42"]
        # The server still lists it, but the queued deletion wins.
        assert await store.get_product("42") is None

    async def test_temporary_id_dropped_without_remote_call(
        self,
        store: InMemoryLocalStore,
        products_api: FakeProductService,
        reconciler: Reconciler,
    ) -> None:
        await store.add_product_deletion("temp_1")

        drain = await reconciler.drain_deletions()

        assert drain.dropped == 1
        assert products_api.sent("delete") == []
        assert await store.get_product_deletions() == []

    async def test_categories_drained_before_products(
        self,
        store: InMemoryLocalStore,
        products_api: FakeProductService,
        categories_api: FakeCategoryService,
        reconciler: Reconciler,
    ) -> None:
        order: list[tuple[str, str]] = []
        products_api.delete = AsyncMock(side_effect=lambda rid: order.append(("product", rid)))  # type: ignore[method-assign]
        categories_api.delete = AsyncMock(side_effect=lambda rid: order.append(("category", rid)))  # type: ignore[method-assign]
        await store.add_product_deletion("42")
        await store.add_category_deletion("3")

        drain = await reconciler.drain_deletions()

        assert drain.acknowledged == 2
        assert order == [("category", "3"), ("product", "42")]


# ─────────── Gate ───────────


class TestCategoryGating:
    async def test_unsettled_categories_defer_products(
        self,
        store: InMemoryLocalStore,
        products_api: FakeProductService,
        categories_api: FakeCategoryService,
        build_reconciler: Any,
    ) -> None:
        categories_api.failing.update({"list", "create_or_update"})
        await store.put_category(Category(id="cat_1", name="Beverages", pending_sync=True))
        await store.put_product(
            Product(id="temp_1", name="Cola", category_id="cat_1", pending_sync=True)
        )

        report = await build_reconciler(store, products_api, categories_api, attempts=2).run()

        assert report.status == SyncStatus.DEFERRED
        assert report.categories_failed == 1
        assert report.products_pending == 1
        assert products_api.calls == []
        product = await store.get_product("temp_1")
        assert product is not None
        assert product.pending_sync is True

    async def test_products_sent_with_permanent_category(
        self,
        store: InMemoryLocalStore,
        products_api: FakeProductService,
        categories_api: FakeCategoryService,
        reconciler: Reconciler,
    ) -> None:
        await store.put_category(Category(id="cat_1", name="Beverages", pending_sync=True))
        await store.put_product(
            Product(
                id="temp_1",
                name="Cola",
                category_id="cat_1",
                category_name="Beverages",
                pending_sync=True,
            )
        )

        report = await reconciler.run()

        assert report.status == SyncStatus.SUCCESS
        assert report.categories_resolved == 1
        sent = products_api.sent("create_or_update")
        assert [p.category_id for p in sent] == ["10"]
        assert products_api.records["100"].category_id == "10"


# ─────────── Product drain ───────────


class TestProductDrain:
    async def test_create_adopts_permanent_identity(
        self,
        store: InMemoryLocalStore,
        products_api: FakeProductService,
        reconciler: Reconciler,
    ) -> None:
        await store.put_product(Product.create_offline(name="Cola", price=1.5))

        report = await reconciler.run()

        assert report.status == SyncStatus.SUCCESS
        assert report.products_created == 1
        assert report.products_total == 1
        products = await store.get_products()
        assert [(p.id, p.pending_sync) for p in products] == [("100", False)]

    async def test_update_clears_pending(
        self,
        store: InMemoryLocalStore,
        products_api: FakeProductService,
        reconciler: Reconciler,
    ) -> None:
        products_api.records["5"] = Product(id="5", name="Old")
        await store.put_product(Product(id="5", name="New", pending_sync=True))

        report = await reconciler.run()

        assert report.products_updated == 1
        assert products_api.records["5"].name == "New"
        product = await store.get_product("5")
        assert product is not None
        assert product.name == "New"
        assert product.pending_sync is False

    async def test_failed_update_stays_pending(
        self,
        store: InMemoryLocalStore,
        products_api: FakeProductService,
        reconciler: Reconciler,
    ) -> None:
        products_api.records["5"] = Product(id="5", name="Old")
        products_api.failing.add("create_or_update")
        await store.put_product(Product(id="5", name="New", pending_sync=True))

        report = await reconciler.run()

        assert report.status == SyncStatus.PARTIAL
        assert report.products_pending == 1
        product = await store.get_product("5")
        assert product is not None
        assert product.name == "New"
        assert product.pending_sync is True

    async def test_one_failure_does_not_abort_the_rest(
        self,
        store: InMemoryLocalStore,
        products_api: FakeProductService,
        reconciler: Reconciler,
    ) -> None:
        # Updating an id the server does not know fails; the create still goes out.
        await store.put_product(Product(id="77", name="Orphan", pending_sync=True))
        await store.put_product(Product.create_offline(name="Cola"))

        report = await reconciler.run()

        assert report.status == SyncStatus.PARTIAL
        assert report.products_created == 1
        assert "100" in products_api.records
        orphan = await store.get_product("77")
        assert orphan is not None
        assert orphan.pending_sync is True

    async def test_server_omitting_category_keeps_local_reference(
        self,
        store: InMemoryLocalStore,
        products_api: FakeProductService,
        categories_api: FakeCategoryService,
        reconciler: Reconciler,
    ) -> None:
        categories_api.records["10"] = Category(id="10", name="Beverages")
        await store.put_category(Category(id="10", name="Beverages"))
        products_api.omit_category = True
        await store.put_product(
            Product.create_offline(name="Cola", category_id="10", category_name="Beverages")
        )

        await reconciler.run()

        products = await store.get_products()
        assert len(products) == 1
        assert products[0].id == "100"
        assert products[0].category_id == "10"
        assert products[0].category_name == "Beverages"

    async def test_queued_for_deletion_is_not_pushed(
        self,
        store: InMemoryLocalStore,
        products_api: FakeProductService,
        reconciler: Reconciler,
    ) -> None:
        products_api.records["5"] = Product(id="5", name="Old")
        products_api.failing.add("delete")
        await store.put_product(Product(id="5", name="New", pending_sync=True))
        await store.add_product_deletion("5")

        await reconciler.run()

        assert products_api.sent("create_or_update") == []

    async def test_edit_during_create_is_kept(
        self,
        store: InMemoryLocalStore,
        products_api: FakeProductService,
        reconciler: Reconciler,
    ) -> None:
        draft = Product.create_offline(name="Cola")
        await store.put_product(draft)
        original = products_api.create_or_update

        async def racing_create(record: Product) -> list[Product]:
            await store.put_product(replace(record, name="Cola Zero"))
            return await original(record)

        products_api.create_or_update = racing_create  # type: ignore[method-assign]

        first = await reconciler.run()

        assert first.products_created == 1
        assert await store.get_product(draft.id) is None
        product = await store.get_product("100")
        assert product is not None
        assert product.name == "Cola Zero"
        assert product.pending_sync is True

        products_api.create_or_update = original  # type: ignore[method-assign]
        second = await reconciler.run()

        assert second.products_updated == 1
        assert products_api.records["100"].name == "Cola Zero"
        assert len(products_api.records) == 1

    async def test_delete_during_create_is_not_resurrected(
        self,
        store: InMemoryLocalStore,
        products_api: FakeProductService,
        reconciler: Reconciler,
    ) -> None:
        draft = Product.create_offline(name="Cola")
        await store.put_product(draft)
        original = products_api.create_or_update

        async def racing_create(record: Product) -> list[Product]:
            await store.delete_product(record.id)
            return await original(record)

        products_api.create_or_update = racing_create  # type: ignore[method-assign]

        drain = await reconciler.drain_products()

        assert drain.created == 1
        assert await store.get_products() == []
        assert await store.get_product_deletions() == ["100"]

        products_api.create_or_update = original  # type: ignore[method-assign]
        report = await reconciler.run()

        assert report.status == SyncStatus.SUCCESS
        assert products_api.sent("delete") == ["100"]
        assert products_api.records == {}
        assert await store.get_products() == []
        assert await store.get_product_deletions() == []

    async def test_delete_during_update_is_not_resurrected(
        self,
        store: InMemoryLocalStore,
        products_api: FakeProductService,
        reconciler: Reconciler,
    ) -> None:
        products_api.records["5"] = Product(id="5", name="Old")
        await store.put_product(Product(id="5", name="New", pending_sync=True))
        original = products_api.create_or_update

        async def racing_update(record: Product) -> list[Product]:
            await store.delete_product(record.id)
            return await original(record)

        products_api.create_or_update = racing_update  # type: ignore[method-assign]

        drain = await reconciler.drain_products()

        assert drain.updated == 1
        assert await store.get_product("5") is None
        assert await store.get_product_deletions() == ["5"]

    async def test_second_run_is_a_no_op(
        self,
        store: InMemoryLocalStore,
        products_api: FakeProductService,
        reconciler: Reconciler,
    ) -> None:
        await store.put_product(Product.create_offline(name="Cola"))
        await reconciler.run()
        creates = len(products_api.sent("create_or_update"))

        report = await reconciler.run()

        assert report.status == SyncStatus.SUCCESS
        assert report.products_created == 0
        assert len(products_api.sent("create_or_update")) == creates
        assert len(products_api.records) == 1


# ─────────── Merge refresh ───────────


class TestRefresh:
    async def test_merge_keeps_pending_and_drops_removed(
        self,
        store: InMemoryLocalStore,
        products_api: FakeProductService,
        reconciler: Reconciler,
    ) -> None:
        products_api.records["2"] = Product(id="2", name="Server")
        products_api.failing.add("create_or_update")
        await store.put_product(Product(id="1", name="Removed on server"))
        await store.put_product(Product(id="temp_9", name="Offline", pending_sync=True))

        await reconciler.run()

        assert [p.id for p in await store.get_products()] == ["temp_9", "2"]

    async def test_pending_category_survives_refresh(
        self,
        store: InMemoryLocalStore,
        categories_api: FakeCategoryService,
        reconciler: Reconciler,
    ) -> None:
        categories_api.records["3"] = Category(id="3", name="Snacks")
        await store.put_category(
            Category(id="cat_1718000000000", name="Dairy", pending_sync=True)
        )
        await store.put_category(Category(id="8", name="Gone"))

        categories = await reconciler._refresh_categories()

        assert categories is not None
        assert [c.id for c in categories] == ["cat_1718000000000", "3"]

    async def test_temporary_category_matching_server_is_adopted(
        self,
        store: InMemoryLocalStore,
        products_api: FakeProductService,
        categories_api: FakeCategoryService,
        reconciler: Reconciler,
    ) -> None:
        categories_api.records["10"] = Category(id="10", name="Snacks")
        await store.put_category(Category(id="cat_1000", name="Snacks", pending_sync=True))
        await store.put_product(
            Product(
                id="temp_2000",
                name="Chips",
                category_id="cat_1000",
                category_name="Snacks",
                pending_sync=True,
            )
        )

        await reconciler.refresh()

        assert [c.id for c in await store.get_categories()] == ["10"]
        product = await store.get_product("temp_2000")
        assert product is not None
        assert product.category_id == "10"
        assert product.pending_sync is True

        report = await reconciler.run()

        assert report.status == SyncStatus.SUCCESS
        assert products_api.records["100"].category_id == "10"
        stored = await store.get_product("100")
        assert stored is not None
        assert stored.category_id == "10"

    async def test_refresh_failure_is_partial(
        self,
        store: InMemoryLocalStore,
        products_api: FakeProductService,
        reconciler: Reconciler,
    ) -> None:
        products_api.failing.add("list")
        await store.put_product(Product(id="1", name="Local"))

        report = await reconciler.run()

        assert report.status == SyncStatus.PARTIAL
        assert report.message == "refresh failed"
        assert [p.id for p in await store.get_products()] == ["1"]

    async def test_observers_notified(
        self,
        store: InMemoryLocalStore,
        products_api: FakeProductService,
        categories_api: FakeCategoryService,
        build_reconciler: Any,
    ) -> None:
        products_api.records["2"] = Product(id="2", name="Server")
        categories_api.records["3"] = Category(id="3", name="Snacks")
        observers = SyncObservers()
        events: list[DataSyncedEvent] = []
        observers.on(events.append)

        await build_reconciler(store, products_api, categories_api, observers=observers).run()

        assert len(events) == 1
        assert [p.id for p in events[0].products] == ["2"]
        assert [c.id for c in events[0].categories] == ["3"]

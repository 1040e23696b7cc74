"""Wiring of store, API client, reconciler and coordinator."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from catalog_sync.catalog import OfflineCatalog
from catalog_sync.config import CatalogSyncConfig, get_config
from catalog_sync.remote.http_client import (
    CatalogApiClient,
    HttpCategoryService,
    HttpProductService,
)
from catalog_sync.storage.sqlite_store import SQLiteLocalStore
from catalog_sync.sync.connectivity import ConnectivitySignal
from catalog_sync.sync.coordinator import SyncCoordinator
from catalog_sync.sync.gate import CategoryGate
from catalog_sync.sync.identity_resolver import IdentityResolver
from catalog_sync.sync.observers import SyncObservers
from catalog_sync.sync.reconciler import Reconciler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogRuntime:
    config: CatalogSyncConfig
    store: SQLiteLocalStore
    client: CatalogApiClient
    connectivity: ConnectivitySignal
    observers: SyncObservers
    reconciler: Reconciler
    coordinator: SyncCoordinator
    catalog: OfflineCatalog


@asynccontextmanager
async def open_runtime(
    config: CatalogSyncConfig | None = None,
    *,
    online: bool = True,
) -> AsyncIterator[CatalogRuntime]:
    """Open the local store and API session; close both on exit."""
    config = config or get_config()
    store = SQLiteLocalStore(config.db_path)
    client = CatalogApiClient(
        config.api.base_url,
        timeout=config.api.timeout_seconds,
        api_key=config.api.api_key,
    )
    products_api = HttpProductService(client, updated_by=config.api.updated_by)
    categories_api = HttpCategoryService(client)
    connectivity = ConnectivitySignal(online=online)
    observers = SyncObservers()

    gate = CategoryGate(
        store,
        IdentityResolver(store, categories_api),
        attempts=config.sync.gate_attempts,
        interval_seconds=config.sync.gate_interval_seconds,
    )
    reconciler = Reconciler(
        store,
        products_api,
        categories_api,
        gate=gate,
        observers=observers,
    )
    coordinator = SyncCoordinator(reconciler, connectivity, config.sync)
    catalog = OfflineCatalog(store, products_api, categories_api, connectivity)

    await store.initialize()
    try:
        await client.connect()
        yield CatalogRuntime(
            config=config,
            store=store,
            client=client,
            connectivity=connectivity,
            observers=observers,
            reconciler=reconciler,
            coordinator=coordinator,
            catalog=catalog,
        )
    finally:
        coordinator.stop()
        await coordinator.join()
        await client.disconnect()
        await store.close()
        logger.debug("Runtime closed")

"""catalog-sync: offline-first synchronization of products and categories."""

from catalog_sync.catalog import DuplicateCategoryError, OfflineCatalog, RecordNotFoundError
from catalog_sync.core.category import Category
from catalog_sync.core.product import Product
from catalog_sync.sync.coordinator import SyncCoordinator
from catalog_sync.sync.reconciler import Reconciler

__version__ = "0.1.0"

__all__ = [
    "Category",
    "DuplicateCategoryError",
    "OfflineCatalog",
    "Product",
    "RecordNotFoundError",
    "Reconciler",
    "SyncCoordinator",
    "__version__",
]

"""Remote record services for the catalog API."""

from catalog_sync.remote.base import RemoteService, RemoteServiceError
from catalog_sync.remote.http_client import (
    CatalogApiClient,
    HttpCategoryService,
    HttpProductService,
)

__all__ = [
    "RemoteService",
    "RemoteServiceError",
    "CatalogApiClient",
    "HttpProductService",
    "HttpCategoryService",
]

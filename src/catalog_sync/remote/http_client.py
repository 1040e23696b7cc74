"""HTTP client for the catalog REST API."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from catalog_sync.core.category import Category
from catalog_sync.core.product import Product
from catalog_sync.remote.base import RemoteService, RemoteServiceError
from catalog_sync.remote.mappers import (
    build_category_payload,
    build_product_payload,
    categories_from_response,
    envelope_message,
    envelope_succeeded,
    products_from_response,
)

logger = logging.getLogger(__name__)


class CatalogApiClient:
    """
    Thin aiohttp wrapper around the catalog API.

    Usage:
        async with CatalogApiClient("https://localhost:7092/api") as client:
            products = HttpProductService(client)
            items = await products.list_all()
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        api_key: str | None = None,
    ) -> None:
        """
        Initialize the API client.

        Args:
            base_url: API root, e.g. "https://localhost:7092/api"
            timeout: Request timeout in seconds
            api_key: Optional bearer token
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._api_key = api_key
        self._session: aiohttp.ClientSession | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def is_connected(self) -> bool:
        return self._session is not None

    async def connect(self) -> None:
        """Open the HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)

    async def disconnect(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> CatalogApiClient:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.disconnect()

    def _get_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_data: dict[str, Any] | None = None,
    ) -> Any:
        """Make an HTTP request and return the decoded JSON body (None if empty)."""
        if not self._session:
            await self.connect()

        assert self._session is not None

        url = f"{self._base_url}{path}"
        try:
            async with self._session.request(
                method,
                url,
                json=json_data,
                headers=self._get_headers(),
            ) as response:
                if response.status >= 400:
                    text = await response.text()
                    raise RemoteServiceError(
                        f"Server error: {text}",
                        status_code=response.status,
                    )
                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise RemoteServiceError(
                        f"Invalid JSON from {method} {path}: {e}",
                        status_code=response.status,
                    ) from e
        except aiohttp.ClientError as e:
            raise RemoteServiceError(f"Failed to connect to {url}: {e}") from e
        except TimeoutError as e:
            raise RemoteServiceError(f"Request to {url} timed out") from e

    async def ping(self) -> bool:
        """True if the API answered a list request at all."""
        try:
            await self.request("GET", "/Category/list")
        except RemoteServiceError as e:
            # 404 is the API's answer for an empty collection
            return e.status_code is not None and e.status_code < 500
        return True


class _HttpRecordService:
    """Shared list/manage/delete plumbing for one API resource."""

    resource: str = ""

    def __init__(self, client: CatalogApiClient) -> None:
        self._client = client

    async def _list_payload(self) -> Any:
        try:
            return await self._client.request("GET", f"/{self.resource}/list")
        except RemoteServiceError as e:
            if e.status_code == 404:
                return []
            raise

    async def _manage(self, payload: dict[str, Any]) -> Any:
        result = await self._client.request(
            "POST", f"/{self.resource}/manage", json_data=payload
        )
        if not envelope_succeeded(result):
            raise RemoteServiceError(
                f"{self.resource} manage rejected: {envelope_message(result) or 'unknown error'}"
            )
        return result

    async def delete(self, record_id: str) -> None:
        try:
            result = await self._client.request("DELETE", f"/{self.resource}/{record_id}")
        except RemoteServiceError as e:
            if e.status_code == 404:
                logger.debug("%s %s already absent on server", self.resource, record_id)
                return
            raise
        if envelope_succeeded(result):
            logger.debug("Deleted %s %s on server", self.resource, record_id)
            return
        message = envelope_message(result)
        if "not found" in message.lower():
            logger.debug("%s %s already absent on server", self.resource, record_id)
            return
        raise RemoteServiceError(
            f"{self.resource} {record_id} not deleted: {message or 'unknown error'}"
        )


class HttpProductService(_HttpRecordService, RemoteService[Product]):
    """Products over ``/Product/list``, ``/Product/manage`` and ``/Product/{id}``."""

    resource = "Product"

    def __init__(self, client: CatalogApiClient, *, updated_by: str = "admin") -> None:
        super().__init__(client)
        self._updated_by = updated_by

    async def list_all(self) -> list[Product]:
        return products_from_response(await self._list_payload())

    async def create_or_update(self, record: Product) -> list[Product]:
        payload = build_product_payload(record, updated_by=self._updated_by)
        return products_from_response(await self._manage(payload))


class HttpCategoryService(_HttpRecordService, RemoteService[Category]):
    """Categories over ``/Category/list``, ``/Category/manage`` and ``/Category/{id}``."""

    resource = "Category"

    async def list_all(self) -> list[Category]:
        return categories_from_response(await self._list_payload())

    async def create_or_update(self, record: Category) -> list[Category]:
        return categories_from_response(await self._manage(build_category_payload(record)))

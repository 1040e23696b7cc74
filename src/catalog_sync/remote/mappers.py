"""Conversion helpers between catalog API payloads and local records."""

from __future__ import annotations

import logging
from typing import Any

from catalog_sync.core.category import Category
from catalog_sync.core.identity import is_temporary_id
from catalog_sync.core.product import Product

logger = logging.getLogger(__name__)

_PRODUCT_ID_KEYS = ("ID", "Id", "id", "ProductId", "productId")
_CATEGORY_ID_KEYS = ("ID", "Id", "id", "CategoryId", "categoryId")
_PRODUCT_CATEGORY_ID_KEYS = ("CategoryId", "CategoryID", "categoryId", "categoryID")


def _first(data: dict[str, Any], keys: tuple[str, ...], default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def _to_price(value: Any) -> float:
    if value in (None, ""):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.debug("Unparseable price %r; using 0", value)
        return 0.0


def _to_int_id(record_id: str | None) -> int | None:
    if not record_id or is_temporary_id(record_id):
        return None
    try:
        return int(record_id)
    except ValueError:
        return None


def map_product_from_server(data: dict[str, Any]) -> Product | None:
    """Convert an API product dict to a Product. Entries without an id yield None."""
    record_id = _first(data, _PRODUCT_ID_KEYS)
    if record_id is None:
        logger.debug("Skipping server product without id: %r", data)
        return None
    category_id = _first(data, _PRODUCT_CATEGORY_ID_KEYS)
    category_name = _first(data, ("CategoryName", "categoryName"), "")
    return Product(
        id=str(record_id),
        name=str(_first(data, ("ProductName", "productName", "Name", "name"), "")),
        description=str(_first(data, ("Description", "description"), "")),
        price=_to_price(_first(data, ("Price", "price"))),
        category_id=str(category_id) if category_id not in (None, "") else None,
        category_name=str(category_name) if category_name else None,
        updated_by=str(_first(data, ("UpdatedBy", "updatedBy"), "")),
        updated_on=str(_first(data, ("UpdatedOn", "updatedOn"), "")),
        pending_sync=False,
    )


def map_category_from_server(data: dict[str, Any]) -> Category | None:
    """Convert an API category dict to a Category. Entries without an id yield None."""
    record_id = _first(data, _CATEGORY_ID_KEYS)
    if record_id is None:
        logger.debug("Skipping server category without id: %r", data)
        return None
    created_on = _first(data, ("CreatedOn", "createdOn"))
    return Category(
        id=str(record_id),
        name=str(_first(data, ("CategoryName", "categoryName", "Name", "name"), "")),
        created_on=str(created_on) if created_on else None,
        pending_sync=False,
    )


def unwrap_list_response(payload: Any) -> list[dict[str, Any]]:
    """Extract the collection from a ``{success, message, data}`` envelope."""
    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, dict)]
    if not isinstance(payload, dict):
        return []
    items = payload.get("data")
    if items is None:
        items = payload.get("Data")
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def envelope_succeeded(payload: Any) -> bool:
    """False only when the envelope explicitly reports failure."""
    if not isinstance(payload, dict):
        return True
    flag = payload.get("success", payload.get("Success"))
    return flag is not False


def envelope_message(payload: Any) -> str:
    if not isinstance(payload, dict):
        return ""
    return str(payload.get("message") or payload.get("Message") or "")


def products_from_response(payload: Any) -> list[Product]:
    mapped = (map_product_from_server(item) for item in unwrap_list_response(payload))
    return [p for p in mapped if p is not None]


def categories_from_response(payload: Any) -> list[Category]:
    mapped = (map_category_from_server(item) for item in unwrap_list_response(payload))
    return [c for c in mapped if c is not None]


def build_product_payload(product: Product, updated_by: str = "admin") -> dict[str, Any]:
    """Manage payload for a product: ``ID`` is null for a temporary identity."""
    return {
        "ID": _to_int_id(product.id),
        "ProductName": product.name,
        "Description": product.description,
        "Price": float(product.price or 0),
        "UpdatedBy": updated_by,
        "CategoryId": _to_int_id(product.category_id),
        "CategoryName": product.category_name or None,
    }


def build_category_payload(category: Category) -> dict[str, Any]:
    """Manage payload for a category: ``ID`` is null for a temporary identity."""
    return {
        "ID": _to_int_id(category.id),
        "CategoryName": category.name,
    }

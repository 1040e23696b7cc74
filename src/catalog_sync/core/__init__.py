"""Core record types."""

from catalog_sync.core.category import Category, find_by_name, normalize_name
from catalog_sync.core.identity import (
    TEMP_CATEGORY_PREFIX,
    TEMP_PRODUCT_PREFIX,
    TemporaryIdFactory,
    is_permanent_id,
    is_temporary_id,
    numeric_key,
)
from catalog_sync.core.ordering import sort_categories_for_display, sort_products_for_display
from catalog_sync.core.product import Product

__all__ = [
    "Category",
    "Product",
    "TEMP_CATEGORY_PREFIX",
    "TEMP_PRODUCT_PREFIX",
    "TemporaryIdFactory",
    "find_by_name",
    "is_permanent_id",
    "is_temporary_id",
    "normalize_name",
    "numeric_key",
    "sort_categories_for_display",
    "sort_products_for_display",
]

"""Tests for remote/mappers.py: API payload <-> record conversion."""

from __future__ import annotations

from catalog_sync.core.category import Category
from catalog_sync.core.product import Product
from catalog_sync.remote.mappers import (
    build_category_payload,
    build_product_payload,
    categories_from_response,
    envelope_message,
    envelope_succeeded,
    map_category_from_server,
    map_product_from_server,
    products_from_response,
    unwrap_list_response,
)

# ─────────── Server -> local ───────────


class TestMapProduct:
    def test_pascal_case_fields(self) -> None:
        product = map_product_from_server(
            {
                "ID": 42,
                "ProductName": "Cola",
                "Description": "Fizzy",
                "Price": 1.5,
                "CategoryId": 10,
                "CategoryName": "Beverages",
                "UpdatedBy": "admin",
                "UpdatedOn": "2025-01-01T00:00:00",
            }
        )
        assert product == Product(
            id="42",
            name="Cola",
            description="Fizzy",
            price=1.5,
            category_id="10",
            category_name="Beverages",
            updated_by="admin",
            updated_on="2025-01-01T00:00:00",
            pending_sync=False,
        )

    def test_camel_case_fields(self) -> None:
        product = map_product_from_server(
            {"id": 7, "productName": "Chips", "price": "2", "categoryId": None}
        )
        assert product is not None
        assert product.id == "7"
        assert product.name == "Chips"
        assert product.price == 2.0
        assert product.category_id is None
        assert product.category_name is None

    def test_missing_id_is_skipped(self) -> None:
        assert map_product_from_server({"ProductName": "Ghost"}) is None

    def test_unparseable_price_becomes_zero(self) -> None:
        for raw in ("n/a", "", None, [1]):
            product = map_product_from_server({"ID": 1, "ProductName": "Cola", "Price": raw})
            assert product is not None
            assert product.price == 0.0

    def test_collection_with_bad_price_still_maps(self) -> None:
        products = products_from_response(
            {"data": [{"ID": 1, "Price": "free"}, {"ID": 2, "Price": "3.25"}]}
        )
        assert [(p.id, p.price) for p in products] == [("1", 0.0), ("2", 3.25)]


class TestMapCategory:
    def test_fields(self) -> None:
        category = map_category_from_server(
            {"ID": 10, "CategoryName": "Beverages", "CreatedOn": "2025-01-01T00:00:00"}
        )
        assert category == Category(
            id="10", name="Beverages", created_on="2025-01-01T00:00:00", pending_sync=False
        )

    def test_missing_id_is_skipped(self) -> None:
        assert map_category_from_server({"CategoryName": "Ghost"}) is None


# ─────────── Envelopes ───────────


class TestEnvelope:
    def test_bare_list(self) -> None:
        assert unwrap_list_response([{"ID": 1}, "junk"]) == [{"ID": 1}]

    def test_lowercase_envelope(self) -> None:
        payload = {"success": True, "message": "", "data": [{"ID": 1}]}
        assert unwrap_list_response(payload) == [{"ID": 1}]

    def test_pascal_envelope(self) -> None:
        assert unwrap_list_response({"Success": True, "Data": [{"ID": 2}]}) == [{"ID": 2}]

    def test_unusable_payloads(self) -> None:
        assert unwrap_list_response(None) == []
        assert unwrap_list_response({"data": "nope"}) == []

    def test_succeeded_only_false_when_explicit(self) -> None:
        assert envelope_succeeded({"data": []})
        assert envelope_succeeded([])
        assert envelope_succeeded({"success": True})
        assert not envelope_succeeded({"success": False})
        assert not envelope_succeeded({"Success": False})

    def test_message(self) -> None:
        assert envelope_message({"Message": "Product not found."}) == "Product not found."
        assert envelope_message([]) == ""

    def test_collections_skip_records_without_id(self) -> None:
        products = products_from_response(
            {"data": [{"ID": 1, "ProductName": "A"}, {"ProductName": "B"}]}
        )
        categories = categories_from_response([{"ID": 3, "CategoryName": "C"}, {}])
        assert [p.id for p in products] == ["1"]
        assert [c.id for c in categories] == ["3"]


# ─────────── Local -> server ───────────


class TestPayloads:
    def test_temporary_product_sends_null_id(self) -> None:
        product = Product(
            id="temp_1718000000000",
            name="Cola",
            description="Fizzy",
            price=1.5,
            category_id="10",
            category_name="Beverages",
        )
        assert build_product_payload(product) == {
            "ID": None,
            "ProductName": "Cola",
            "Description": "Fizzy",
            "Price": 1.5,
            "UpdatedBy": "admin",
            "CategoryId": 10,
            "CategoryName": "Beverages",
        }

    def test_permanent_product_sends_numeric_id(self) -> None:
        payload = build_product_payload(Product(id="42", name="Cola"), updated_by="clerk")
        assert payload["ID"] == 42
        assert payload["UpdatedBy"] == "clerk"
        assert payload["CategoryId"] is None
        assert payload["CategoryName"] is None

    def test_temporary_category_reference_is_not_sent(self) -> None:
        payload = build_product_payload(Product(id="42", name="Cola", category_id="cat_1"))
        assert payload["CategoryId"] is None

    def test_category_payload(self) -> None:
        assert build_category_payload(Category(id="cat_1", name="Snacks")) == {
            "ID": None,
            "CategoryName": "Snacks",
        }
        assert build_category_payload(Category(id="4", name="Snacks"))["ID"] == 4

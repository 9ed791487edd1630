"""Tests for the sales storage backends."""

from unittest.mock import MagicMock, patch

import httpx
import pytest
from vendsight.adapters import CanonicalLocation, CanonicalProduct
from vendsight.sales_store import (
    InMemorySalesStore,
    StorageError,
    SupabaseSalesStore,
    create_store,
)


def _response(status_code=200, payload=None, text=""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload if payload is not None else []
    resp.content = b"x" if payload is not None else b""
    resp.text = text
    return resp


@pytest.fixture
def location():
    return CanonicalLocation(
        id="LOC001", name="Location LOC001", vendor="iOS Vending Systems"
    )


@pytest.fixture
def product():
    return CanonicalProduct(scancode="CC001", name="Coca Cola", upc="CC001")


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class TestInMemorySalesStore:
    def test_location_roundtrip(self, memory_store, location):
        assert memory_store.get_location("LOC001") is None
        memory_store.insert_location(location)
        row = memory_store.get_location("LOC001")
        assert row["vendor"] == "iOS Vending Systems"
        assert "created_at" in row

    def test_duplicate_location(self, memory_store, location):
        memory_store.insert_location(location)
        with pytest.raises(StorageError):
            memory_store.insert_location(location)

    def test_update_vendor(self, memory_store, location):
        memory_store.insert_location(location)
        memory_store.update_location_vendor("LOC001", "A, B")
        assert memory_store.get_location("LOC001")["vendor"] == "A, B"

    def test_update_missing_location(self, memory_store):
        with pytest.raises(StorageError):
            memory_store.update_location_vendor("NOPE", "A")

    def test_returned_rows_are_copies(self, memory_store, location):
        memory_store.insert_location(location)
        memory_store.get_location("LOC001")["vendor"] = "mutated"
        assert memory_store.get_location("LOC001")["vendor"] == "iOS Vending Systems"

    def test_product_ids(self, memory_store, product):
        row = memory_store.insert_product(product)
        assert row["id"] == "product-0001"
        assert memory_store.get_product("CC001")["name"] == "Coca Cola"
        with pytest.raises(StorageError):
            memory_store.insert_product(product)

    def test_sale_unique_by_hash(self, memory_store, make_sale):
        sale = make_sale()
        assert not memory_store.sale_exists(sale.raw_csv_hash)
        memory_store.insert_sale(sale)
        assert memory_store.sale_exists(sale.raw_csv_hash)
        with pytest.raises(StorageError):
            memory_store.insert_sale(sale)

    def test_inventory_trigger(self, memory_store, make_sale):
        memory_store.insert_sale(make_sale(quantity_sold=3, total="7.50"))
        row = memory_store.get_inventory("LOC001", "CC001")
        assert row["starting_quantity"] == 30
        assert row["current_quantity"] == 27

        memory_store.insert_sale(make_sale(quantity_sold=2, total="5.00"))
        row = memory_store.get_inventory("LOC001", "CC001")
        assert row["starting_quantity"] == 30
        assert row["current_quantity"] == 25

    def test_sale_record_shape(self, memory_store, make_sale):
        row = memory_store.insert_sale(make_sale())
        assert row["sale_date"] == "2024-01-15T00:00:00.000Z"
        assert row["price"] == 2.5
        assert row["quantity_sold"] == 1


# ---------------------------------------------------------------------------
# Supabase (PostgREST)
# ---------------------------------------------------------------------------


class TestSupabaseSalesStore:
    @pytest.fixture
    def store(self):
        return SupabaseSalesStore("https://example.supabase.co/", "service-key")

    def test_get_location(self, store):
        payload = [{"id": "LOC001", "name": "Location LOC001", "vendor": "X"}]
        with patch(
            "vendsight.sales_store.httpx.request", return_value=_response(200, payload)
        ) as mock_request:
            row = store.get_location("LOC001")

        assert row == payload[0]
        args, kwargs = mock_request.call_args
        assert args == ("GET", "https://example.supabase.co/rest/v1/locations")
        assert kwargs["params"]["id"] == "eq.LOC001"
        assert kwargs["params"]["limit"] == "1"
        assert kwargs["headers"]["apikey"] == "service-key"
        assert kwargs["headers"]["Authorization"] == "Bearer service-key"

    def test_get_missing(self, store):
        with patch(
            "vendsight.sales_store.httpx.request", return_value=_response(200, [])
        ):
            assert store.get_product("CC001") is None

    def test_insert_sale(self, store, make_sale):
        sale = make_sale()
        with patch(
            "vendsight.sales_store.httpx.request",
            return_value=_response(201, [{"id": "abc", **sale.to_record()}]),
        ) as mock_request:
            row = store.insert_sale(sale)

        assert row["id"] == "abc"
        args, kwargs = mock_request.call_args
        assert args[0] == "POST"
        assert kwargs["json"]["raw_csv_hash"] == sale.raw_csv_hash

    def test_sale_exists(self, store):
        with patch(
            "vendsight.sales_store.httpx.request",
            return_value=_response(200, [{"id": "abc"}]),
        ) as mock_request:
            assert store.sale_exists("deadbeef")
        assert mock_request.call_args.kwargs["params"]["raw_csv_hash"] == "eq.deadbeef"

    def test_update_vendor_no_content(self, store):
        with patch(
            "vendsight.sales_store.httpx.request", return_value=_response(204)
        ) as mock_request:
            store.update_location_vendor("LOC001", "A, B")

        args, kwargs = mock_request.call_args
        assert args[0] == "PATCH"
        assert kwargs["json"] == {"vendor": "A, B"}

    def test_get_inventory_filters(self, store):
        with patch(
            "vendsight.sales_store.httpx.request",
            return_value=_response(200, [{"current_quantity": 18}]),
        ) as mock_request:
            row = store.get_inventory("LOC001", "CC001")

        assert row == {"current_quantity": 18}
        params = mock_request.call_args.kwargs["params"]
        assert params["location_id"] == "eq.LOC001"
        assert params["product_id"] == "eq.CC001"

    def test_error_status(self, store, location):
        with patch(
            "vendsight.sales_store.httpx.request",
            return_value=_response(409, text="duplicate key"),
        ):
            with pytest.raises(StorageError, match="409"):
                store.insert_location(location)

    def test_transport_error(self, store):
        with patch(
            "vendsight.sales_store.httpx.request",
            side_effect=httpx.ConnectError("refused"),
        ):
            with pytest.raises(StorageError, match="refused"):
                store.get_location("LOC001")

    def test_non_json_body(self, store):
        resp = _response(200, payload=[])
        resp.json.side_effect = ValueError("Expecting value")
        with patch("vendsight.sales_store.httpx.request", return_value=resp):
            with pytest.raises(StorageError, match="invalid JSON"):
                store.get_location("LOC001")

    def test_non_list_body(self, store, product):
        with patch(
            "vendsight.sales_store.httpx.request",
            return_value=_response(201, {"message": "ok"}),
        ):
            with pytest.raises(StorageError, match="expected a list"):
                store.insert_product(product)


class TestCreateStore:
    def test_memory_without_credentials(self):
        assert isinstance(create_store(), InMemorySalesStore)
        assert isinstance(create_store("https://x.supabase.co", ""), InMemorySalesStore)

    def test_supabase_with_credentials(self):
        store = create_store("https://x.supabase.co", "key")
        assert isinstance(store, SupabaseSalesStore)
        assert store.name == "supabase"

"""Tests for persisting ingestion results into a sales store."""

from unittest.mock import MagicMock, patch

from vendsight.adapters import CanonicalLocation, CanonicalProduct, ingest_csv
from vendsight.importer import merge_vendor_labels, persist_ingestion
from vendsight.sales_store import (
    InMemorySalesStore,
    StorageError,
    SupabaseSalesStore,
)

IOS_HEADER = "Location_ID,Product_Name,Scancode,Trans_Date,Price,Total_Amount"


class FlakySalesStore(InMemorySalesStore):
    """Rejects every sale for one product."""

    def __init__(self, failing_product: str) -> None:
        super().__init__()
        self.failing_product = failing_product

    def insert_sale(self, sale):
        if sale.product_id == self.failing_product:
            raise StorageError("connection reset")
        return super().insert_sale(sale)


class TestMergeVendorLabels:
    def test_appends(self):
        assert (
            merge_vendor_labels("Cantaloupe Systems", "iOS Vending Systems")
            == "Cantaloupe Systems, iOS Vending Systems"
        )

    def test_already_listed(self):
        assert (
            merge_vendor_labels(
                "Cantaloupe Systems, iOS Vending Systems", "iOS Vending Systems"
            )
            is None
        )

    def test_empty_existing(self):
        assert merge_vendor_labels("", "Cantaloupe Systems") == "Cantaloupe Systems"


class TestPersistIngestion:
    def test_fresh_import(self, ios_vending_csv, memory_store):
        summary = persist_ingestion(ingest_csv(ios_vending_csv), memory_store)

        assert summary.vendor_format == "ios-vending"
        assert summary.new_locations == 2
        assert summary.new_products == 4
        assert summary.processed_rows == 5
        assert summary.inventory_updates == 5
        assert summary.conflicts_resolved == 0
        assert summary.duplicates_skipped == 0
        assert summary.errors == 0
        assert summary.message == (
            "Successfully processed 5 sales records. 2 new locations, "
            "4 new products, 5 inventory updates, and 0 conflicts resolved."
        )

        assert set(memory_store.locations) == {"LOC001", "LOC002"}
        assert memory_store.locations["LOC001"]["name"] == "Location LOC001"
        assert len(memory_store.sales) == 5

    def test_inventory_trigger(self, ios_vending_csv, memory_store):
        persist_ingestion(ingest_csv(ios_vending_csv), memory_store)

        row = memory_store.get_inventory("LOC001", "CC001")
        assert row["starting_quantity"] == 20
        assert row["current_quantity"] == 18

    def test_reupload_is_idempotent(self, ios_vending_csv, memory_store):
        persist_ingestion(ingest_csv(ios_vending_csv), memory_store)
        summary = persist_ingestion(ingest_csv(ios_vending_csv), memory_store)

        assert summary.processed_rows == 0
        assert summary.duplicates_skipped == 5
        assert summary.new_locations == 0
        assert summary.new_products == 0
        assert summary.inventory_updates == 0
        assert len(memory_store.sales) == 5

    def test_duplicate_row_within_file(self, memory_store):
        row = "LOC001,Coca Cola,CC001,2024-01-15,2.50,5.00"
        result = ingest_csv("\n".join([IOS_HEADER, row, row]))

        summary = persist_ingestion(result, memory_store)

        assert summary.processed_rows == 1
        assert summary.duplicates_skipped == 1

    def test_location_vendor_conflict(self, ios_vending_csv, memory_store):
        memory_store.insert_location(
            CanonicalLocation(
                id="LOC001", name="Site LOC001", vendor="Cantaloupe Systems"
            )
        )

        summary = persist_ingestion(ingest_csv(ios_vending_csv), memory_store)

        assert summary.conflicts_resolved == 1
        assert summary.new_locations == 1
        assert (
            memory_store.locations["LOC001"]["vendor"]
            == "Cantaloupe Systems, iOS Vending Systems"
        )
        # Stored name is untouched
        assert memory_store.locations["LOC001"]["name"] == "Site LOC001"

    def test_merged_vendor_not_reconflicted(self, ios_vending_csv, memory_store):
        memory_store.insert_location(
            CanonicalLocation(
                id="LOC001",
                name="Site LOC001",
                vendor="Cantaloupe Systems, iOS Vending Systems",
            )
        )

        summary = persist_ingestion(ingest_csv(ios_vending_csv), memory_store)

        assert summary.conflicts_resolved == 0

    def test_product_name_conflict(self, ios_vending_csv, memory_store):
        memory_store.insert_product(
            CanonicalProduct(scancode="CC001", name="Coke", upc="CC001")
        )

        summary = persist_ingestion(ingest_csv(ios_vending_csv), memory_store)

        assert summary.conflicts_resolved == 1
        assert summary.new_products == 3
        assert memory_store.products["CC001"]["name"] == "Coke"

    def test_storage_errors_counted(self, ios_vending_csv):
        store = FlakySalesStore(failing_product="CC001")

        summary = persist_ingestion(ingest_csv(ios_vending_csv), store)

        assert summary.errors == 2
        assert summary.processed_rows == 3
        assert summary.inventory_updates == 3
        assert store.get_inventory("LOC001", "CC001") is None

    def test_unreadable_store_responses_counted(self, ios_vending_csv):
        """A gateway answering 200 with HTML fails each record, not the upload."""
        resp = MagicMock(status_code=200, content=b"<html>Bad gateway</html>")
        resp.json.side_effect = ValueError("not json")
        store = SupabaseSalesStore("https://example.supabase.co", "service-key")

        with patch("vendsight.sales_store.httpx.request", return_value=resp):
            summary = persist_ingestion(ingest_csv(ios_vending_csv), store)

        # 2 locations + 4 products + 5 sales
        assert summary.errors == 11
        assert summary.processed_rows == 0
        assert summary.new_locations == 0

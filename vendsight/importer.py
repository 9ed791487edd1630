"""Write an ingestion result into a ``SalesStore``.

Order of operations:
    1. locations: insert if absent; a known id reported by a different
       vendor gets the labels merged (``"A, B"``) and counts as a
       resolved conflict
    2. products: insert if absent; a known scancode with a different
       name counts as a conflict (stored name is left alone)
    3. sales: insert only if no sale with the same ``raw_csv_hash``
       exists; the storage trigger updates inventory

Every per-record storage failure is logged and counted in ``errors``;
processing continues with the next record.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel

from .adapters.base import (
    CanonicalLocation,
    CanonicalProduct,
    CanonicalSale,
    IngestionResult,
)
from .sales_store import SalesStore, StorageError

logger = logging.getLogger("vendsight.importer")

VENDOR_LABEL_SEPARATOR = ", "


class UploadSummary(BaseModel):
    """Counters reported back to the uploader."""

    vendor_format: str
    processed_rows: int = 0
    new_locations: int = 0
    new_products: int = 0
    conflicts_resolved: int = 0
    inventory_updates: int = 0
    duplicates_skipped: int = 0
    errors: int = 0

    @property
    def message(self) -> str:
        return (
            f"Successfully processed {self.processed_rows} sales records. "
            f"{self.new_locations} new locations, {self.new_products} new products, "
            f"{self.inventory_updates} inventory updates, and "
            f"{self.conflicts_resolved} conflicts resolved."
        )


def merge_vendor_labels(existing: str, incoming: str) -> str | None:
    """Return the merged label, or None if ``incoming`` is already listed."""
    labels = [part.strip() for part in existing.split(",") if part.strip()]
    if incoming in labels:
        return None
    return VENDOR_LABEL_SEPARATOR.join([*labels, incoming])


def persist_ingestion(result: IngestionResult, store: SalesStore) -> UploadSummary:
    """Persist locations, products and sales, returning upload counters."""
    summary = UploadSummary(vendor_format=result.vendor.value)

    logger.info("Processing %d locations...", len(result.locations))
    for location in result.locations:
        try:
            _persist_location(location, store, summary)
        except StorageError as e:
            logger.error("Location %s failed: %s", location.id, e)
            summary.errors += 1

    logger.info("Processing %d products...", len(result.products))
    for product in result.products:
        try:
            _persist_product(product, store, summary)
        except StorageError as e:
            logger.error("Product %s failed: %s", product.scancode, e)
            summary.errors += 1

    logger.info("Processing %d sales...", len(result.sales))
    for sale in result.sales:
        try:
            _persist_sale(sale, store, summary)
        except StorageError as e:
            logger.error(
                "Sale %s (%s/%s) failed: %s",
                sale.raw_csv_hash,
                sale.location_id,
                sale.product_id,
                e,
            )
            summary.errors += 1

    logger.info(
        "Import complete: %d rows, %d new locations, %d new products, "
        "%d conflicts, %d inventory updates, %d duplicates, %d errors",
        summary.processed_rows,
        summary.new_locations,
        summary.new_products,
        summary.conflicts_resolved,
        summary.inventory_updates,
        summary.duplicates_skipped,
        summary.errors,
    )
    return summary


def _persist_location(
    location: CanonicalLocation, store: SalesStore, summary: UploadSummary
) -> None:
    existing = store.get_location(location.id)
    if existing is None:
        store.insert_location(location)
        summary.new_locations += 1
        logger.debug("Created location %s", location.id)
        return

    stored_vendor = existing.get("vendor") or ""
    if stored_vendor == location.vendor:
        return

    merged = merge_vendor_labels(stored_vendor, location.vendor)
    if merged is None:
        return

    logger.warning(
        "Vendor conflict for location %s: %r vs %r",
        location.id,
        stored_vendor,
        location.vendor,
    )
    store.update_location_vendor(location.id, merged)
    summary.conflicts_resolved += 1


def _persist_product(
    product: CanonicalProduct, store: SalesStore, summary: UploadSummary
) -> None:
    existing = store.get_product(product.scancode)
    if existing is None:
        store.insert_product(product)
        summary.new_products += 1
        logger.debug("Created product %s (%s)", product.name, product.scancode)
        return

    if existing.get("name") != product.name:
        logger.warning(
            "Product name conflict for scancode %s: %r vs %r",
            product.scancode,
            existing.get("name"),
            product.name,
        )
        summary.conflicts_resolved += 1


def _persist_sale(sale: CanonicalSale, store: SalesStore, summary: UploadSummary) -> None:
    if store.sale_exists(sale.raw_csv_hash):
        logger.debug("Sale already exists, skipping: %s", sale.raw_csv_hash)
        summary.duplicates_skipped += 1
        return

    store.insert_sale(sale)
    summary.processed_rows += 1

    inventory = store.get_inventory(sale.location_id, sale.product_id)
    if inventory is not None:
        summary.inventory_updates += 1
        logger.debug(
            "Inventory for %s/%s: %s remaining",
            sale.location_id,
            sale.product_id,
            inventory.get("current_quantity"),
        )

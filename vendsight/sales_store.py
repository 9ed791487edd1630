"""Sales persistence layer.

Supports two backends:
    - InMemorySalesStore  — ephemeral, for dev/testing
    - SupabaseSalesStore  — persistent, for production (PostgREST API)

Usage:
    store = create_store(supabase_url, supabase_service_key)
    # SupabaseSalesStore if credentials are present, otherwise in-memory.

Tables (Supabase):

    locations (id TEXT PRIMARY KEY, name TEXT, vendor TEXT, created_at)
    products  (id UUID PRIMARY KEY, name TEXT, scancode TEXT UNIQUE, upc TEXT)
    sales     (id UUID PRIMARY KEY, location_id, product_id, quantity_sold,
               sale_date, price, total, source, raw_csv_hash, created_at)
    inventory (id UUID PRIMARY KEY, location_id, product_id,
               starting_quantity, current_quantity, last_updated)

An AFTER INSERT trigger on ``sales`` maintains ``inventory``; this layer
never writes inventory rows itself.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any

import httpx

from .adapters.base import CanonicalLocation, CanonicalProduct, CanonicalSale
from .adapters.inventory import STARTING_STOCK_MULTIPLIER

logger = logging.getLogger("vendsight.sales_store")


class StorageError(Exception):
    """Raised when a persistence operation fails."""


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------


class SalesStore(ABC):
    """Abstract interface over the locations/products/sales/inventory tables."""

    name: str = "abstract"

    @abstractmethod
    def get_location(self, location_id: str) -> dict | None: ...

    @abstractmethod
    def insert_location(self, location: CanonicalLocation) -> dict: ...

    @abstractmethod
    def update_location_vendor(self, location_id: str, vendor: str) -> None: ...

    @abstractmethod
    def get_product(self, scancode: str) -> dict | None: ...

    @abstractmethod
    def insert_product(self, product: CanonicalProduct) -> dict: ...

    @abstractmethod
    def sale_exists(self, raw_csv_hash: str) -> bool: ...

    @abstractmethod
    def insert_sale(self, sale: CanonicalSale) -> dict: ...

    @abstractmethod
    def get_inventory(self, location_id: str, product_id: str) -> dict | None: ...


# ---------------------------------------------------------------------------
# In-memory implementation (dev/testing)
# ---------------------------------------------------------------------------


class InMemorySalesStore(SalesStore):
    """Ephemeral in-memory store.

    ``insert_sale`` stands in for the database trigger: a new
    (location, product) pair opens at ``quantity * 10`` units, and every
    sale decrements ``current_quantity`` (floored at 0).
    """

    name = "memory"

    def __init__(self) -> None:
        self.locations: dict[str, dict[str, Any]] = {}
        self.products: dict[str, dict[str, Any]] = {}
        self.sales: dict[str, dict[str, Any]] = {}
        self.inventory: dict[tuple[str, str], dict[str, Any]] = {}

    def get_location(self, location_id: str) -> dict | None:
        row = self.locations.get(location_id)
        return dict(row) if row else None

    def insert_location(self, location: CanonicalLocation) -> dict:
        if location.id in self.locations:
            raise StorageError(f"Location {location.id} already exists")
        row = {**location.to_record(), "created_at": _now()}
        self.locations[location.id] = row
        return dict(row)

    def update_location_vendor(self, location_id: str, vendor: str) -> None:
        if location_id not in self.locations:
            raise StorageError(f"Location {location_id} not found")
        self.locations[location_id]["vendor"] = vendor

    def get_product(self, scancode: str) -> dict | None:
        row = self.products.get(scancode)
        return dict(row) if row else None

    def insert_product(self, product: CanonicalProduct) -> dict:
        if product.scancode in self.products:
            raise StorageError(f"Product {product.scancode} already exists")
        row = {
            "id": f"product-{len(self.products) + 1:04d}",
            **product.to_record(),
            "created_at": _now(),
        }
        self.products[product.scancode] = row
        return dict(row)

    def sale_exists(self, raw_csv_hash: str) -> bool:
        return raw_csv_hash in self.sales

    def insert_sale(self, sale: CanonicalSale) -> dict:
        if sale.raw_csv_hash in self.sales:
            raise StorageError(f"Sale {sale.raw_csv_hash} already exists")
        row = {
            "id": f"sale-{len(self.sales) + 1:06d}",
            **sale.to_record(),
            "created_at": _now(),
        }
        self.sales[sale.raw_csv_hash] = row
        self._apply_sale_to_inventory(sale)
        return dict(row)

    def get_inventory(self, location_id: str, product_id: str) -> dict | None:
        row = self.inventory.get((location_id, product_id))
        return dict(row) if row else None

    def _apply_sale_to_inventory(self, sale: CanonicalSale) -> None:
        key = (sale.location_id, sale.product_id)
        row = self.inventory.get(key)
        if row is None:
            starting = sale.quantity_sold * STARTING_STOCK_MULTIPLIER
            row = {
                "location_id": sale.location_id,
                "product_id": sale.product_id,
                "starting_quantity": starting,
                "current_quantity": starting,
            }
            self.inventory[key] = row
        row["current_quantity"] = max(0, row["current_quantity"] - sale.quantity_sold)
        row["last_updated"] = _now()


# ---------------------------------------------------------------------------
# Supabase implementation (production)
# ---------------------------------------------------------------------------


class SupabaseSalesStore(SalesStore):
    """Persistent store using the Supabase PostgREST API.

    Uses the service role key for server-side access (bypasses RLS).
    Every non-2xx response, and any body that is not a JSON list, raises
    ``StorageError`` so the importer can count the failure and move on
    to the next record.
    """

    name = "supabase"

    def __init__(self, url: str, service_key: str, timeout: float = 10.0) -> None:
        self._base_url = f"{url.rstrip('/')}/rest/v1"
        self._headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }
        self._timeout = timeout
        logger.info("SupabaseSalesStore: initialized with %s", url)

    def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict | None = None,
        json: dict | None = None,
    ) -> list[dict]:
        url = f"{self._base_url}/{table}"
        try:
            resp = httpx.request(
                method,
                url,
                headers=self._headers,
                params=params,
                json=json,
                timeout=self._timeout,
            )
        except httpx.HTTPError as e:
            raise StorageError(f"{method} {table} failed: {e}") from e

        if resp.status_code not in (200, 201, 204):
            raise StorageError(
                f"{method} {table} failed ({resp.status_code}): {resp.text}"
            )
        if resp.status_code == 204 or not resp.content:
            return []

        try:
            payload = resp.json()
        except ValueError as e:
            raise StorageError(f"{method} {table} returned invalid JSON: {e}") from e
        if not isinstance(payload, list):
            raise StorageError(
                f"{method} {table} returned {type(payload).__name__}, expected a list"
            )
        return payload

    def _first(self, table: str, params: dict) -> dict | None:
        rows = self._request("GET", table, params={**params, "limit": "1"})
        return rows[0] if rows else None

    def get_location(self, location_id: str) -> dict | None:
        return self._first(
            "locations", {"id": f"eq.{location_id}", "select": "id,name,vendor"}
        )

    def insert_location(self, location: CanonicalLocation) -> dict:
        rows = self._request("POST", "locations", json=location.to_record())
        return rows[0] if rows else location.to_record()

    def update_location_vendor(self, location_id: str, vendor: str) -> None:
        self._request(
            "PATCH",
            "locations",
            params={"id": f"eq.{location_id}"},
            json={"vendor": vendor},
        )

    def get_product(self, scancode: str) -> dict | None:
        return self._first(
            "products", {"scancode": f"eq.{scancode}", "select": "id,name,scancode"}
        )

    def insert_product(self, product: CanonicalProduct) -> dict:
        rows = self._request("POST", "products", json=product.to_record())
        return rows[0] if rows else product.to_record()

    def sale_exists(self, raw_csv_hash: str) -> bool:
        row = self._first(
            "sales", {"raw_csv_hash": f"eq.{raw_csv_hash}", "select": "id"}
        )
        return row is not None

    def insert_sale(self, sale: CanonicalSale) -> dict:
        rows = self._request("POST", "sales", json=sale.to_record())
        return rows[0] if rows else sale.to_record()

    def get_inventory(self, location_id: str, product_id: str) -> dict | None:
        return self._first(
            "inventory",
            {
                "location_id": f"eq.{location_id}",
                "product_id": f"eq.{product_id}",
                "select": "*",
            },
        )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_store(
    supabase_url: str = "",
    supabase_service_key: str = "",
) -> SalesStore:
    """Create a sales store.

    Returns SupabaseSalesStore if credentials are provided,
    InMemorySalesStore otherwise.
    """
    if supabase_url and supabase_service_key:
        logger.info("Using Supabase-backed sales store")
        return SupabaseSalesStore(supabase_url, supabase_service_key)

    logger.info("Using in-memory sales store (non-persistent)")
    return InMemorySalesStore()


def _now() -> str:
    return datetime.now(UTC).isoformat()

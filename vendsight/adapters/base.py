"""Canonical data models.

Both vendor normalizers map their rows into these records before anything
reaches storage. Identity keys:

    CanonicalLocation  → id
    CanonicalProduct   → scancode
    CanonicalSale      → raw_csv_hash (enforced by the storage layer)
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from .vendors import VendorSchema

# ---------------------------------------------------------------------------
# Canonical records
# ---------------------------------------------------------------------------


class CanonicalLocation(BaseModel):
    """A vending location (site) as reported by one vendor."""

    id: str
    name: str
    vendor: str

    def to_record(self) -> dict[str, Any]:
        return self.model_dump()


class CanonicalProduct(BaseModel):
    """A product keyed by scancode.

    Each vendor only supplies one code, which fills both ``scancode``
    and ``upc``.
    """

    scancode: str
    name: str
    upc: str

    def to_record(self) -> dict[str, Any]:
        return {"name": self.name, "scancode": self.scancode, "upc": self.upc}


class CanonicalSale(BaseModel):
    """One sale row in canonical form. Immutable once produced."""

    model_config = {"frozen": True}

    location_id: str
    product_id: str
    quantity_sold: int = Field(ge=0)
    sale_date: datetime
    price: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    source: str
    raw_csv_hash: str

    @property
    def sale_date_iso(self) -> str:
        """UTC instant with a ``Z`` suffix and millisecond precision."""
        return isoformat_utc(self.sale_date)

    def to_record(self) -> dict[str, Any]:
        """Row payload for the ``sales`` table."""
        return {
            "location_id": self.location_id,
            "product_id": self.product_id,
            "quantity_sold": self.quantity_sold,
            "sale_date": self.sale_date_iso,
            "price": float(self.price),
            "total": float(self.total),
            "source": self.source,
            "raw_csv_hash": self.raw_csv_hash,
        }


class VendorRow(BaseModel):
    """A raw CSV row projected through a vendor's column mapping table.

    Values are the trimmed cell text; nothing is parsed yet.
    """

    model_config = {"frozen": True}

    location_id: str
    product_name: str
    product_code: str
    sale_date: str
    price: str
    total: str


# ---------------------------------------------------------------------------
# Ingestion result
# ---------------------------------------------------------------------------


class IngestionResult(BaseModel):
    """Everything one ingestion call hands to the persistence layer."""

    vendor: VendorSchema
    source: str = "<upload>"
    locations: list[CanonicalLocation] = Field(default_factory=list)
    products: list[CanonicalProduct] = Field(default_factory=list)
    sales: list[CanonicalSale] = Field(default_factory=list)
    processing_time_ms: int = 0

    @property
    def vendor_label(self) -> str:
        return self.vendor.label

    @property
    def total_sales(self) -> int:
        return len(self.sales)

    @property
    def total_quantity(self) -> int:
        return sum(s.quantity_sold for s in self.sales)

    @property
    def total_revenue(self) -> Decimal:
        return sum((s.total for s in self.sales), Decimal("0"))

    @property
    def summary(self) -> str:
        """Human-readable summary of the ingestion result."""
        parts: list[str] = []
        parts.append(f"Vendor: {self.vendor_label} ({self.vendor.value})")
        parts.append(f"Source: {self.source}")
        parts.append(f"Locations: {len(self.locations):,}")
        parts.append(f"Products: {len(self.products):,}")
        parts.append(f"Sales rows: {self.total_sales:,}")
        parts.append(f"Units sold: {self.total_quantity:,}")
        parts.append(f"Revenue: ${self.total_revenue:,.2f}")
        if self.sales:
            dates = [s.sale_date for s in self.sales]
            parts.append(
                f"Date range: {isoformat_utc(min(dates))} .. {isoformat_utc(max(dates))}"
            )
        return "\n".join(parts)


def isoformat_utc(value: datetime) -> str:
    """Format an aware datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")

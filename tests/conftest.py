"""Shared fixtures for VendSight tests."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path

import pytest
from vendsight.adapters.base import CanonicalSale
from vendsight.adapters.hashing import sale_fingerprint
from vendsight.sales_store import InMemorySalesStore

FIXTURE_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def ios_vending_path() -> Path:
    return FIXTURE_DIR / "ios_vending_sample.csv"


@pytest.fixture
def cantaloupe_path() -> Path:
    return FIXTURE_DIR / "cantaloupe_sample.csv"


@pytest.fixture
def ios_vending_csv(ios_vending_path: Path) -> str:
    return ios_vending_path.read_text(encoding="utf-8")


@pytest.fixture
def cantaloupe_csv(cantaloupe_path: Path) -> str:
    # newline="" keeps the CRLF line endings of the export
    with open(cantaloupe_path, encoding="utf-8", newline="") as f:
        return f.read()


@pytest.fixture
def memory_store() -> InMemorySalesStore:
    return InMemorySalesStore()


@pytest.fixture
def make_sale():
    """Factory for CanonicalSale records with sensible defaults."""

    def _make(
        location_id: str = "LOC001",
        product_id: str = "CC001",
        quantity_sold: int = 1,
        total: str = "2.50",
        sale_date: datetime | None = None,
    ) -> CanonicalSale:
        when = sale_date or datetime(2024, 1, 15, tzinfo=UTC)
        return CanonicalSale(
            location_id=location_id,
            product_id=product_id,
            quantity_sold=quantity_sold,
            sale_date=when,
            price=Decimal("2.50"),
            total=Decimal(total),
            source="iOS Vending Systems",
            raw_csv_hash=sale_fingerprint(
                location_id, product_id, when.isoformat(), total
            ),
        )

    return _make

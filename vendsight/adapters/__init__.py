"""Vendor CSV ingestion for VendSight.

Normalizes vending-machine sales exports into canonical locations,
products and sales.

Supported sources:
    - iOS Vending Systems (Location_ID, Product_Name, Scancode, ...)
    - Cantaloupe Systems (Site_Code, Item_Description, UPC, ...)

Usage:
    from vendsight.adapters import ingest_csv

    result = ingest_csv(open("sales.csv").read())
    print(result.summary)
"""

from .base import (
    CanonicalLocation,
    CanonicalProduct,
    CanonicalSale,
    IngestionResult,
    VendorRow,
)
from .conflicts import resolve_conflict
from .detection import detect_vendor, list_vendors
from .errors import (
    IngestError,
    InvalidDateError,
    MalformedCsvError,
    UnrecognizedFormatError,
)
from .hashing import fingerprint, sale_fingerprint
from .ingest import ingest_csv, ingest_file
from .inventory import InventoryLevel, derive_inventory
from .normalizer import normalize, normalize_cantaloupe, normalize_ios_vending
from .vendors import VENDOR_PROFILES, VendorProfile, VendorSchema

__all__ = [
    "CanonicalLocation",
    "CanonicalProduct",
    "CanonicalSale",
    "IngestError",
    "IngestionResult",
    "InvalidDateError",
    "InventoryLevel",
    "MalformedCsvError",
    "UnrecognizedFormatError",
    "VENDOR_PROFILES",
    "VendorProfile",
    "VendorRow",
    "VendorSchema",
    "derive_inventory",
    "detect_vendor",
    "fingerprint",
    "ingest_csv",
    "ingest_file",
    "list_vendors",
    "normalize",
    "normalize_cantaloupe",
    "normalize_ios_vending",
    "resolve_conflict",
    "sale_fingerprint",
]

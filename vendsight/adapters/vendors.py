"""Supported vendor export formats.

Each vendor is a member of the closed ``VendorSchema`` enumeration and owns
a ``VendorProfile``: detection markers, the column mapping table, and the
naming rules for synthesized locations. Normalization is driven entirely by
this data, so adding a vendor means adding a profile here.

Column mapping (canonical field ← vendor column):

    field           iOS Vending      Cantaloupe
    location_id     Location_ID      Site_Code
    product_name    Product_Name     Item_Description
    product_code    Scancode         UPC
    sale_date       Trans_Date       Sale_Date
    price           Price            Unit_Price
    total           Total_Amount     Final_Total
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType


class VendorSchema(str, Enum):
    """Vendor CSV formats, in detection priority order."""

    IOS_VENDING = "ios-vending"
    CANTALOUPE = "cantaloupe"

    @property
    def profile(self) -> VendorProfile:
        return VENDOR_PROFILES[self]

    @property
    def label(self) -> str:
        return VENDOR_PROFILES[self].label


@dataclass(frozen=True)
class VendorProfile:
    """Static description of one vendor's CSV export."""

    schema: VendorSchema
    label: str
    markers: tuple[str, ...]
    columns: Mapping[str, str]
    location_prefix: str

    @property
    def required_columns(self) -> list[str]:
        return list(self.columns.values())

    def matches(self, header_line: str) -> bool:
        """True if every marker token appears in the (lowercased) header."""
        lowered = header_line.lower()
        return all(marker in lowered for marker in self.markers)

    def location_name(self, location_id: str) -> str:
        return f"{self.location_prefix} {location_id}"


IOS_VENDING_PROFILE = VendorProfile(
    schema=VendorSchema.IOS_VENDING,
    label="iOS Vending Systems",
    markers=("location_id", "product_name"),
    columns=MappingProxyType(
        {
            "location_id": "Location_ID",
            "product_name": "Product_Name",
            "product_code": "Scancode",
            "sale_date": "Trans_Date",
            "price": "Price",
            "total": "Total_Amount",
        }
    ),
    location_prefix="Location",
)

CANTALOUPE_PROFILE = VendorProfile(
    schema=VendorSchema.CANTALOUPE,
    label="Cantaloupe Systems",
    markers=("site_code", "item_description"),
    columns=MappingProxyType(
        {
            "location_id": "Site_Code",
            "product_name": "Item_Description",
            "product_code": "UPC",
            "sale_date": "Sale_Date",
            "price": "Unit_Price",
            "total": "Final_Total",
        }
    ),
    location_prefix="Site",
)

# Ordered by detection priority (first match wins)
VENDOR_PROFILES: Mapping[VendorSchema, VendorProfile] = MappingProxyType(
    {
        VendorSchema.IOS_VENDING: IOS_VENDING_PROFILE,
        VendorSchema.CANTALOUPE: CANTALOUPE_PROFILE,
    }
)

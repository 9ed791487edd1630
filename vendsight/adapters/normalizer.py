"""Vendor CSV normalization.

Turns the text of a vendor export into canonical locations, products and
sales in a single sequential pass. The same routine serves every vendor;
what differs is the ``VendorProfile`` (column table, naming, label).

Per row:
    1. hash the four identity cells (location, code, raw date, raw total)
    2. register the location if unseen ("Location X" / "Site X")
    3. register the product if unseen (code fills scancode and UPC)
    4. parse price and total leniently (junk → 0)
    5. derive quantity = round(total / price), or 1 when price is 0
    6. parse the date (failure aborts the whole file)
    7. emit the sale

Locations and products keep the first row's values; later rows with the
same key are not merged.
"""

from __future__ import annotations

import csv
import io
import logging
import math
from datetime import UTC, datetime
from decimal import (
    ROUND_HALF_UP,
    Decimal,
    InvalidOperation,
    Overflow,
    localcontext,
)

from .base import (
    CanonicalLocation,
    CanonicalProduct,
    CanonicalSale,
    IngestionResult,
    VendorRow,
)
from .errors import InvalidDateError, MalformedCsvError
from .hashing import sale_fingerprint
from .vendors import VendorProfile, VendorSchema

logger = logging.getLogger("vendsight.adapters.normalizer")

RawRow = dict[str, str]


# ---------------------------------------------------------------------------
# Tokenizing
# ---------------------------------------------------------------------------


def read_rows(content: str) -> tuple[list[str], list[tuple[int, RawRow]]]:
    """Tokenize CSV text into a header and ``(line_number, RawRow)`` pairs.

    Cells are trimmed and blank lines skipped.

    Raises:
        MalformedCsvError: On unterminated quotes, stray quote characters,
            a missing header, or a row whose width differs from the header.
    """
    text = content.lstrip("\ufeff")
    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    header: list[str] | None = None
    rows: list[tuple[int, RawRow]] = []

    try:
        for cells in reader:
            if not cells or all(not c.strip() for c in cells):
                continue
            cells = [c.strip() for c in cells]
            if header is None:
                header = cells
                continue
            if len(cells) != len(header):
                raise MalformedCsvError(
                    f"Line {reader.line_num}: expected {len(header)} columns, "
                    f"found {len(cells)}"
                )
            rows.append((reader.line_num, dict(zip(header, cells))))
    except csv.Error as e:
        raise MalformedCsvError(f"Line {reader.line_num}: {e}") from e

    if header is None:
        raise MalformedCsvError("CSV has no header row")

    return header, rows


def resolve_columns(header: list[str], profile: VendorProfile) -> dict[str, str]:
    """Map each canonical field to the actual header cell (case-insensitive).

    Raises:
        MalformedCsvError: If any mapped column is absent.
    """
    by_lower = {h.lower(): h for h in header}
    resolved: dict[str, str] = {}
    missing: list[str] = []

    for field, column in profile.columns.items():
        actual = by_lower.get(column.lower())
        if actual is None:
            missing.append(column)
        else:
            resolved[field] = actual

    if missing:
        raise MalformedCsvError(
            f"Missing required {profile.label} columns: {', '.join(missing)}"
        )
    return resolved


# ---------------------------------------------------------------------------
# Field parsing
# ---------------------------------------------------------------------------

_DATE_FORMATS = [
    "%m/%d/%Y",  # 01/15/2024
    "%m/%d/%y",  # 01/15/24
    "%m/%d/%Y %H:%M",  # 01/15/2024 13:45
    "%m/%d/%Y %H:%M:%S",  # 01/15/2024 13:45:10
    "%m/%d/%Y %I:%M %p",  # 01/15/2024 1:45 PM
    "%m/%d/%Y %I:%M:%S %p",  # 01/15/2024 1:45:10 PM
    "%Y/%m/%d",  # 2024/01/15
    "%m-%d-%Y",  # 01-15-2024
    "%d-%b-%Y",  # 15-Jan-2024
    "%b %d, %Y",  # Jan 15, 2024
    "%B %d, %Y",  # January 15, 2024
]


def parse_sale_date(raw: str, row_number: int | None = None) -> datetime:
    """Parse a vendor date cell into an aware UTC datetime.

    ISO 8601 is tried first, then common US export formats. Values
    without an offset are taken as UTC.

    Raises:
        InvalidDateError: If no format matches.
    """
    s = raw.strip()
    if not s:
        raise InvalidDateError(raw, row_number)

    # ISO wins outright; fromisoformat only raises ValueError, meaning "not ISO"
    parsed: datetime | None = None
    try:
        parsed = datetime.fromisoformat(s)
    except ValueError:
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(s, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        raise InvalidDateError(raw, row_number)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def parse_amount(raw: str) -> Decimal:
    """Parse a money cell, falling back to 0 for anything unparseable.

    Tolerates ``$``, thousands separators and accounting parentheses.
    Values a double cannot hold (overflowing or underflowing) count as 0.
    """
    s = raw.strip().replace("$", "").replace(",", "")
    if s.startswith("(") and s.endswith(")"):
        s = "-" + s[1:-1]
    try:
        value = Decimal(s)
    except InvalidOperation:
        return Decimal("0")
    if not value.is_finite():
        return Decimal("0")
    as_float = float(value)
    if not math.isfinite(as_float) or (value and as_float == 0):
        return Decimal("0")
    return value


def derive_quantity(price: Decimal, total: Decimal) -> int:
    """Units sold implied by a row: ``round(total / price)``, half-up.

    A zero or negative price means a free vend and counts as 1 unit, as
    does a ratio too large to represent. Refund rows (negative ratio)
    clamp to 0.
    """
    if price <= 0:
        return 1
    with localcontext() as ctx:
        ctx.traps[Overflow] = False
        units = (total / price).to_integral_value(rounding=ROUND_HALF_UP)
    if not units.is_finite():
        return 1
    return max(0, int(units))


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def normalize(content: str, schema: VendorSchema) -> IngestionResult:
    """Normalize the full text of a vendor export.

    Args:
        content: Decoded CSV text, header on the first line.
        schema: Vendor format, usually from ``detect_vendor``.

    Returns:
        IngestionResult with sales in file order and first-seen
        locations/products.

    Raises:
        MalformedCsvError: Tokenizing failed or required columns are missing.
        InvalidDateError: A row's date could not be parsed.
    """
    profile = schema.profile
    header, raw_rows = read_rows(content)
    column_for = resolve_columns(header, profile)

    locations: dict[str, CanonicalLocation] = {}
    products: dict[str, CanonicalProduct] = {}
    sales: list[CanonicalSale] = []

    for line_num, raw in raw_rows:
        row = VendorRow(**{field: raw[column] for field, column in column_for.items()})

        raw_csv_hash = sale_fingerprint(
            row.location_id, row.product_code, row.sale_date, row.total
        )

        if row.location_id not in locations:
            locations[row.location_id] = CanonicalLocation(
                id=row.location_id,
                name=profile.location_name(row.location_id),
                vendor=profile.label,
            )

        if row.product_code not in products:
            products[row.product_code] = CanonicalProduct(
                scancode=row.product_code,
                name=row.product_name,
                upc=row.product_code,
            )

        price = parse_amount(row.price)
        total = parse_amount(row.total)

        sales.append(
            CanonicalSale(
                location_id=row.location_id,
                product_id=row.product_code,
                quantity_sold=derive_quantity(price, total),
                sale_date=parse_sale_date(row.sale_date, line_num),
                price=price,
                total=total,
                source=profile.label,
                raw_csv_hash=raw_csv_hash,
            )
        )

    logger.info(
        "%s: normalized %d sales, %d locations, %d products",
        profile.label,
        len(sales),
        len(locations),
        len(products),
    )

    return IngestionResult(
        vendor=schema,
        locations=list(locations.values()),
        products=list(products.values()),
        sales=sales,
    )


def normalize_ios_vending(content: str) -> IngestionResult:
    """Normalize an iOS Vending Systems export."""
    return normalize(content, VendorSchema.IOS_VENDING)


def normalize_cantaloupe(content: str) -> IngestionResult:
    """Normalize a Cantaloupe Systems export."""
    return normalize(content, VendorSchema.CANTALOUPE)

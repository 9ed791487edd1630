"""Vendor format detection.

Only the first line of the upload is inspected. It is lowercased and
checked for each vendor's marker tokens (substring match, any column
order). Detection order (first match wins):

1. iOS Vending Systems: ``location_id`` and ``product_name``
2. Cantaloupe Systems: ``site_code`` and ``item_description``
"""

from __future__ import annotations

import logging

from .errors import UnrecognizedFormatError
from .vendors import VENDOR_PROFILES, VendorSchema

logger = logging.getLogger("vendsight.adapters.detection")


def detect_vendor(content: str) -> VendorSchema:
    """Classify CSV text as one of the supported vendor formats.

    Raises:
        UnrecognizedFormatError: If no vendor's markers are all present.
    """
    header_line = content.split("\n", 1)[0]

    for schema, profile in VENDOR_PROFILES.items():
        if profile.matches(header_line):
            logger.debug("Detected %s from header %r", schema.value, header_line)
            return schema

    supported = ", ".join(p.label for p in VENDOR_PROFILES.values())
    raise UnrecognizedFormatError(
        f"Unknown CSV format. Expected one of: {supported}"
    )


def list_vendors() -> list[dict[str, object]]:
    """List supported vendor formats and their required columns."""
    return [
        {
            "format": schema.value,
            "name": profile.label,
            "columns": profile.required_columns,
        }
        for schema, profile in VENDOR_PROFILES.items()
    ]

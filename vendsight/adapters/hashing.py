"""Content fingerprints used to spot duplicate sale rows across uploads."""

from __future__ import annotations

import hashlib


def fingerprint(content: str) -> str:
    """Return the md5 hex digest of ``content``.

    Only used as a dedup key, never for security.
    """
    return hashlib.md5(content.encode("utf-8"), usedforsecurity=False).hexdigest()


def sale_fingerprint(location_id: str, code: str, raw_date: str, raw_total: str) -> str:
    """Fingerprint of the four identity-bearing raw cells of a sale row.

    Rows agreeing on these four values collapse to the same hash even if
    product names or prices differ.
    """
    return fingerprint(f"{location_id}-{code}-{raw_date}-{raw_total}")

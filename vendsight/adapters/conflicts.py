"""Pick a winner between two versions of the same logical record."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

T = TypeVar("T")


def _updated_at(record: Any) -> Any:
    if isinstance(record, Mapping):
        return record.get("updated_at")
    return getattr(record, "updated_at", None)


def resolve_conflict(existing: T, incoming: T) -> T:
    """Return ``incoming`` only if it is strictly newer than ``existing``.

    Records are compared on ``updated_at`` (mapping key or attribute).
    Ties, and records lacking a timestamp, keep ``existing``. Fields are
    never merged.
    """
    existing_ts = _updated_at(existing)
    incoming_ts = _updated_at(incoming)
    if existing_ts is None or incoming_ts is None:
        return existing
    if incoming_ts > existing_ts:
        return incoming
    return existing

"""Inventory levels derived from a batch of sales.

Rough estimate used for reporting; live inventory is maintained by the
database trigger that fires on sale insert. The arithmetic is literal:

    starting += quantity_sold * 10
    current   = max(0, starting - quantity_sold)

``current`` is recomputed from the running ``starting`` total and the
*current* row's quantity only. It is not decremented cumulatively.
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel

from .base import CanonicalSale

# Unknown opening stock is assumed to be 10x the observed sale volume
STARTING_STOCK_MULTIPLIER = 10


class InventoryLevel(BaseModel):
    """Estimated stock for one (location, product) pair."""

    starting: int = 0
    current: int = 0


def derive_inventory(
    sales: Iterable[CanonicalSale],
) -> dict[tuple[str, str], InventoryLevel]:
    """Fold sales, in order, into per-(location_id, product_id) levels."""
    levels: dict[tuple[str, str], InventoryLevel] = {}

    for sale in sales:
        key = (sale.location_id, sale.product_id)
        level = levels.setdefault(key, InventoryLevel())
        level.starting += sale.quantity_sold * STARTING_STOCK_MULTIPLIER
        level.current = max(0, level.starting - sale.quantity_sold)

    return levels

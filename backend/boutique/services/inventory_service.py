# Overview: Service-layer operations for the variant inventory ledger.

# backend/boutique/services/inventory_service.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import and_, delete, func, or_, update

from ..constants import (
    LOW_STOCK_THRESHOLD,
    STOCK_IN_STOCK,
    STOCK_LOW,
    STOCK_OUT,
    STORE_TYPES,
)
from ..extensions import db
from ..models import ProductInventory
from .concurrency import lock_for_update

"""
Inventory Ledger Invariants (authoritative)

Keying:
- One counter per (product_id, store_type, color, size). The 'online' and
  'boutique' partitions are independent; nothing here moves stock between them.
- A missing row means zero stock, never an error.

Mutation:
- Quantities change only through increment/decrement/set, applied as SQL
  expressions (quantity = quantity +/- :delta). No caller writes back a
  quantity it read earlier.
- decrement() is conditional (WHERE quantity >= :delta). When the row cannot
  cover the debit nothing is written and InsufficientStock is raised.
- allow_negative=True is reserved for the permissive exchange debit in
  return_service; it is the only way a counter can drop below zero.

Transactions:
- Functions here flush but never commit. The caller (sale, return, product
  service, CLI) owns the unit of work and its rollback.
"""

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class VariantKey:
    product_id: int
    store_type: str
    color: str
    size: str

    def describe(self) -> str:
        return f"product {self.product_id} {self.color}/{self.size} ({self.store_type})"

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "store_type": self.store_type,
            "color": self.color,
            "size": self.size,
        }


class InsufficientStock(ValueError):
    """Raised when a debit exceeds the quantity on hand for a variant."""

    def __init__(self, key: VariantKey, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for {key.describe()}: "
            f"requested {requested}, available {available}"
        )
        self.key = key
        self.requested = requested
        self.available = available


def _check_store_type(store_type: str) -> None:
    if store_type not in STORE_TYPES:
        raise ValueError(f"store_type must be one of: {', '.join(STORE_TYPES)}")


def _variant_clause(key: VariantKey):
    return and_(
        ProductInventory.product_id == key.product_id,
        ProductInventory.store_type == key.store_type,
        ProductInventory.color == key.color,
        ProductInventory.size == key.size,
    )


def _insert_row(key: VariantKey, quantity: int) -> ProductInventory:
    row = ProductInventory(
        product_id=key.product_id,
        store_type=key.store_type,
        color=key.color,
        size=key.size,
        quantity=quantity,
    )
    db.session.add(row)
    db.session.flush()
    return row


def get_variant_quantity(product_id: int, store_type: str, color: str, size: str) -> int:
    """Quantity on hand for one variant; 0 when no record exists."""
    key = VariantKey(product_id, store_type, color, size)
    qty = db.session.query(ProductInventory.quantity).filter(_variant_clause(key)).scalar()
    return int(qty or 0)


def set_variant_quantity(
    product_id: int, store_type: str, color: str, size: str, quantity: int
) -> ProductInventory:
    """
    Upsert the absolute quantity of a variant.

    Used for bulk-loading stock when a product is created or its variant set
    is replaced. Sales and returns never call this; they use deltas.
    """
    _check_store_type(store_type)
    if quantity < 0:
        raise ValueError("quantity must be >= 0")

    key = VariantKey(product_id, store_type, color, size)
    result = db.session.execute(
        update(ProductInventory).where(_variant_clause(key)).values(quantity=quantity)
    )
    if result.rowcount == 0:
        return _insert_row(key, quantity)

    return db.session.query(ProductInventory).filter(_variant_clause(key)).one()


def increment(product_id: int, store_type: str, color: str, size: str, delta: int) -> int:
    """
    Credit a variant by delta (> 0), creating the record at delta if absent.

    Returns the new quantity.
    """
    _check_store_type(store_type)
    if delta <= 0:
        raise ValueError("delta must be > 0")

    key = VariantKey(product_id, store_type, color, size)
    result = db.session.execute(
        update(ProductInventory)
        .where(_variant_clause(key))
        .values(quantity=ProductInventory.quantity + delta)
    )
    if result.rowcount == 0:
        _insert_row(key, delta)
        return delta
    return get_variant_quantity(product_id, store_type, color, size)


def decrement(
    product_id: int,
    store_type: str,
    color: str,
    size: str,
    delta: int,
    *,
    allow_negative: bool = False,
) -> int:
    """
    Debit a variant by delta (> 0).

    Raises InsufficientStock when the variant holds fewer than delta units;
    nothing is written in that case. With allow_negative=True the debit is
    applied unconditionally (a missing record is created at -delta).

    Returns the new quantity.
    """
    _check_store_type(store_type)
    if delta <= 0:
        raise ValueError("delta must be > 0")

    key = VariantKey(product_id, store_type, color, size)
    conditions = [_variant_clause(key)]
    if not allow_negative:
        conditions.append(ProductInventory.quantity >= delta)

    result = db.session.execute(
        update(ProductInventory)
        .where(*conditions)
        .values(quantity=ProductInventory.quantity - delta)
    )
    if result.rowcount == 0:
        if allow_negative:
            _insert_row(key, -delta)
            return -delta
        available = get_variant_quantity(product_id, store_type, color, size)
        raise InsufficientStock(key, delta, available)

    return get_variant_quantity(product_id, store_type, color, size)


def delete_all_for_product(product_id: int) -> int:
    """Remove every variant record of a product. Returns the number of rows removed."""
    result = db.session.execute(
        delete(ProductInventory).where(ProductInventory.product_id == product_id)
    )
    db.session.expire_all()
    return result.rowcount or 0


def bulk_set_inventory(product_id: int, rows: Iterable) -> list[ProductInventory]:
    """Apply set_variant_quantity for each (store_type, color, size, quantity) row."""
    return [
        set_variant_quantity(product_id, row.store_type, row.color, row.size, row.quantity)
        for row in rows
    ]


def list_product_inventory(product_id: int, store_type: str | None = None) -> list[ProductInventory]:
    q = db.session.query(ProductInventory).filter(ProductInventory.product_id == product_id)
    if store_type is not None:
        q = q.filter(ProductInventory.store_type == store_type)
    return q.order_by(
        ProductInventory.store_type,
        ProductInventory.color,
        ProductInventory.size,
    ).all()


def total_quantity(product_id: int, store_type: str | None = None) -> int:
    q = db.session.query(
        func.coalesce(func.sum(ProductInventory.quantity), 0)
    ).filter(ProductInventory.product_id == product_id)
    if store_type is not None:
        q = q.filter(ProductInventory.store_type == store_type)
    return int(q.scalar() or 0)


def stock_status(total: int) -> str:
    """Fixed thresholds: 0 out of stock, below 10 low, otherwise in stock."""
    if total <= 0:
        return STOCK_OUT
    if total < LOW_STOCK_THRESHOLD:
        return STOCK_LOW
    return STOCK_IN_STOCK


def lock_variants(keys: Iterable[VariantKey]) -> None:
    """
    Lock the existing rows for the given variants, in key order.

    Sorting keeps two transactions touching overlapping variants from
    deadlocking each other. Missing rows are not locked; their creation is
    guarded by the unique constraint.
    """
    ordered = sorted(set(keys))
    if not ordered:
        return
    q = db.session.query(ProductInventory).filter(
        or_(*[_variant_clause(k) for k in ordered])
    ).order_by(
        ProductInventory.product_id,
        ProductInventory.store_type,
        ProductInventory.color,
        ProductInventory.size,
    )
    lock_for_update(q).all()

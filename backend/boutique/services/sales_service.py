"""
Sales Service - channel-aware sale creation

WHY: A sale is the only workflow that must refuse to oversell. Everything is
validated before the first write, so a rejected sale never leaves a trace.

CREATION ORDER (strict):
1. Header rules (channel matches the store partition, payment method per
   partition, online-only fields)
2. Fee from (subtotal, payment method, store type), frozen on the sale
3. Pre-check: every requested variant (quantities summed per variant) must
   be covered by the ledger; any shortfall rejects the whole sale
4. Commit: debit each variant, persist Sale + SaleItems, one transaction
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import IntegrityError

from ..commands import SaleCommand
from ..constants import (
    CHANNEL_FOR_STORE_TYPE,
    ORDER_STATUS_PENDING_DELIVERY,
    STORE_TYPE_ONLINE,
)
from ..extensions import db
from ..models import Product, Sale, SaleItem
from ..time_utils import utcnow
from ..validation import NotFoundError, ValidationError
from . import inventory_service
from .concurrency import begin_write_transaction, run_with_retry
from .fee_service import allowed_payment_methods, compute_total
from .inventory_service import InsufficientStock, VariantKey

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1)


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class InsufficientInventory(SaleError):
    """
    One or more variants cannot cover the requested quantity.

    details["items"] lists every failing variant with requested, available
    and shortfall quantities.
    """
    def __init__(self, shortfalls: list[dict]):
        parts = [
            f"{s['color']} {s['size']} (product {s['product_id']}, {s['store_type']}): "
            f"available {s['available_quantity']}, requested {s['requested_quantity']}"
            for s in shortfalls
        ]
        super().__init__(
            "Insufficient inventory for " + "; ".join(parts),
            details={"items": shortfalls},
        )
        self.shortfalls = shortfalls


def _is_online(cmd: SaleCommand) -> bool:
    return cmd.store_type == STORE_TYPE_ONLINE


def _validate_header(cmd: SaleCommand) -> None:
    if not cmd.items:
        raise ValidationError("items cannot be empty", field="items")

    expected_channel = CHANNEL_FOR_STORE_TYPE[cmd.store_type]
    if cmd.channel != expected_channel:
        raise ValidationError(
            f"channel {cmd.channel!r} does not match store_type {cmd.store_type!r} "
            f"(expected {expected_channel!r})",
            field="channel",
        )

    allowed = allowed_payment_methods(cmd.store_type)
    if cmd.payment_method not in allowed:
        raise ValidationError(
            f"payment_method {cmd.payment_method!r} is not accepted for {cmd.store_type} sales "
            f"(allowed: {', '.join(allowed)})",
            field="payment_method",
        )

    is_online = _is_online(cmd)
    if cmd.tracking_number and not is_online:
        raise ValidationError("tracking_number is only valid for online sales", field="tracking_number")
    if cmd.order_status and not is_online:
        raise ValidationError("order_status is only valid for online sales", field="order_status")

    for item in cmd.items:
        if item.quantity <= 0:
            raise ValidationError("quantity must be > 0", field="quantity")
        if item.unit_price < 0:
            raise ValidationError("unit_price must be >= 0", field="unit_price")


def requested_by_variant(store_type: str, items) -> "OrderedDict[VariantKey, int]":
    """Sum requested quantities per variant, preserving first-seen order."""
    totals: OrderedDict[VariantKey, int] = OrderedDict()
    for item in items:
        key = VariantKey(item.product_id, store_type, item.color, item.size)
        totals[key] = totals.get(key, 0) + item.quantity
    return totals


def find_shortfalls(requested: dict[VariantKey, int]) -> list[dict]:
    """Compare requested quantities with the ledger; read-only."""
    shortfalls = []
    for key, qty in requested.items():
        available = inventory_service.get_variant_quantity(
            key.product_id, key.store_type, key.color, key.size
        )
        if available < qty:
            shortfalls.append({
                **key.to_dict(),
                "requested_quantity": qty,
                "available_quantity": available,
                "shortfall": qty - available,
            })
    return shortfalls


def _require_products(product_ids) -> None:
    ids = set(product_ids)
    found = {
        pid for (pid,) in db.session.query(Product.id).filter(Product.id.in_(ids)).all()
    }
    missing = sorted(ids - found)
    if missing:
        raise NotFoundError("Product", missing[0])


def _next_invoice_number() -> str:
    """
    Timestamp-derived invoice number (INV-<epoch ms>).

    A numeric suffix is appended when another sale already took the same
    millisecond; the unique constraint backs this up across processes.
    """
    epoch_ms = int((utcnow() - _EPOCH).total_seconds() * 1000)
    base = f"INV-{epoch_ms}"
    candidate = base
    suffix = 1
    while db.session.query(Sale.id).filter_by(invoice_number=candidate).first() is not None:
        suffix += 1
        candidate = f"{base}-{suffix}"
    return candidate


def create_sale(cmd: SaleCommand) -> Sale:
    """
    Create a sale and debit its variants as one unit.

    Raises:
        ValidationError: header rules violated (nothing written)
        NotFoundError: an item references an unknown product (nothing written)
        InsufficientInventory: any variant cannot cover its quantity (nothing written)
    """
    _validate_header(cmd)

    def _op():
        begin_write_transaction()

        _require_products(item.product_id for item in cmd.items)

        requested = requested_by_variant(cmd.store_type, cmd.items)
        inventory_service.lock_variants(requested.keys())

        shortfalls = find_shortfalls(requested)
        if shortfalls:
            raise InsufficientInventory(shortfalls)

        subtotal = cmd.subtotal
        if subtotal is None:
            subtotal = sum((item.unit_price * item.quantity for item in cmd.items), Decimal("0"))
        fees, total = compute_total(subtotal, cmd.payment_method, cmd.store_type)

        order_status = cmd.order_status
        if order_status is None and _is_online(cmd):
            order_status = ORDER_STATUS_PENDING_DELIVERY

        sale = Sale(
            invoice_number=_next_invoice_number(),
            channel=cmd.channel,
            payment_method=cmd.payment_method,
            store_type=cmd.store_type,
            customer_name=cmd.customer_name,
            customer_phone=cmd.customer_phone,
            employee=cmd.employee,
            tracking_number=cmd.tracking_number,
            order_status=order_status,
            subtotal=total - fees,
            fees=fees,
            total=total,
            created_at=utcnow(),
        )
        db.session.add(sale)
        db.session.flush()

        for item in cmd.items:
            db.session.add(SaleItem(
                sale_id=sale.id,
                product_id=item.product_id,
                color=item.color,
                size=item.size,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=item.unit_price * item.quantity,
            ))

        for key, qty in requested.items():
            try:
                inventory_service.decrement(key.product_id, key.store_type, key.color, key.size, qty)
            except InsufficientStock as exc:
                # Lost a race after the pre-check; the transaction is rolled back.
                raise InsufficientInventory([{
                    **key.to_dict(),
                    "requested_quantity": exc.requested,
                    "available_quantity": exc.available,
                    "shortfall": exc.requested - exc.available,
                }]) from exc

        db.session.commit()
        logger.info(
            "Sale %s created: %s/%s subtotal=%s fees=%s total=%s items=%d",
            sale.invoice_number, sale.store_type, sale.payment_method,
            sale.subtotal, sale.fees, sale.total, len(cmd.items),
        )
        return sale

    return run_with_retry(_op, retry_on=(IntegrityError,))


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError("Sale", sale_id)
    return sale


def list_sales() -> list[Sale]:
    return db.session.query(Sale).order_by(Sale.created_at.desc(), Sale.id.desc()).all()

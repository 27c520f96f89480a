"""
Return Processing Service - refunds and exchanges against one sale

WHY: A return puts goods back on the shelf, and an exchange also takes a
replacement off it. Both must land in the store partition the goods were
sold from, and both must happen together or not at all.

RECONCILIATION (per return item, shared header fields):
- refund:                      credit returned variant
- exchange/product-to-product: credit returned variant, debit
                               (new_product_id, new_color, new_size)
- exchange/color-change:       credit returned variant, debit same product
                               and size in new_color
- exchange/size-change:        credit returned variant, debit same product
                               and color in new_size

Returnable units are what the customer still holds from the sale: the sold
lines, minus earlier returns, plus replacements handed over by earlier
exchanges. A refund without an amount is the pro-rata share of the sale
total for the returned units.

The store type is always the original sale's. The credit is unconditional.
The replacement debit follows STRICT_EXCHANGE_STOCK:
- False (default): applied even when it drives the variant below zero; the
  oversell is logged as a warning and reconciled by staff
- True: every replacement is pre-checked like a sale line and the whole
  return is rejected with InsufficientInventory before anything is written
"""
from __future__ import annotations

import logging
from collections import OrderedDict
from decimal import Decimal, ROUND_HALF_UP

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..commands import ReturnCommand
from ..constants import (
    EXCHANGE_COLOR_CHANGE,
    EXCHANGE_PRODUCT_TO_PRODUCT,
    EXCHANGE_SIZE_CHANGE,
    RETURN_TYPE_EXCHANGE,
    RETURN_TYPE_REFUND,
)
from ..extensions import db
from ..models import Product, Return, ReturnItem, Sale
from ..time_utils import utcnow
from ..validation import NotFoundError, ValidationError
from . import inventory_service
from .concurrency import begin_write_transaction, run_with_retry
from .inventory_service import InsufficientStock, VariantKey
from .sales_service import InsufficientInventory, find_shortfalls

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

# Header fields each exchange sub-type must carry
_REQUIRED_EXCHANGE_FIELDS = {
    EXCHANGE_PRODUCT_TO_PRODUCT: ("new_product_id", "new_color", "new_size"),
    EXCHANGE_COLOR_CHANGE: ("new_color",),
    EXCHANGE_SIZE_CHANGE: ("new_size",),
}


# =============================================================================
# VALIDATION
# =============================================================================

def _validate_shape(cmd: ReturnCommand) -> None:
    """Field combinations per return type; no database access."""
    if not cmd.items:
        raise ValidationError("items cannot be empty", field="items")

    if cmd.return_type == RETURN_TYPE_REFUND:
        if cmd.exchange_type is not None:
            raise ValidationError("exchange_type is only valid for exchanges", field="exchange_type")
        for field in ("new_product_id", "new_color", "new_size"):
            if getattr(cmd, field) is not None:
                raise ValidationError(f"{field} is only valid for exchanges", field=field)
        return

    if cmd.exchange_type is None:
        raise ValidationError("exchange_type is required for exchanges", field="exchange_type")
    for field in _REQUIRED_EXCHANGE_FIELDS[cmd.exchange_type]:
        if getattr(cmd, field) is None:
            raise ValidationError(
                f"{field} is required for {cmd.exchange_type} exchanges", field=field
            )
    if cmd.refund_amount is not None and cmd.refund_amount != ZERO:
        raise ValidationError("refund_amount must be 0 for exchanges", field="refund_amount")


def _replacement_variant(source, product_id: int, color: str, size: str) -> tuple:
    """(product_id, color, size) handed out for one returned unit of an exchange."""
    if source.exchange_type == EXCHANGE_PRODUCT_TO_PRODUCT:
        return (source.new_product_id, source.new_color, source.new_size)
    if source.exchange_type == EXCHANGE_COLOR_CHANGE:
        return (product_id, source.new_color, size)
    return (product_id, color, source.new_size)


def _replacement_for(cmd: ReturnCommand, returned: VariantKey) -> VariantKey:
    product_id, color, size = _replacement_variant(cmd, returned.product_id, returned.color, returned.size)
    return VariantKey(product_id, returned.store_type, color, size)


def _holdings(sale: Sale) -> tuple[dict[tuple, int], dict[tuple, Decimal]]:
    """
    Units of each variant the customer still holds from a sale, and the
    sale-line value of one such unit.

    Starts from the sale lines and replays earlier returns oldest first:
    returned units leave the holding, and an exchange hands over its
    replacement at the value of the unit it replaced.
    """
    held: dict[tuple, int] = {}
    line_value: dict[tuple, Decimal] = {}
    for item in sale.items:
        key = (item.product_id, item.color, item.size)
        held[key] = held.get(key, 0) + item.quantity
        line_value[key] = line_value.get(key, ZERO) + Decimal(item.total_price)
    unit_value = {key: line_value[key] / held[key] for key in held}

    for prior in get_sale_returns(sale.id):
        for item in prior.items:
            key = (item.product_id, item.color, item.size)
            held[key] = held.get(key, 0) - item.quantity
            if prior.return_type != RETURN_TYPE_EXCHANGE:
                continue
            new_key = _replacement_variant(prior, *key)
            value = unit_value.get(key, ZERO)
            existing = max(held.get(new_key, 0), 0)
            if existing:
                value = (unit_value[new_key] * existing + value * item.quantity) / (existing + item.quantity)
            held[new_key] = existing + item.quantity
            unit_value[new_key] = value
    return held, unit_value


def _check_against_sale(sale: Sale, returned: dict[VariantKey, int], held: dict[tuple, int]) -> None:
    """Returned variants must be held from the sale, and never more than are held."""
    for key, qty in returned.items():
        variant = (key.product_id, key.color, key.size)
        if variant not in held:
            raise ValidationError(
                f"{key.describe()} was not sold on sale {sale.id}", field="items"
            )
        remaining = max(held[variant], 0)
        if qty > remaining:
            raise ValidationError(
                f"Cannot return {qty} of {key.describe()}: {remaining} still returnable",
                field="items",
            )


def _default_refund(
    sale: Sale,
    returned: dict[VariantKey, int],
    held: dict[tuple, int],
    unit_value: dict[tuple, Decimal],
    remaining: Decimal,
) -> Decimal:
    """
    Pro-rata share of the sale total for the returned units.

    The share is the returned units' line value over the sale's line value,
    applied to the total so fees come back in proportion. The return that
    hands back the last held unit takes whatever balance is left.
    """
    if sum(returned.values()) >= sum(max(q, 0) for q in held.values()):
        return remaining
    lines_value = sum((Decimal(item.total_price) for item in sale.items), ZERO)
    if lines_value == ZERO:
        return ZERO
    returned_value = sum(
        (unit_value.get((k.product_id, k.color, k.size), ZERO) * qty for k, qty in returned.items()),
        ZERO,
    )
    share = (Decimal(sale.total) * returned_value / lines_value).quantize(ZERO, rounding=ROUND_HALF_UP)
    return min(share, remaining)


def _refund_amount(cmd: ReturnCommand, sale: Sale, returned, held, unit_value) -> Decimal:
    if cmd.return_type == RETURN_TYPE_EXCHANGE:
        return ZERO

    refunded = (
        db.session.query(func.coalesce(func.sum(Return.refund_amount), 0))
        .filter(Return.original_sale_id == sale.id)
        .scalar()
    )
    refunded = Decimal(str(refunded or 0)).quantize(ZERO)
    remaining = Decimal(sale.total) - refunded

    if cmd.refund_amount is not None:
        amount = cmd.refund_amount
    else:
        amount = _default_refund(sale, returned, held, unit_value, remaining)
    if amount > remaining:
        raise ValidationError(
            f"refund_amount {amount} exceeds the refundable balance {remaining} of sale {sale.id}",
            field="refund_amount",
        )
    return amount


# =============================================================================
# RETURN CREATION
# =============================================================================

def create_return(cmd: ReturnCommand) -> Return:
    """
    Persist a refund or exchange and reconcile the inventory ledger.

    Raises:
        ValidationError: bad field combination, unsold or over-returned items
        NotFoundError: original sale or replacement product does not exist
        InsufficientInventory: strict mode only, replacement not in stock
    """
    _validate_shape(cmd)
    strict = bool(current_app.config.get("STRICT_EXCHANGE_STOCK", False))

    def _op():
        begin_write_transaction()

        sale = db.session.get(Sale, cmd.original_sale_id)
        if sale is None:
            raise NotFoundError("Sale", cmd.original_sale_id)
        if cmd.new_product_id is not None and db.session.get(Product, cmd.new_product_id) is None:
            raise NotFoundError("Product", cmd.new_product_id)

        store_type = sale.store_type
        returned: OrderedDict[VariantKey, int] = OrderedDict()
        replacements: OrderedDict[VariantKey, int] = OrderedDict()
        for item in cmd.items:
            key = VariantKey(item.product_id, store_type, item.color, item.size)
            returned[key] = returned.get(key, 0) + item.quantity
            if cmd.return_type == RETURN_TYPE_EXCHANGE:
                new_key = _replacement_for(cmd, key)
                if new_key == key:
                    raise ValidationError(
                        f"exchange replacement for {key.describe()} is the same variant",
                        field="exchange_type",
                    )
                replacements[new_key] = replacements.get(new_key, 0) + item.quantity

        held, unit_value = _holdings(sale)
        _check_against_sale(sale, returned, held)
        refund_amount = _refund_amount(cmd, sale, returned, held, unit_value)

        inventory_service.lock_variants(list(returned) + list(replacements))

        if strict and replacements:
            # Credits land first, so a replacement may draw on stock this
            # same return puts back.
            net_debits = OrderedDict(
                (key, qty - returned.get(key, 0))
                for key, qty in replacements.items()
                if qty > returned.get(key, 0)
            )
            shortfalls = find_shortfalls(net_debits)
            if shortfalls:
                raise InsufficientInventory(shortfalls)

        return_doc = Return(
            original_sale_id=sale.id,
            return_type=cmd.return_type,
            exchange_type=cmd.exchange_type,
            new_product_id=cmd.new_product_id if cmd.exchange_type == EXCHANGE_PRODUCT_TO_PRODUCT else None,
            new_color=cmd.new_color if cmd.exchange_type in (EXCHANGE_PRODUCT_TO_PRODUCT, EXCHANGE_COLOR_CHANGE) else None,
            new_size=cmd.new_size if cmd.exchange_type in (EXCHANGE_PRODUCT_TO_PRODUCT, EXCHANGE_SIZE_CHANGE) else None,
            refund_amount=refund_amount,
            created_at=utcnow(),
        )
        db.session.add(return_doc)
        db.session.flush()

        for item in cmd.items:
            db.session.add(ReturnItem(
                return_id=return_doc.id,
                product_id=item.product_id,
                color=item.color,
                size=item.size,
                quantity=item.quantity,
            ))

        for key, qty in returned.items():
            inventory_service.increment(key.product_id, key.store_type, key.color, key.size, qty)

        for key, qty in replacements.items():
            if strict:
                try:
                    inventory_service.decrement(key.product_id, key.store_type, key.color, key.size, qty)
                except InsufficientStock as exc:
                    raise InsufficientInventory([{
                        **key.to_dict(),
                        "requested_quantity": exc.requested,
                        "available_quantity": exc.available,
                        "shortfall": exc.requested - exc.available,
                    }]) from exc
                continue

            new_qty = inventory_service.decrement(
                key.product_id, key.store_type, key.color, key.size, qty, allow_negative=True
            )
            if new_qty < 0:
                logger.warning(
                    "Exchange on sale %s oversold %s: quantity now %d",
                    sale.id, key.describe(), new_qty,
                )

        db.session.commit()
        logger.info(
            "Return %s on sale %s: %s%s refund=%s items=%d",
            return_doc.id, sale.id, return_doc.return_type,
            f"/{return_doc.exchange_type}" if return_doc.exchange_type else "",
            return_doc.refund_amount, len(cmd.items),
        )
        return return_doc

    return run_with_retry(_op, retry_on=(IntegrityError,))


# =============================================================================
# QUERY HELPERS
# =============================================================================

def get_return(return_id: int) -> Return:
    return_doc = db.session.get(Return, return_id)
    if return_doc is None:
        raise NotFoundError("Return", return_id)
    return return_doc


def get_sale_returns(sale_id: int) -> list[Return]:
    """All returns recorded against a sale, oldest first."""
    return (
        db.session.query(Return)
        .filter_by(original_sale_id=sale_id)
        .order_by(Return.created_at.asc(), Return.id.asc())
        .all()
    )


def list_returns() -> list[Return]:
    return db.session.query(Return).order_by(Return.created_at.desc(), Return.id.desc()).all()

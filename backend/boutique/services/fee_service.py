# Overview: Channel fee rules; pure functions with no database access.

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from ..constants import (
    BOUTIQUE_PAYMENT_METHODS,
    ONLINE_PAYMENT_METHODS,
    PAYMENT_VISA,
    STORE_TYPE_BOUTIQUE,
    STORE_TYPE_ONLINE,
)

VISA_FEE_RATE = Decimal("0.05")
CENT = Decimal("0.01")


def allowed_payment_methods(store_type: str) -> tuple[str, ...]:
    """Payment methods offered by each store partition."""
    if store_type == STORE_TYPE_ONLINE:
        return ONLINE_PAYMENT_METHODS
    if store_type == STORE_TYPE_BOUTIQUE:
        return BOUTIQUE_PAYMENT_METHODS
    raise ValueError(f"unknown store_type: {store_type!r}")


def compute_fee(subtotal, payment_method: str, store_type: str) -> Decimal:
    """
    Fee charged on top of the subtotal.

    Card payments in the boutique carry a 5% surcharge; every other
    combination (cash, bank transfer, cash on delivery) is free.
    The result is rounded half-up to the cent.
    """
    amount = subtotal if isinstance(subtotal, Decimal) else Decimal(str(subtotal))
    if store_type == STORE_TYPE_BOUTIQUE and payment_method == PAYMENT_VISA:
        return (amount * VISA_FEE_RATE).quantize(CENT, rounding=ROUND_HALF_UP)
    return Decimal("0.00")


def compute_total(subtotal, payment_method: str, store_type: str) -> tuple[Decimal, Decimal]:
    """Return (fees, total) with total = subtotal + fees."""
    amount = subtotal if isinstance(subtotal, Decimal) else Decimal(str(subtotal))
    amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    fees = compute_fee(amount, payment_method, store_type)
    return fees, amount + fees

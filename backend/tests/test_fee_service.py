from decimal import Decimal

import pytest

from boutique.constants import PAYMENT_METHODS, STORE_TYPES
from boutique.services.fee_service import allowed_payment_methods, compute_fee, compute_total


@pytest.mark.parametrize("subtotal", ["0", "1", "99.99", "200", "1234.56"])
def test_visa_in_boutique_is_five_percent(subtotal):
    amount = Decimal(subtotal)
    expected = (amount * Decimal("0.05")).quantize(Decimal("0.01"))
    assert compute_fee(amount, "visa", "boutique") == expected


_FREE_COMBINATIONS = [
    (method, store)
    for store in STORE_TYPES
    for method in PAYMENT_METHODS
    if (method, store) != ("visa", "boutique")
]


@pytest.mark.parametrize("payment_method, store_type", _FREE_COMBINATIONS)
def test_every_other_combination_is_free(payment_method, store_type):
    assert compute_fee(Decimal("500.00"), payment_method, store_type) == Decimal("0.00")


def test_fee_rounds_half_up_to_the_cent():
    # 0.30 * 5% = 0.015
    assert compute_fee(Decimal("0.30"), "visa", "boutique") == Decimal("0.02")


def test_compute_total_adds_fee():
    fees, total = compute_total(Decimal("200"), "visa", "boutique")
    assert fees == Decimal("10.00")
    assert total == Decimal("210.00")


def test_compute_total_accepts_plain_numbers():
    fees, total = compute_total(150, "cash", "boutique")
    assert (fees, total) == (Decimal("0.00"), Decimal("150.00"))


def test_allowed_payment_methods_per_store():
    assert set(allowed_payment_methods("online")) == {"cash-on-delivery", "bank-transfer"}
    assert set(allowed_payment_methods("boutique")) == {"cash", "visa"}
    with pytest.raises(ValueError):
        allowed_payment_methods("warehouse")

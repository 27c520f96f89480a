"""
Return reconciliation: refunds credit the returned variant; exchanges credit
it and debit the replacement, always inside the original sale's partition.
"""
from decimal import Decimal

import pytest

from boutique.models import Return
from boutique.services import inventory_service, return_service, sales_service
from boutique.services.sales_service import InsufficientInventory
from boutique.validation import NotFoundError, ValidationError

from conftest import make_product, return_cmd, sale_cmd


def _qty(product_id, color, size, store_type="boutique"):
    return inventory_service.get_variant_quantity(product_id, store_type, color, size)


@pytest.fixture
def sold(db_session):
    """P1 (black, M) at 4 in the boutique, 2 sold by visa for 200 + fee."""
    pid = make_product("P1", stock=[("boutique", "black", "M", 4)])["id"]
    sale = sales_service.create_sale(
        sale_cmd([(pid, "black", "M", 2, "100")], payment_method="visa", subtotal="200")
    )
    return pid, sale


# =============================================================================
# REFUNDS
# =============================================================================

def test_full_refund_restores_stock_and_defaults_amount(sold):
    pid, sale = sold
    assert _qty(pid, "black", "M") == 2

    ret = return_service.create_return(return_cmd(sale.id, [(pid, "black", "M", 2)]))

    assert _qty(pid, "black", "M") == 4
    assert ret.refund_amount == Decimal("210.00")
    assert ret.exchange_type is None


def test_sell_then_refund_round_trip(db_session):
    pid = make_product("RT", stock=[("boutique", "red", "L", 7)])["id"]
    sale = sales_service.create_sale(sale_cmd([(pid, "red", "L", 3, "80")]))

    return_service.create_return(return_cmd(sale.id, [(pid, "red", "L", 3)]))

    assert _qty(pid, "red", "L") == 7


def test_partial_refund_with_explicit_amount(sold):
    pid, sale = sold
    ret = return_service.create_return(return_cmd(sale.id, [(pid, "black", "M", 1)], refund_amount="105"))
    assert ret.refund_amount == Decimal("105.00")
    assert _qty(pid, "black", "M") == 3


def test_refunds_cannot_exceed_the_sale_total(sold):
    pid, sale = sold
    return_service.create_return(return_cmd(sale.id, [(pid, "black", "M", 1)], refund_amount="200"))

    with pytest.raises(ValidationError) as exc_info:
        return_service.create_return(return_cmd(sale.id, [(pid, "black", "M", 1)], refund_amount="20"))
    assert exc_info.value.field == "refund_amount"
    assert _qty(pid, "black", "M") == 3


def test_default_refund_is_pro_rata_with_fee(sold):
    pid, sale = sold

    first = return_service.create_return(return_cmd(sale.id, [(pid, "black", "M", 1)]))
    second = return_service.create_return(return_cmd(sale.id, [(pid, "black", "M", 1)]))

    assert first.refund_amount == Decimal("105.00")
    assert second.refund_amount == Decimal("105.00")
    assert _qty(pid, "black", "M") == 4


def test_default_refund_weights_lines_by_value(db_session):
    pid = make_product("MIX", stock=[("boutique", "black", "M", 3), ("boutique", "red", "S", 3)])["id"]
    sale = sales_service.create_sale(sale_cmd(
        [(pid, "black", "M", 1, "300"), (pid, "red", "S", 1, "100")], payment_method="visa",
    ))
    assert sale.total == Decimal("420.00")

    ret = return_service.create_return(return_cmd(sale.id, [(pid, "red", "S", 1)]))

    assert ret.refund_amount == Decimal("105.00")


def test_refund_lands_in_the_sale_partition(db_session):
    pid = make_product("ONL", stock=[("online", "black", "M", 3), ("boutique", "black", "M", 3)])["id"]
    sale = sales_service.create_sale(sale_cmd(
        [(pid, "black", "M", 1, "95")], store_type="online", payment_method="bank-transfer"
    ))

    return_service.create_return(return_cmd(sale.id, [(pid, "black", "M", 1)]))

    assert _qty(pid, "black", "M", "online") == 3
    assert _qty(pid, "black", "M", "boutique") == 3


# =============================================================================
# EXCHANGES (permissive default)
# =============================================================================

def test_exchange_for_unstocked_variant_goes_negative(sold, caplog):
    pid, sale = sold

    with caplog.at_level("WARNING", logger="boutique.services.return_service"):
        ret = return_service.create_return(return_cmd(
            sale.id, [(pid, "black", "M", 1)],
            return_type="exchange", exchange_type="product-to-product",
            new_product_id=pid, new_color="red", new_size="L",
        ))

    assert _qty(pid, "black", "M") == 3
    assert _qty(pid, "red", "L") == -1
    assert ret.refund_amount == Decimal("0.00")
    assert "oversold" in caplog.text


def test_product_to_product_conserves_units(db_session):
    a = make_product("A", stock=[("boutique", "black", "M", 5)])["id"]
    b = make_product("B", stock=[("boutique", "white", "S", 6)])["id"]
    sale = sales_service.create_sale(sale_cmd([(a, "black", "M", 2, "100")]))
    before_a, before_b = _qty(a, "black", "M"), _qty(b, "white", "S")

    ret = return_service.create_return(return_cmd(
        sale.id, [(a, "black", "M", 2)],
        return_type="exchange", exchange_type="product-to-product",
        new_product_id=b, new_color="white", new_size="S",
    ))

    assert _qty(a, "black", "M") == before_a + 2
    assert _qty(b, "white", "S") == before_b - 2
    assert ret.new_product_id == b


def test_color_change(db_session):
    pid = make_product("CC", stock=[("boutique", "black", "M", 3), ("boutique", "pink", "M", 3)])["id"]
    sale = sales_service.create_sale(sale_cmd([(pid, "black", "M", 1, "100")]))

    ret = return_service.create_return(return_cmd(
        sale.id, [(pid, "black", "M", 1)],
        return_type="exchange", exchange_type="color-change", new_color="pink",
    ))

    assert _qty(pid, "black", "M") == 3
    assert _qty(pid, "pink", "M") == 2
    assert (ret.new_color, ret.new_size, ret.new_product_id) == ("pink", None, None)


def test_size_change(db_session):
    pid = make_product("SC", stock=[("boutique", "black", "M", 3), ("boutique", "black", "L", 3)])["id"]
    sale = sales_service.create_sale(sale_cmd([(pid, "black", "M", 1, "100")]))

    return_service.create_return(return_cmd(
        sale.id, [(pid, "black", "M", 1)],
        return_type="exchange", exchange_type="size-change", new_size="L",
    ))

    assert _qty(pid, "black", "M") == 3
    assert _qty(pid, "black", "L") == 2


def test_replacement_from_an_exchange_can_be_refunded(dress):
    pid = dress["id"]
    sale = sales_service.create_sale(sale_cmd([(pid, "black", "M", 1, "100")]))
    return_service.create_return(return_cmd(
        sale.id, [(pid, "black", "M", 1)],
        return_type="exchange", exchange_type="size-change", new_size="L",
    ))
    assert _qty(pid, "black", "L") == -1

    ret = return_service.create_return(return_cmd(sale.id, [(pid, "black", "L", 1)]))

    assert ret.refund_amount == Decimal("100.00")
    assert _qty(pid, "black", "L") == 0
    assert _qty(pid, "black", "M") == 5

    # The exchanged-away unit is no longer held by the customer.
    with pytest.raises(ValidationError):
        return_service.create_return(return_cmd(sale.id, [(pid, "black", "M", 1)]))


def test_replacement_can_be_exchanged_again(db_session):
    pid = make_product("RE", stock=[
        ("boutique", "black", "M", 2), ("boutique", "black", "L", 2), ("boutique", "red", "L", 2),
    ])["id"]
    sale = sales_service.create_sale(sale_cmd([(pid, "black", "M", 1, "100")]))

    return_service.create_return(return_cmd(
        sale.id, [(pid, "black", "M", 1)],
        return_type="exchange", exchange_type="size-change", new_size="L",
    ))
    return_service.create_return(return_cmd(
        sale.id, [(pid, "black", "L", 1)],
        return_type="exchange", exchange_type="color-change", new_color="red",
    ))

    assert (_qty(pid, "black", "M"), _qty(pid, "black", "L"), _qty(pid, "red", "L")) == (2, 2, 1)
    with pytest.raises(ValidationError):
        return_service.create_return(return_cmd(sale.id, [(pid, "red", "L", 2)]))


def test_exchange_stays_in_the_sale_partition(db_session):
    pid = make_product("XP", stock=[
        ("online", "black", "M", 2),
        ("online", "black", "L", 2),
        ("boutique", "black", "L", 9),
    ])["id"]
    sale = sales_service.create_sale(sale_cmd(
        [(pid, "black", "M", 1, "95")], store_type="online", payment_method="cash-on-delivery"
    ))

    return_service.create_return(return_cmd(
        sale.id, [(pid, "black", "M", 1)],
        return_type="exchange", exchange_type="size-change", new_size="L",
    ))

    assert _qty(pid, "black", "L", "online") == 1
    assert _qty(pid, "black", "L", "boutique") == 9


# =============================================================================
# EXCHANGES (strict mode)
# =============================================================================

def test_strict_mode_rejects_unstocked_replacement(sold, strict_exchanges, db_session):
    pid, sale = sold

    with pytest.raises(InsufficientInventory) as exc_info:
        return_service.create_return(return_cmd(
            sale.id, [(pid, "black", "M", 1)],
            return_type="exchange", exchange_type="color-change", new_color="red",
        ))

    assert exc_info.value.details["items"][0]["color"] == "red"
    assert _qty(pid, "black", "M") == 2
    assert _qty(pid, "red", "M") == 0
    assert db_session.query(Return).count() == 0


def test_strict_mode_allows_stocked_replacement(strict_exchanges, db_session):
    pid = make_product("ST", stock=[("boutique", "black", "M", 2), ("boutique", "red", "M", 1)])["id"]
    sale = sales_service.create_sale(sale_cmd([(pid, "black", "M", 1, "100")]))

    return_service.create_return(return_cmd(
        sale.id, [(pid, "black", "M", 1)],
        return_type="exchange", exchange_type="color-change", new_color="red",
    ))

    assert _qty(pid, "black", "M") == 2
    assert _qty(pid, "red", "M") == 0


# =============================================================================
# VALIDATION
# =============================================================================

@pytest.mark.parametrize("exchange_type, header, missing", [
    ("product-to-product", {"new_color": "red", "new_size": "L"}, "new_product_id"),
    ("product-to-product", {"new_product_id": 1, "new_size": "L"}, "new_color"),
    ("color-change", {"new_size": "L"}, "new_color"),
    ("size-change", {"new_color": "red"}, "new_size"),
])
def test_exchange_requires_subtype_fields(sold, exchange_type, header, missing):
    pid, sale = sold
    with pytest.raises(ValidationError) as exc_info:
        return_service.create_return(return_cmd(
            sale.id, [(pid, "black", "M", 1)],
            return_type="exchange", exchange_type=exchange_type, **header,
        ))
    assert exc_info.value.field == missing
    assert _qty(pid, "black", "M") == 2


def test_exchange_requires_exchange_type(sold):
    pid, sale = sold
    with pytest.raises(ValidationError):
        return_service.create_return(return_cmd(sale.id, [(pid, "black", "M", 1)], return_type="exchange"))


def test_refund_rejects_exchange_type(sold):
    pid, sale = sold
    with pytest.raises(ValidationError) as exc_info:
        return_service.create_return(return_cmd(
            sale.id, [(pid, "black", "M", 1)], exchange_type="color-change", new_color="red",
        ))
    assert exc_info.value.field == "exchange_type"


def test_exchange_must_not_carry_a_refund(sold):
    pid, sale = sold
    with pytest.raises(ValidationError) as exc_info:
        return_service.create_return(return_cmd(
            sale.id, [(pid, "black", "M", 1)],
            return_type="exchange", exchange_type="size-change", new_size="L", refund_amount="50",
        ))
    assert exc_info.value.field == "refund_amount"


def test_exchange_to_the_same_variant_is_rejected(sold):
    pid, sale = sold
    with pytest.raises(ValidationError):
        return_service.create_return(return_cmd(
            sale.id, [(pid, "black", "M", 1)],
            return_type="exchange", exchange_type="color-change", new_color="black",
        ))


def test_cannot_return_an_unsold_variant(sold):
    pid, sale = sold
    with pytest.raises(ValidationError):
        return_service.create_return(return_cmd(sale.id, [(pid, "white", "M", 1)]))
    assert _qty(pid, "white", "M") == 0


def test_cannot_return_more_than_sold_across_returns(sold):
    pid, sale = sold
    return_service.create_return(return_cmd(sale.id, [(pid, "black", "M", 1)], refund_amount="100"))

    with pytest.raises(ValidationError):
        return_service.create_return(return_cmd(sale.id, [(pid, "black", "M", 2)], refund_amount="0"))
    assert _qty(pid, "black", "M") == 3


def test_unknown_sale_and_product_are_not_found(sold):
    pid, sale = sold
    with pytest.raises(NotFoundError):
        return_service.create_return(return_cmd(9999, [(pid, "black", "M", 1)]))
    with pytest.raises(NotFoundError):
        return_service.create_return(return_cmd(
            sale.id, [(pid, "black", "M", 1)],
            return_type="exchange", exchange_type="product-to-product",
            new_product_id=9999, new_color="red", new_size="L",
        ))


def test_get_and_list_returns(sold):
    pid, sale = sold
    ret = return_service.create_return(return_cmd(sale.id, [(pid, "black", "M", 1)]))

    data = return_service.get_return(ret.id).to_dict(include_items=True)
    assert data["original_sale"]["id"] == sale.id
    assert data["items"][0]["quantity"] == 1
    assert [r.id for r in return_service.list_returns()] == [ret.id]
    assert [r.id for r in return_service.get_sale_returns(sale.id)] == [ret.id]

    with pytest.raises(NotFoundError):
        return_service.get_return(4242)

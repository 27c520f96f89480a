from decimal import Decimal

import pytest

from boutique.commands import InventoryLine
from boutique.services import inventory_service, products_service, sales_service
from boutique.validation import ConflictError, DuplicateModelNumber, NotFoundError, ValidationError

from conftest import make_product, sale_cmd


def test_create_product_with_initial_inventory(db_session):
    created = make_product("EVE-001", stock=[
        ("boutique", "black", "38", 4),
        ("online", "black", "38", 6),
        ("online", "red", "40", 1),
    ])

    assert created["model_number"] == "EVE-001"
    assert created["store_price"] == "100.00"
    assert created["total_quantity"] == 11
    assert created["status"] == "in-stock"
    assert len(created["inventory"]) == 3


def test_duplicate_model_number_writes_nothing(db_session):
    make_product("DUP-1", stock=[("boutique", "black", "M", 1)])

    with pytest.raises(DuplicateModelNumber) as exc_info:
        make_product("DUP-1", stock=[("boutique", "white", "S", 9)])

    assert exc_info.value.model_number == "DUP-1"
    assert len(products_service.get_products_with_status()) == 1


def test_update_patch_keeps_inventory(db_session):
    created = make_product("UPD-1", stock=[("boutique", "black", "M", 3)])

    updated = products_service.update_product(
        product_id=created["id"], patch={"store_price": Decimal("120.00")}
    )

    assert updated["store_price"] == "120.00"
    assert updated["total_quantity"] == 3


def test_update_with_inventory_replaces_variant_set(db_session):
    created = make_product("UPD-2", stock=[
        ("boutique", "black", "M", 3),
        ("boutique", "red", "M", 2),
    ])

    updated = products_service.update_product(
        product_id=created["id"],
        patch={},
        inventory=[InventoryLine("online", "green", "L", 12)],
    )

    assert [(r["store_type"], r["color"], r["size"], r["quantity"]) for r in updated["inventory"]] == [
        ("online", "green", "L", 12)
    ]
    assert inventory_service.get_variant_quantity(created["id"], "boutique", "black", "M") == 0


def test_update_to_taken_model_number(db_session):
    make_product("TAKEN")
    other = make_product("FREE")
    with pytest.raises(DuplicateModelNumber):
        products_service.update_product(product_id=other["id"], patch={"model_number": "TAKEN"})


def test_update_unknown_product(db_session):
    with pytest.raises(NotFoundError):
        products_service.update_product(product_id=999, patch={})


def test_delete_removes_product_and_variants(db_session):
    created = make_product("DEL-1", stock=[("boutique", "black", "M", 3)])

    products_service.delete_product(product_id=created["id"])

    assert products_service.get_products_with_status() == []
    assert inventory_service.list_product_inventory(created["id"]) == []


def test_delete_refused_once_sold(db_session):
    created = make_product("DEL-2", stock=[("boutique", "black", "M", 3)])
    sales_service.create_sale(sale_cmd([(created["id"], "black", "M", 1, "100")]))

    with pytest.raises(ConflictError):
        products_service.delete_product(product_id=created["id"])

    assert inventory_service.get_variant_quantity(created["id"], "boutique", "black", "M") == 2


def test_products_with_status_by_partition(db_session):
    make_product("ST-1", stock=[("boutique", "black", "M", 12), ("online", "black", "M", 3)])
    make_product("ST-2", stock=[("online", "red", "S", 0)])

    everything = {p["model_number"]: p for p in products_service.get_products_with_status()}
    assert everything["ST-1"]["total_quantity"] == 15
    assert everything["ST-1"]["status"] == "in-stock"
    assert everything["ST-2"]["status"] == "out-of-stock"

    online = {p["model_number"]: p for p in products_service.get_products_with_status("online")}
    assert online["ST-1"]["total_quantity"] == 3
    assert online["ST-1"]["status"] == "low-stock"
    assert all(row["store_type"] == "online" for row in online["ST-1"]["inventory"])


def test_products_with_status_rejects_unknown_partition(db_session):
    with pytest.raises(ValidationError):
        products_service.get_products_with_status("warehouse")


def test_set_inventory_upserts_some_variants(db_session):
    created = make_product("SET-1", stock=[("boutique", "black", "M", 3)])

    products_service.set_inventory(
        product_id=created["id"],
        lines=[InventoryLine("boutique", "black", "M", 8), InventoryLine("boutique", "white", "S", 2)],
    )

    product = products_service.get_product(created["id"], "boutique")
    assert product["total_quantity"] == 10

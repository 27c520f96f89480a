# backend/boutique/services/products_service.py
"""
Catalog service: products and their variant stock sets.

A product is created together with its initial inventory rows and may later
be edited in two ways: a partial field patch, or a full edit that also
replaces the whole variant set (delete_all_for_product + bulk_set_inventory).
Listing annotates each product with its variants, total quantity and the
derived stock status.
"""
from __future__ import annotations

import logging

from ..constants import STORE_TYPES
from ..extensions import db
from ..models import Product, Return, ReturnItem, SaleItem
from ..validation import ConflictError, DuplicateModelNumber, NotFoundError, ValidationError
from . import inventory_service
from .concurrency import run_with_retry

logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {
    "model_number",
    "company_name",
    "product_type",
    "store_price",
    "online_price",
    "image_url",
    "specifications",
}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _check_store_type(store_type: str | None) -> None:
    if store_type is not None and store_type not in STORE_TYPES:
        raise ValidationError(
            f"store_type must be one of: {', '.join(STORE_TYPES)}", field="store_type"
        )


def _require_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product", product_id)
    return product


def get_product_by_model_number(model_number: str) -> Product | None:
    return db.session.query(Product).filter_by(model_number=model_number).first()


def product_with_inventory(product: Product, store_type: str | None = None) -> dict:
    """
    Product dict annotated with its variants, total quantity and status.

    With store_type the variants and total are restricted to that partition;
    without it both partitions are summed.
    """
    rows = inventory_service.list_product_inventory(product.id, store_type)
    total = sum(row.quantity for row in rows)
    data = product.to_dict()
    data["inventory"] = [row.to_dict() for row in rows]
    data["total_quantity"] = total
    data["status"] = inventory_service.stock_status(total)
    return data


def get_product(product_id: int, store_type: str | None = None) -> dict:
    _check_store_type(store_type)
    return product_with_inventory(_require_product(product_id), store_type)


def get_products_with_status(store_type: str | None = None) -> list[dict]:
    _check_store_type(store_type)
    products = db.session.query(Product).order_by(Product.id.asc()).all()
    return [product_with_inventory(p, store_type) for p in products]


def create_product(*, patch: dict, inventory: list | None = None) -> dict:
    """
    Create a product and load its initial variant stock.

    Raises DuplicateModelNumber when model_number is already taken; nothing
    is written in that case.
    """
    inventory = inventory or []

    def _op():
        if get_product_by_model_number(patch["model_number"]) is not None:
            raise DuplicateModelNumber(patch["model_number"])

        product = Product()
        apply_product_patch(product, patch)
        db.session.add(product)
        db.session.flush()

        inventory_service.bulk_set_inventory(product.id, inventory)

        db.session.commit()
        logger.info(
            "Created product %s (%s) with %d variant rows",
            product.id, product.model_number, len(inventory),
        )
        return product_with_inventory(product)

    return run_with_retry(_op)


def update_product(*, product_id: int, patch: dict, inventory: list | None = None) -> dict:
    """
    Patch product fields; when inventory is given, replace the variant set.

    Passing inventory=[] clears all stock rows for the product.
    """
    def _op():
        product = _require_product(product_id)

        new_model = patch.get("model_number")
        if new_model is not None and new_model != product.model_number:
            existing = get_product_by_model_number(new_model)
            if existing is not None and existing.id != product.id:
                raise DuplicateModelNumber(new_model)

        apply_product_patch(product, patch)
        db.session.flush()

        if inventory is not None:
            inventory_service.delete_all_for_product(product.id)
            inventory_service.bulk_set_inventory(product.id, inventory)

        db.session.commit()
        return product_with_inventory(product)

    return run_with_retry(_op)


def delete_product(*, product_id: int) -> None:
    """
    Delete a product and all of its variant rows.

    Products that appear on a sale or a return are kept for history and
    cannot be deleted (ConflictError).
    """
    def _op():
        product = _require_product(product_id)

        sold = db.session.query(SaleItem.id).filter_by(product_id=product_id).first()
        returned = db.session.query(ReturnItem.id).filter_by(product_id=product_id).first()
        exchanged = db.session.query(Return.id).filter_by(new_product_id=product_id).first()
        if sold is not None or returned is not None or exchanged is not None:
            raise ConflictError(
                f"Product {product_id} is referenced by sales or returns and cannot be deleted"
            )

        inventory_service.delete_all_for_product(product_id)
        db.session.delete(product)
        db.session.commit()
        logger.info("Deleted product %s", product_id)

    run_with_retry(_op)


def set_inventory(*, product_id: int, lines: list) -> list[dict]:
    """Upsert absolute quantities for some variants of one product."""
    def _op():
        _require_product(product_id)
        rows = inventory_service.bulk_set_inventory(product_id, lines)
        db.session.commit()
        return [row.to_dict() for row in rows]

    return run_with_retry(_op)

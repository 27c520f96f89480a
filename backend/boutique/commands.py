"""
Typed commands built from request payloads.

Routes parse JSON into these frozen dataclasses before anything reaches a
service; services never see raw dicts for sales or returns. Parsing here is
structural (required fields, enum values, numeric types, non-empty item
lists). Cross-field business rules (payment method per store, exchange
fields per sub-type) are checked by the services themselves.

Both snake_case and the camelCase keys sent by the web client are accepted.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from .constants import (
    EXCHANGE_TYPES,
    ORDER_STATUSES,
    PAYMENT_METHODS,
    RETURN_TYPES,
    SALES_CHANNELS,
    STORE_TYPES,
)
from .models import Product
from .validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_money_range,
    enforce_rules_product,
    validate_payload,
    optional_text,
    require_choice,
    require_text,
    to_int,
    to_money,
)


_ALIASES = {
    "payment_method": "paymentMethod",
    "store_type": "storeType",
    "customer_name": "customerName",
    "customer_phone": "customerPhone",
    "tracking_number": "trackingNumber",
    "order_status": "orderStatus",
    "product_id": "productId",
    "unit_price": "unitPrice",
    "original_sale_id": "originalSaleId",
    "return_type": "returnType",
    "exchange_type": "exchangeType",
    "new_product_id": "newProductId",
    "new_color": "newColor",
    "new_size": "newSize",
    "refund_amount": "refundAmount",
    "model_number": "modelNumber",
    "company_name": "companyName",
    "product_type": "productType",
    "store_price": "storePrice",
    "online_price": "onlinePrice",
    "image_url": "imageUrl",
}


def normalize_keys(payload: dict) -> dict:
    """Map camelCase client keys onto snake_case; snake_case wins on conflict."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    out = dict(payload)
    for snake, camel in _ALIASES.items():
        if camel in out:
            value = out.pop(camel)
            out.setdefault(snake, value)
    return out


def _require_positive_int(payload: dict, key: str) -> int:
    if payload.get(key) is None:
        raise ValidationError(f"{key} is required", field=key)
    value = to_int(payload[key], key)
    if value <= 0:
        raise ValidationError(f"{key} must be > 0", field=key)
    return value


def _optional_money(payload: dict, key: str) -> Decimal | None:
    raw = payload.get(key)
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    amount = to_money(raw, key)
    enforce_money_range({key: amount}, key)
    return amount


def _item_list(body: dict) -> list:
    items = body.get("items")
    if items is None:
        raise ValidationError("items is required", field="items")
    if not isinstance(items, list):
        raise ValidationError("items must be a list", field="items")
    if not items:
        raise ValidationError("items cannot be empty", field="items")
    return items


def _header(body: dict, key: str) -> dict:
    # Accept {"sale": {...}, "items": [...]} as well as a flat body
    header = body.get(key, body)
    if not isinstance(header, dict):
        raise ValidationError(f"{key} must be an object", field=key)
    return normalize_keys(header)


# =============================================================================
# INVENTORY
# =============================================================================

@dataclass(frozen=True)
class InventoryLine:
    store_type: str
    color: str
    size: str
    quantity: int


def parse_inventory_line(payload: Any) -> InventoryLine:
    data = normalize_keys(payload)
    quantity = to_int(data.get("quantity", 0), "quantity")
    if quantity < 0:
        raise ValidationError("quantity must be >= 0", field="quantity")
    return InventoryLine(
        store_type=require_choice(data, "store_type", STORE_TYPES),
        color=require_text(data, "color"),
        size=require_text(data, "size"),
        quantity=quantity,
    )


def parse_inventory_lines(payload: Any) -> list[InventoryLine]:
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise ValidationError("inventory must be a list", field="inventory")
    lines = [parse_inventory_line(row) for row in payload]
    seen = set()
    for line in lines:
        key = (line.store_type, line.color, line.size)
        if key in seen:
            raise ValidationError(
                f"duplicate inventory row for {line.color}/{line.size} ({line.store_type})",
                field="inventory",
            )
        seen.add(key)
    return lines


# =============================================================================
# PRODUCTS
# =============================================================================

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "model_number",
        "company_name",
        "product_type",
        "store_price",
        "online_price",
        "image_url",
        "specifications",
    },
    required_on_create={"model_number", "company_name", "product_type", "store_price", "online_price"},
)


def parse_product_request(body: Any, *, partial: bool) -> tuple[dict, list[InventoryLine] | None]:
    """
    Split {"product": {...}, "inventory": [...]} (or a flat body with an
    "inventory" key) into a validated field patch and inventory lines.

    inventory is None when the key is absent, so an update leaves the
    variant set alone; an explicit [] clears it.
    """
    if not isinstance(body, dict):
        raise ValidationError("Invalid JSON payload")
    inventory = body.get("inventory")
    if "product" in body:
        header = body["product"]
    else:
        header = {k: v for k, v in body.items() if k != "inventory"}

    fields = normalize_keys(header)
    patch = validate_payload(model=Product, payload=fields, policy=PRODUCT_POLICY, partial=partial)
    enforce_rules_product(patch)

    lines = parse_inventory_lines(inventory) if inventory is not None else None
    return patch, lines


# =============================================================================
# SALES
# =============================================================================

@dataclass(frozen=True)
class SaleItemCommand:
    product_id: int
    color: str
    size: str
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True)
class SaleCommand:
    channel: str
    payment_method: str
    store_type: str
    customer_name: str
    customer_phone: str
    items: tuple[SaleItemCommand, ...]
    subtotal: Decimal | None = None
    employee: str | None = None
    tracking_number: str | None = None
    order_status: str | None = None


def parse_sale_item(payload: Any) -> SaleItemCommand:
    data = normalize_keys(payload)
    if data.get("unit_price") is None:
        raise ValidationError("unit_price is required", field="unit_price")
    unit_price = to_money(data["unit_price"], "unit_price")
    enforce_money_range({"unit_price": unit_price}, "unit_price")
    return SaleItemCommand(
        product_id=_require_positive_int(data, "product_id"),
        color=require_text(data, "color"),
        size=require_text(data, "size"),
        quantity=_require_positive_int(data, "quantity"),
        unit_price=unit_price,
    )


def parse_sale_request(body: Any) -> SaleCommand:
    if not isinstance(body, dict):
        raise ValidationError("Invalid JSON payload")
    header = _header(body, "sale")
    items = tuple(parse_sale_item(item) for item in _item_list(body))

    order_status = optional_text(header, "order_status")
    if order_status is not None and order_status not in ORDER_STATUSES:
        raise ValidationError(
            f"order_status must be one of: {', '.join(ORDER_STATUSES)}", field="order_status"
        )

    return SaleCommand(
        channel=require_choice(header, "channel", SALES_CHANNELS),
        payment_method=require_choice(header, "payment_method", PAYMENT_METHODS),
        store_type=require_choice(header, "store_type", STORE_TYPES),
        customer_name=require_text(header, "customer_name"),
        customer_phone=require_text(header, "customer_phone"),
        items=items,
        subtotal=_optional_money(header, "subtotal"),
        employee=optional_text(header, "employee"),
        tracking_number=optional_text(header, "tracking_number"),
        order_status=order_status,
    )


# =============================================================================
# RETURNS
# =============================================================================

@dataclass(frozen=True)
class ReturnItemCommand:
    product_id: int
    color: str
    size: str
    quantity: int


@dataclass(frozen=True)
class ReturnCommand:
    original_sale_id: int
    return_type: str
    items: tuple[ReturnItemCommand, ...]
    exchange_type: str | None = None
    new_product_id: int | None = None
    new_color: str | None = None
    new_size: str | None = None
    refund_amount: Decimal | None = None


def parse_return_item(payload: Any) -> ReturnItemCommand:
    data = normalize_keys(payload)
    return ReturnItemCommand(
        product_id=_require_positive_int(data, "product_id"),
        color=require_text(data, "color"),
        size=require_text(data, "size"),
        quantity=_require_positive_int(data, "quantity"),
    )


def parse_return_request(body: Any) -> ReturnCommand:
    if not isinstance(body, dict):
        raise ValidationError("Invalid JSON payload")
    header = _header(body, "return")
    items = tuple(parse_return_item(item) for item in _item_list(body))

    exchange_type = optional_text(header, "exchange_type")
    if exchange_type is not None and exchange_type not in EXCHANGE_TYPES:
        raise ValidationError(
            f"exchange_type must be one of: {', '.join(EXCHANGE_TYPES)}", field="exchange_type"
        )

    new_product_id = None
    if header.get("new_product_id") not in (None, ""):
        new_product_id = _require_positive_int(header, "new_product_id")

    return ReturnCommand(
        original_sale_id=_require_positive_int(header, "original_sale_id"),
        return_type=require_choice(header, "return_type", RETURN_TYPES),
        items=items,
        exchange_type=exchange_type,
        new_product_id=new_product_id,
        new_color=optional_text(header, "new_color"),
        new_size=optional_text(header, "new_size"),
        refund_amount=_optional_money(header, "refund_amount"),
    )

# backend/boutique/routes/inventory.py
"""
Inventory ledger routes.

- GET /api/inventory?product_id=&store_type=&color=&size=  quantity of one variant
- PUT /api/inventory  {"product_id": 1, "inventory": [{store_type, color, size, quantity}]}
  sets absolute quantities (stock counts, corrections). Sales and returns
  never go through here; they apply deltas.
"""
from flask import Blueprint, current_app, jsonify, request

from ..commands import normalize_keys, parse_inventory_lines
from ..constants import STORE_TYPES
from ..services import inventory_service, products_service
from ..validation import ValidationError, require_choice, require_text, to_int
from .errors import DOMAIN_ERRORS, error_response

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
def variant_quantity_route():
    args = normalize_keys(request.args.to_dict())
    try:
        if args.get("product_id") is None:
            raise ValidationError("product_id is required", field="product_id")
        product_id = to_int(args["product_id"], "product_id")
        store_type = require_choice(args, "store_type", STORE_TYPES)
        color = require_text(args, "color")
        size = require_text(args, "size")
    except DOMAIN_ERRORS as e:
        return error_response(e)

    quantity = inventory_service.get_variant_quantity(product_id, store_type, color, size)
    return jsonify({
        "product_id": product_id,
        "store_type": store_type,
        "color": color,
        "size": size,
        "quantity": quantity,
    })


@inventory_bp.put("")
def set_inventory_route():
    payload = normalize_keys(request.get_json(silent=True) or {})
    try:
        if payload.get("product_id") is None:
            raise ValidationError("product_id is required", field="product_id")
        product_id = to_int(payload["product_id"], "product_id")
        lines = parse_inventory_lines(payload.get("inventory"))
        if not lines:
            raise ValidationError("inventory cannot be empty", field="inventory")
        rows = products_service.set_inventory(product_id=product_id, lines=lines)
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to set inventory")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"product_id": product_id, "inventory": rows}), 200

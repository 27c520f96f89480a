# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/boutique/routes/products.py
"""
Product catalog routes.

A product is created and edited together with its variant stock:
- POST /api/products          {"product": {...}, "inventory": [...]}
- PUT  /api/products/<id>     partial patch; "inventory" replaces the variant set
- GET  /api/products          every product with variants, total and status
  (?store_type=online|boutique restricts variants and totals to one partition)
"""
from flask import Blueprint, current_app, jsonify, request

from ..commands import parse_product_request
from ..services import products_service
from .errors import DOMAIN_ERRORS, error_response

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    store_type = request.args.get("store_type") or None
    try:
        return jsonify({"products": products_service.get_products_with_status(store_type)})
    except DOMAIN_ERRORS as e:
        return error_response(e)


@products_bp.post("")
def create_product_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch, lines = parse_product_request(payload, partial=False)
        created = products_service.create_product(patch=patch, inventory=lines or [])
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"product": created}), 201


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    store_type = request.args.get("store_type") or None
    try:
        return jsonify({"product": products_service.get_product(product_id, store_type)})
    except DOMAIN_ERRORS as e:
        return error_response(e)


@products_bp.get("/<int:product_id>/inventory")
def product_inventory_route(product_id: int):
    """Variant rows of one product, optionally for one store partition."""
    store_type = request.args.get("store_type") or None
    try:
        product = products_service.get_product(product_id, store_type)
    except DOMAIN_ERRORS as e:
        return error_response(e)
    return jsonify({
        "product_id": product_id,
        "inventory": product["inventory"],
        "total_quantity": product["total_quantity"],
        "status": product["status"],
    })


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch, lines = parse_product_request(payload, partial=True)
        updated = products_service.update_product(product_id=product_id, patch=patch, inventory=lines)
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"product": updated}), 200


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    try:
        products_service.delete_product(product_id=product_id)
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"ok": True}), 200

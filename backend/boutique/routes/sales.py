# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/boutique/routes/sales.py
"""Sales API routes"""

from flask import Blueprint, current_app, jsonify, request

from ..commands import parse_sale_request
from ..services import sales_service
from .errors import DOMAIN_ERRORS, error_response


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
def create_sale_route():
    """
    Create a sale: {"sale": {...header...}, "items": [...]}.

    409 with details.items when any variant is short; nothing is written.
    """
    try:
        cmd = parse_sale_request(request.get_json(silent=True))
        sale = sales_service.create_sale(cmd)
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"sale": sale.to_dict(include_items=True)}), 201


@sales_bp.get("")
def list_sales_route():
    return jsonify({"sales": [s.to_dict() for s in sales_service.list_sales()]})


@sales_bp.get("/<int:sale_id>")
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(sale_id)
    except DOMAIN_ERRORS as e:
        return error_response(e)
    return jsonify({"sale": sale.to_dict(include_items=True)})

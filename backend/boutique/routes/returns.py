# Overview: Flask API routes for returns operations; parses input and returns JSON responses.

"""
Returns and exchanges.

Body: {"return": {original_sale_id, return_type, exchange_type?, new_product_id?,
new_color?, new_size?, refund_amount?}, "items": [{product_id, color, size, quantity}]}
"""
from flask import Blueprint, current_app, jsonify, request

from ..commands import parse_return_request
from ..services import return_service
from .errors import DOMAIN_ERRORS, error_response

returns_bp = Blueprint("returns", __name__, url_prefix="/api/returns")


@returns_bp.post("")
def create_return_route():
    try:
        cmd = parse_return_request(request.get_json(silent=True))
        return_doc = return_service.create_return(cmd)
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create return")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"return": return_doc.to_dict(include_items=True)}), 201


@returns_bp.get("")
def list_returns_route():
    sale_id = request.args.get("sale_id", type=int)
    if sale_id is not None:
        returns = return_service.get_sale_returns(sale_id)
    else:
        returns = return_service.list_returns()
    return jsonify({"returns": [r.to_dict() for r in returns]})


@returns_bp.get("/<int:return_id>")
def get_return_route(return_id: int):
    try:
        return_doc = return_service.get_return(return_id)
    except DOMAIN_ERRORS as e:
        return error_response(e)
    return jsonify({"return": return_doc.to_dict(include_items=True)})

# Overview: Flask API routes for expense and purchase bookkeeping.

from flask import Blueprint, current_app, jsonify, request

from ..services import accounting_service
from .errors import DOMAIN_ERRORS, error_response

accounting_bp = Blueprint("accounting", __name__, url_prefix="/api")


@accounting_bp.get("/expenses")
def list_expenses_route():
    return jsonify({"expenses": [e.to_dict() for e in accounting_service.list_expenses()]})


@accounting_bp.post("/expenses")
def create_expense_route():
    try:
        expense = accounting_service.create_expense(request.get_json(silent=True) or {})
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to record expense")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"expense": expense.to_dict()}), 201


@accounting_bp.get("/purchases")
def list_purchases_route():
    return jsonify({"purchases": [p.to_dict() for p in accounting_service.list_purchases()]})


@accounting_bp.post("/purchases")
def create_purchase_route():
    try:
        purchase = accounting_service.create_purchase(request.get_json(silent=True) or {})
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to record purchase")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"purchase": purchase.to_dict()}), 201

from flask import Blueprint, jsonify, request

from ..services import reporting_service
from ..time_utils import to_utc_z
from .errors import DOMAIN_ERRORS, error_response


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")
dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


def _range():
    return reporting_service.parse_range(request.args.get("start"), request.args.get("end"))


def _envelope(key: str, records, start, end) -> dict:
    return {
        "start": to_utc_z(start),
        "end": to_utc_z(end),
        "count": len(records),
        key: [r.to_dict() for r in records],
    }


@reports_bp.get("/sales")
def sales_in_range():
    try:
        start, end = _range()
    except DOMAIN_ERRORS as exc:
        return error_response(exc)
    sales = reporting_service.get_sales_in_range(start, end)
    return jsonify(_envelope("sales", sales, start, end)), 200


@reports_bp.get("/expenses")
def expenses_in_range():
    try:
        start, end = _range()
    except DOMAIN_ERRORS as exc:
        return error_response(exc)
    expenses = reporting_service.get_expenses_in_range(start, end)
    return jsonify(_envelope("expenses", expenses, start, end)), 200


@reports_bp.get("/purchases")
def purchases_in_range():
    try:
        start, end = _range()
    except DOMAIN_ERRORS as exc:
        return error_response(exc)
    purchases = reporting_service.get_purchases_in_range(start, end)
    return jsonify(_envelope("purchases", purchases, start, end)), 200


@reports_bp.get("/summary")
def summary():
    try:
        start, end = _range()
    except DOMAIN_ERRORS as exc:
        return error_response(exc)
    return jsonify(reporting_service.sales_summary(start, end)), 200


@dashboard_bp.get("/stats")
def dashboard_stats():
    return jsonify(reporting_service.dashboard_stats()), 200

# Overview: Translate domain exceptions into JSON error responses.

from flask import jsonify

from ..services.sales_service import SaleError
from ..validation import ConflictError, DuplicateModelNumber, NotFoundError, ValidationError

# Exceptions a route catches and reports to the client as-is.
DOMAIN_ERRORS = (ValidationError, NotFoundError, ConflictError, SaleError)


def error_response(exc: Exception):
    """
    Map a domain exception to ({"error": ..., "details": ...}, status).

    ValidationError -> 400, NotFoundError -> 404,
    ConflictError / DuplicateModelNumber / InsufficientInventory -> 409.
    """
    if isinstance(exc, ValidationError):
        return jsonify({"error": str(exc), "details": {"field": exc.field}}), 400
    if isinstance(exc, NotFoundError):
        return jsonify({
            "error": str(exc),
            "details": {"entity": exc.entity, "id": exc.entity_id},
        }), 404
    if isinstance(exc, DuplicateModelNumber):
        return jsonify({"error": str(exc), "details": {"model_number": exc.model_number}}), 409
    if isinstance(exc, SaleError):
        return jsonify({"error": str(exc), "details": exc.details}), 409
    if isinstance(exc, ConflictError):
        return jsonify({"error": str(exc), "details": {}}), 409
    raise exc

from __future__ import annotations
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from boutique.constants import PRODUCT_TYPES
from boutique.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta


# Numeric(10, 2) upper bound; prevents database overflow and nonsensical prices
MAX_AMOUNT = Decimal("99999999.99")
CENT = Decimal("0.01")


class ValidationError(ValueError):
    """400-level input problem."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class ConflictError(ValueError):
    """409-level business rule conflict."""


class DuplicateModelNumber(ConflictError):
    """A product with this model number already exists."""

    def __init__(self, model_number: str):
        super().__init__(f"Product with model number {model_number!r} already exists")
        self.model_number = model_number


class NotFoundError(ValueError):
    """404-level: a referenced product, sale or return does not exist."""

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


def to_money(value: Any, field: str) -> Decimal:
    """
    Parse a money amount into a 2-place Decimal (half-up).

    Accepts Decimal, int, float and numeric strings. Rejects booleans,
    NaN/Infinity, and scientific notation in strings.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a decimal amount", field=field)
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped or "e" in stripped.lower():
            raise ValidationError(f"{field} must be a decimal amount", field=field)
        try:
            amount = Decimal(stripped)
        except InvalidOperation:
            raise ValidationError(f"{field} must be a decimal amount", field=field)
    else:
        raise ValidationError(f"{field} must be a decimal amount", field=field)

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a decimal amount", field=field)
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_int(value: Any, field: str) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer", field=field)
        # Reject scientific notation (e.g., "1e15") and decimals (e.g., "12.5")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)", field=field)
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)", field=field)
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer", field=field)
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal", field=field)
    raise ValidationError(f"{field} must be an integer", field=field)


def require_text(payload: dict, key: str) -> str:
    raw = payload.get(key)
    if raw is None:
        raise ValidationError(f"{key} is required", field=key)
    text = str(raw).strip()
    if not text:
        raise ValidationError(f"{key} cannot be blank", field=key)
    return text


def optional_text(payload: dict, key: str) -> str | None:
    raw = payload.get(key)
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None


def require_choice(payload: dict, key: str, choices) -> str:
    value = require_text(payload, key)
    if value not in choices:
        raise ValidationError(
            f"{key} must be one of: {', '.join(choices)}", field=key
        )
    return value


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return to_int(value, col.key)

    # Money columns
    if isinstance(coltype, Numeric):
        return to_money(value, col.key)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime", field=col.key)
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime", field=col.key)
            return dt
        raise ValidationError(f"{col.key} must be a datetime", field=col.key)

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", field=missing[0])

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}", field=k)
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}", field=k)

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null", field=k)
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank", field=k)

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}", field=k)

        patch[k] = val

    return patch


def enforce_money_range(patch: dict, *fields: str, allow_zero: bool = True) -> None:
    for field in fields:
        if field not in patch or patch[field] is None:
            continue
        amount = patch[field]
        if amount < 0 or (not allow_zero and amount == 0):
            bound = ">= 0" if allow_zero else "> 0"
            raise ValidationError(f"{field} must be {bound}", field=field)
        if amount > MAX_AMOUNT:
            raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT}", field=field)


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    enforce_money_range(patch, "store_price", "online_price")
    product_type = patch.get("product_type")
    if product_type is not None and product_type not in PRODUCT_TYPES:
        raise ValidationError(
            f"product_type must be one of: {', '.join(PRODUCT_TYPES)}", field="product_type"
        )

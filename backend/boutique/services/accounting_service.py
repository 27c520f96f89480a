# Overview: Expense and purchase bookkeeping; plain records, no inventory effect.

from __future__ import annotations

import logging

from ..extensions import db
from ..models import Expense, Purchase
from ..time_utils import utcnow
from ..validation import ModelValidationPolicy, enforce_money_range, validate_payload
from .concurrency import run_with_retry

logger = logging.getLogger(__name__)

EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields={"amount", "description", "category", "date"},
    required_on_create={"amount", "description", "category"},
)

PURCHASE_POLICY = ModelValidationPolicy(
    writable_fields={"amount", "description", "supplier", "date"},
    required_on_create={"amount", "description", "supplier"},
)


def _create(model, policy: ModelValidationPolicy, payload: dict):
    patch = validate_payload(model=model, payload=payload, policy=policy, partial=False)
    enforce_money_range(patch, "amount", allow_zero=False)
    if patch.get("date") is None:
        patch["date"] = utcnow()

    def _op():
        record = model(**patch)
        db.session.add(record)
        db.session.commit()
        logger.info("Recorded %s %s amount=%s", model.__tablename__[:-1], record.id, record.amount)
        return record

    return run_with_retry(_op)


def create_expense(payload: dict) -> Expense:
    return _create(Expense, EXPENSE_POLICY, payload)


def create_purchase(payload: dict) -> Purchase:
    return _create(Purchase, PURCHASE_POLICY, payload)


def list_expenses() -> list[Expense]:
    return db.session.query(Expense).order_by(Expense.date.desc(), Expense.id.desc()).all()


def list_purchases() -> list[Purchase]:
    return db.session.query(Purchase).order_by(Purchase.date.desc(), Purchase.id.desc()).all()

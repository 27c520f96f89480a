# Overview: Transaction boundary helpers shared by every service that mutates stock.

from __future__ import annotations

import logging
import time

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

logger = logging.getLogger(__name__)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; begin_write_transaction()
    covers SQLite by taking the database write lock up front.
    """
    return query.with_for_update()


def begin_write_transaction() -> None:
    """
    Open the unit of work as a writer.

    On SQLite this issues BEGIN IMMEDIATE so two requests cannot both pass a
    stock pre-check before either commits. It is a no-op on other dialects
    (they rely on lock_for_update) and when the connection already has an
    open transaction.
    """
    if db.engine.dialect.name != "sqlite":
        return
    raw = db.session.connection().connection.dbapi_connection
    if getattr(raw, "in_transaction", False):
        return
    db.session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(
    func,
    *,
    attempts: int = 3,
    backoff_base: float = 0.1,
    retry_on: tuple[type[BaseException], ...] = (),
):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (locks, busy database), StaleDataError
    (optimistic locking conflicts) and any extra exception types passed in
    retry_on. Any other exception rolls the session back and propagates, so
    a failed business check never leaves half a sale in the session.
    """
    retryable = (OperationalError, StaleDataError) + tuple(retry_on)
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except retryable as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            logger.warning("Retrying after %s (attempt %d/%d)", type(exc).__name__, attempt + 1, attempts)
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise
    if last_exc:
        raise last_exc

# Overview: Service-layer transaction scope with retry and guaranteed rollback.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import PersistenceError
from ..extensions import db


def _begin_immediate() -> None:
    """
    Take the SQLite write lock up front so concurrent writers queue
    instead of failing at commit time. Other dialects are left alone.
    """
    if db.engine.dialect.name != "sqlite":
        return
    if db.session().in_transaction():
        db.session.commit()
    db.session.execute(text("BEGIN IMMEDIATE"))


def _safe_rollback() -> None:
    try:
        db.session.rollback()
    except SQLAlchemyError:
        current_app.logger.exception("Rollback failed")


def with_transaction(func, *, immediate: bool = False, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run func() inside one transaction and commit its work.

    - Any exception rolls the session back before propagating.
    - OperationalError (locks) and StaleDataError are retried with backoff.
    - Other SQLAlchemy failures surface as PersistenceError.
    - A failing rollback is logged; the original error is what the caller sees.
    """
    for attempt in range(attempts):
        try:
            if immediate:
                _begin_immediate()
            result = func()
            db.session.commit()
            return result
        except (OperationalError, StaleDataError) as exc:
            _safe_rollback()
            if attempt >= attempts - 1:
                raise PersistenceError("Database is busy, try again") from exc
            time.sleep(backoff_base * (2 ** attempt))
        except SQLAlchemyError as exc:
            _safe_rollback()
            current_app.logger.exception("Transaction failed")
            raise PersistenceError("Database error") from exc
        except Exception:
            _safe_rollback()
            raise

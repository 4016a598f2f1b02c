# Overview: Service-layer operations for the operations audit log.

"""
Operations audit log.

log_operation() is fire-and-forget: it hands the event to the audit
dispatcher and returns immediately. write_operation() is the dispatcher's
writer; it persists only while the system is licensed and the
logging_enabled config flag is "true", then prunes the table down to the
retention cap.
"""

from __future__ import annotations

import json

from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db, audit_dispatcher
from ..models import OperationLogEntry
from . import license_service, settings_service

DEFAULT_ACTOR = "Sistema"
DEFAULT_RETENTION = 1000


def _encode(data) -> str | None:
    if data is None:
        return None
    return json.dumps(data, default=str)


def log_operation(
    operation_type: str,
    description: str,
    *,
    actor: str = DEFAULT_ACTOR,
    entity_type: str | None = None,
    entity_id: int | None = None,
    before=None,
    after=None,
) -> None:
    audit_dispatcher.publish({
        "operation_type": operation_type,
        "description": description,
        "actor": actor or DEFAULT_ACTOR,
        "entity_type": entity_type,
        "entity_id": entity_id,
        "before_data": _encode(before),
        "after_data": _encode(after),
    })


def prune_operations(keep: int | None = None) -> int:
    """Delete everything but the newest `keep` rows. Caller commits."""
    if keep is None:
        keep = current_app.config.get("OPERATION_LOG_RETENTION", DEFAULT_RETENTION)
    newest = (
        db.session.query(OperationLogEntry.id)
        .order_by(OperationLogEntry.created_at.desc(), OperationLogEntry.id.desc())
        .limit(keep)
        .subquery()
    )
    return (
        db.session.query(OperationLogEntry)
        .filter(OperationLogEntry.id.not_in(select(newest.c.id)))
        .delete(synchronize_session=False)
    )


def write_operation(payload: dict) -> bool:
    """
    Dispatcher writer. Returns True when a row was stored.

    Failures roll back and are logged; nothing propagates to the caller.
    """
    try:
        if not license_service.is_licensed():
            return False
        if not settings_service.is_logging_enabled():
            return False
        db.session.add(OperationLogEntry(**payload))
        db.session.flush()
        prune_operations()
        db.session.commit()
        return True
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to store operation log entry %s", payload.get("operation_type"))
        return False


def list_operations(limit: int = 100) -> list[dict]:
    rows = (
        db.session.query(OperationLogEntry)
        .order_by(OperationLogEntry.created_at.desc(), OperationLogEntry.id.desc())
        .limit(limit)
        .all()
    )
    return [row.to_dict() for row in rows]


def clear_operations() -> int:
    deleted = db.session.query(OperationLogEntry).delete(synchronize_session=False)
    db.session.commit()
    log_operation("LOG_CLEARED", f"Log de operaciones limpiado ({deleted} registros)")
    return deleted

from __future__ import annotations

import json

from ..extensions import db
from caja.time_utils import now, to_iso


class OperationLogEntry(db.Model):
    """
    Operations audit trail.

    Retention is capped: after every insert only the newest
    OPERATION_LOG_RETENTION rows are kept.
    """
    __tablename__ = "operation_log"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    operation_type = db.Column(db.String(64), nullable=False, index=True)
    description = db.Column(db.Text, nullable=False)
    actor = db.Column(db.String(128), nullable=False, default="Sistema")
    entity_type = db.Column(db.String(64), nullable=True)
    entity_id = db.Column(db.Integer, nullable=True)
    before_data = db.Column(db.Text, nullable=True)
    after_data = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=now, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "operation_type": self.operation_type,
            "description": self.description,
            "actor": self.actor,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "before": json.loads(self.before_data) if self.before_data else None,
            "after": json.loads(self.after_data) if self.after_data else None,
            "created_at": to_iso(self.created_at),
        }

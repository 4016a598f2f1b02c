from __future__ import annotations

from ..extensions import db
from caja.time_utils import now, to_iso


class ConfigEntry(db.Model):
    """Singleton key/value configuration row (e.g. logging_enabled)."""
    __tablename__ = "config_entries"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(128), nullable=False, unique=True)
    value = db.Column(db.Text, nullable=True)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=now)
    updated_at = db.Column(db.DateTime, nullable=False, default=now, onupdate=now)

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "value": self.value,
            "description": self.description,
            "updated_at": to_iso(self.updated_at),
        }

from __future__ import annotations

import json

from ..extensions import db
from caja.time_utils import now, to_iso


class License(db.Model):
    """
    Time-boxed activation.

    LIFECYCLE: active -> deactivated (terminal). A key is consumed the
    moment its row exists; rows are never deleted so a key cannot be reused.
    At most one row is active at a time (checked by license_service).
    """
    __tablename__ = "licenses"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    license_key = db.Column(db.String(32), nullable=False, unique=True)
    status = db.Column(db.String(16), nullable=False, default="active", index=True)
    activated_at = db.Column(db.DateTime, nullable=False, default=now)
    expires_at = db.Column(db.DateTime, nullable=False)
    customer_data = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "license_key": self.license_key,
            "status": self.status,
            "activated_at": to_iso(self.activated_at),
            "expires_at": to_iso(self.expires_at),
            "customer_data": json.loads(self.customer_data) if self.customer_data else None,
        }

from __future__ import annotations

from ..extensions import db
from caja.money import from_cents
from caja.time_utils import now, to_iso


class RegisterClosing(db.Model):
    """
    End-of-day cash-register reconciliation ("cierre de caja").

    expected_total = opening_cash + sum of sale totals in the window
    discrepancy = expected_total - counted_cash

    APPEND-ONLY: closings are never edited; a later closing on the same
    business date starts its window after the previous one.
    """
    __tablename__ = "register_closings"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    closed_at = db.Column(db.DateTime, nullable=False, default=now, index=True)
    business_date = db.Column(db.Date, nullable=False, index=True)

    opening_cash_cents = db.Column(db.Integer, nullable=False, default=0)
    total_sales_cents = db.Column(db.Integer, nullable=False, default=0)
    expected_total_cents = db.Column(db.Integer, nullable=False)
    counted_cash_cents = db.Column(db.Integer, nullable=False)
    discrepancy_cents = db.Column(db.Integer, nullable=False, default=0)
    sale_count = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "closed_at": to_iso(self.closed_at),
            "business_date": self.business_date.isoformat() if self.business_date else None,
            "opening_cash": from_cents(self.opening_cash_cents),
            "total_sales": from_cents(self.total_sales_cents),
            "expected_total": from_cents(self.expected_total_cents),
            "counted_cash": from_cents(self.counted_cash_cents),
            "discrepancy": from_cents(self.discrepancy_cents),
            "sale_count": self.sale_count,
        }

# Overview: Service-layer operations for end-of-day register closing ("cierre de caja").

"""
Cash-Register Reconciliation

Window for business date D:
- sales created on D
- and, if D already has a closing, only sales after the latest one

expected_total = opening_cash + sum(sale totals in window)
discrepancy = expected_total - counted_cash

Preview never writes. Closing recomputes everything server-side in one
write transaction; client-supplied totals are never trusted.
"""

from __future__ import annotations

from datetime import date

from ..errors import ValidationError
from ..extensions import db
from ..models import RegisterClosing, Sale
from ..money import format_currency, from_cents, to_cents
from ..time_utils import day_bounds, now, parse_business_date
from . import audit_service
from .concurrency import with_transaction
from .payment_service import totals_by_method


def parse_closing_date(raw) -> date:
    try:
        return parse_business_date(raw)
    except ValueError:
        raise ValidationError("date must be in YYYY-MM-DD format")


def parse_opening_cash(raw) -> int:
    if raw in (None, ""):
        return 0
    cents = to_cents(raw, "opening cash")
    if cents < 0:
        raise ValidationError("opening cash must be >= 0")
    return cents


def parse_counted_cash(raw) -> int | None:
    """None means "auto": counted equals expected."""
    if raw is None or raw == "" or (isinstance(raw, str) and raw.strip().lower() == "auto"):
        return None
    cents = to_cents(raw, "counted cash")
    if cents < 0:
        raise ValidationError("counted cash must be >= 0")
    return cents


def last_closing_for(business_date: date) -> RegisterClosing | None:
    return (
        db.session.query(RegisterClosing)
        .filter(RegisterClosing.business_date == business_date)
        .order_by(RegisterClosing.closed_at.desc(), RegisterClosing.id.desc())
        .first()
    )


def window_sales(business_date: date) -> list[Sale]:
    start, end = day_bounds(business_date)
    q = db.session.query(Sale).filter(Sale.created_at >= start, Sale.created_at < end)
    previous = last_closing_for(business_date)
    if previous is not None:
        q = q.filter(Sale.created_at > previous.closed_at)
    return q.order_by(Sale.created_at.asc(), Sale.id.asc()).all()


def compute_summary(business_date: date, opening_cents: int, counted_cents: int | None = None) -> dict:
    """Reconciliation numbers in cents plus the window's sales. Read-only."""
    sales = window_sales(business_date)
    total_sales = sum(s.total_cents for s in sales)
    expected = opening_cents + total_sales
    counted = expected if counted_cents is None else counted_cents
    return {
        "business_date": business_date,
        "sales": sales,
        "sale_count": len(sales),
        "opening_cash_cents": opening_cents,
        "total_sales_cents": total_sales,
        "expected_total_cents": expected,
        "counted_cash_cents": counted,
        "discrepancy_cents": expected - counted,
        "payment_totals_cents": totals_by_method(sales),
    }


def summary_to_dict(summary: dict, closing: RegisterClosing | None = None) -> dict:
    data = {
        "business_date": summary["business_date"].isoformat(),
        "opening_cash": from_cents(summary["opening_cash_cents"]),
        "total_sales": from_cents(summary["total_sales_cents"]),
        "expected_total": from_cents(summary["expected_total_cents"]),
        "counted_cash": from_cents(summary["counted_cash_cents"]),
        "discrepancy": from_cents(summary["discrepancy_cents"]),
        "sale_count": summary["sale_count"],
        "payment_totals": {k: from_cents(v) for k, v in summary["payment_totals_cents"].items()},
        "sales": [s.to_dict() for s in summary["sales"]],
    }
    if closing is not None:
        data["closing"] = closing.to_dict()
    return data


def preview_close(raw_date=None, raw_opening=None) -> dict:
    business_date = parse_closing_date(raw_date)
    opening = parse_opening_cash(raw_opening)
    return compute_summary(business_date, opening)


def close_register(raw_date=None, raw_opening=None, raw_counted=None) -> tuple[RegisterClosing, dict]:
    """
    Persist a closing for the date. Counted cash "auto"/omitted equals expected.
    Returns (closing, summary).
    """
    business_date = parse_closing_date(raw_date)
    opening = parse_opening_cash(raw_opening)
    counted = parse_counted_cash(raw_counted)

    def _op():
        summary = compute_summary(business_date, opening, counted)
        closing = RegisterClosing(
            closed_at=now(),
            business_date=business_date,
            opening_cash_cents=summary["opening_cash_cents"],
            total_sales_cents=summary["total_sales_cents"],
            expected_total_cents=summary["expected_total_cents"],
            counted_cash_cents=summary["counted_cash_cents"],
            discrepancy_cents=summary["discrepancy_cents"],
            sale_count=summary["sale_count"],
        )
        db.session.add(closing)
        db.session.flush()
        return closing, summary

    closing, summary = with_transaction(_op, immediate=True)

    audit_service.log_operation(
        "REGISTER_CLOSED",
        (
            f"Cierre de caja {business_date.isoformat()}: esperado "
            f"{format_currency(closing.expected_total_cents)}, contado "
            f"{format_currency(closing.counted_cash_cents)}, diferencia "
            f"{format_currency(closing.discrepancy_cents)}"
        ),
        entity_type="register_closing",
        entity_id=closing.id,
        after=closing.to_dict(),
    )
    return closing, summary


def list_closings() -> list[RegisterClosing]:
    return (
        db.session.query(RegisterClosing)
        .order_by(RegisterClosing.closed_at.desc(), RegisterClosing.id.desc())
        .all()
    )

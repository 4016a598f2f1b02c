# Overview: Service-layer operations for reporting; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import func

from caja.extensions import db
from caja.models import Product, Sale, SaleLine
from caja.money import from_cents


def sales_stats(top: int = 5) -> dict:
    """Catalog size, sale count, revenue and best sellers by units."""
    product_count = db.session.query(func.count(Product.id)).scalar() or 0
    sale_count = db.session.query(func.count(Sale.id)).scalar() or 0
    revenue_cents = db.session.query(func.coalesce(func.sum(Sale.total_cents), 0)).scalar() or 0

    units = func.sum(SaleLine.quantity).label("units")
    top_rows = (
        db.session.query(Product.id, Product.name, units, func.sum(SaleLine.line_total_cents))
        .join(SaleLine, SaleLine.product_id == Product.id)
        .group_by(Product.id, Product.name)
        .order_by(units.desc())
        .limit(top)
        .all()
    )

    return {
        "total_products": product_count,
        "total_sales": sale_count,
        "total_revenue": from_cents(revenue_cents),
        "top_products": [
            {
                "product_id": pid,
                "name": name,
                "units_sold": int(sold or 0),
                "revenue": from_cents(int(revenue or 0)),
            }
            for pid, name, sold, revenue in top_rows
        ],
    }


def database_info() -> dict:
    engine = db.engine
    return {
        "dialect": engine.dialect.name,
        "database": engine.url.database,
        "products": db.session.query(func.count(Product.id)).scalar() or 0,
        "sales": db.session.query(func.count(Sale.id)).scalar() or 0,
    }

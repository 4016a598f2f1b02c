# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/caja/routes/sales.py
"""Sales API routes. Reads are public; creating and cancelling need admin Basic auth."""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_basic_auth
from ..errors import PosError, ValidationError
from ..services import sales_service
from ..time_utils import parse_business_date, to_iso


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _date_arg(name: str):
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return parse_business_date(raw)
    except ValueError:
        raise ValidationError(f"{name} must be in YYYY-MM-DD format")


@sales_bp.get("")
@sales_bp.get("/")
def list_sales_route():
    """Query params: date, or start_date/end_date (inclusive, date-granular)."""
    try:
        sales = sales_service.list_sales(
            day=_date_arg("date"),
            start=_date_arg("start_date"),
            end=_date_arg("end_date"),
        )
        return jsonify([s.to_dict() for s in sales]), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>")
def get_sale_route(sale_id: int):
    try:
        return jsonify({"sale": sales_service.get_sale(sale_id).to_dict()}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to get sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.post("")
@sales_bp.post("/")
@require_basic_auth
def create_sale_route():
    """
    Create a completed sale.

    Body: {items: [{id|productId, cantidad|quantity, precio|unitPrice,
           descuento_porcentaje|discountPercent}], paymentMethod | metodo_pago
           | pagos: [{metodo, monto}], vuelto}

    The receipt keys (numero_factura, saleId, fecha_venta) are what the
    register UI prints from.
    """
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Invalid JSON payload"}), 400

        sale = sales_service.create_sale_from_request(data)
        body = sale.to_dict()
        return jsonify({
            "success": True,
            "numero_factura": sale.invoice_number,
            "total": body["total"],
            "saleId": sale.id,
            "fecha_venta": to_iso(sale.created_at),
            "message": "Venta procesada exitosamente",
            "sale": body,
        }), 201

    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.delete("/<int:sale_id>")
@require_basic_auth
def cancel_sale_route(sale_id: int):
    """Cancel a sale: restores stock and deletes the sale with its lines."""
    try:
        snapshot = sales_service.cancel_sale(sale_id)
        return jsonify({
            "success": True,
            "message": f"Venta {snapshot['invoice_number']} cancelada",
            "sale": snapshot,
        }), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to cancel sale")
        return jsonify({"error": "Internal server error"}), 500

# Overview: Flask API routes for suppliers and supplier orders; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..errors import PosError
from ..services import vendor_service

vendors_bp = Blueprint("vendors", __name__, url_prefix="/api")


def _body():
    return request.get_json(silent=True)


# =============================================================================
# SUPPLIERS
# =============================================================================

@vendors_bp.get("/suppliers")
def list_suppliers_route():
    try:
        return jsonify([s.to_dict() for s in vendor_service.list_suppliers()]), 200
    except Exception:
        current_app.logger.exception("Failed to list suppliers")
        return jsonify({"error": "Internal server error"}), 500


@vendors_bp.get("/suppliers/<int:supplier_id>")
def get_supplier_route(supplier_id: int):
    try:
        return jsonify(vendor_service.get_supplier(supplier_id).to_dict()), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to get supplier")
        return jsonify({"error": "Internal server error"}), 500


@vendors_bp.post("/suppliers")
def create_supplier_route():
    try:
        supplier = vendor_service.create_supplier(_body())
        return jsonify({"success": True, "supplier": supplier.to_dict()}), 201
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create supplier")
        return jsonify({"error": "Internal server error"}), 500


@vendors_bp.put("/suppliers/<int:supplier_id>")
def update_supplier_route(supplier_id: int):
    try:
        supplier = vendor_service.update_supplier(supplier_id, _body())
        return jsonify({"success": True, "supplier": supplier.to_dict()}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update supplier")
        return jsonify({"error": "Internal server error"}), 500


@vendors_bp.delete("/suppliers/<int:supplier_id>")
def delete_supplier_route(supplier_id: int):
    try:
        vendor_service.delete_supplier(supplier_id)
        return jsonify({"success": True}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete supplier")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# SUPPLIER ORDERS
# =============================================================================

@vendors_bp.get("/supplier-orders")
def list_orders_route():
    try:
        return jsonify([o.to_dict() for o in vendor_service.list_orders()]), 200
    except Exception:
        current_app.logger.exception("Failed to list supplier orders")
        return jsonify({"error": "Internal server error"}), 500


@vendors_bp.get("/supplier-orders/<int:order_id>")
def get_order_route(order_id: int):
    try:
        return jsonify(vendor_service.get_order(order_id).to_dict(include_items=True)), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to get supplier order")
        return jsonify({"error": "Internal server error"}), 500


@vendors_bp.post("/supplier-orders")
def create_order_route():
    """Body: {supplier_id, expected_delivery?, notes?, items: [{product_id, quantity, unit_cost}]}."""
    try:
        order = vendor_service.create_order(_body())
        return jsonify({"success": True, "order": order.to_dict(include_items=True)}), 201
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create supplier order")
        return jsonify({"error": "Internal server error"}), 500


@vendors_bp.put("/supplier-orders/<int:order_id>/status")
def update_order_status_route(order_id: int):
    try:
        data = _body()
        if not isinstance(data, dict):
            data = {}
        order = vendor_service.update_order_status(order_id, data.get("status", data.get("estado")))
        return jsonify({"success": True, "order": order.to_dict()}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update supplier order status")
        return jsonify({"error": "Internal server error"}), 500


@vendors_bp.delete("/supplier-orders/<int:order_id>")
def delete_order_route(order_id: int):
    try:
        vendor_service.delete_order(order_id)
        return jsonify({"success": True}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete supplier order")
        return jsonify({"error": "Internal server error"}), 500

# Overview: Flask API routes for the operations log and data maintenance.

"""
Admin API Routes

Destructive maintenance (resets, restore) requires admin Basic auth.
The operations log is readable and clearable by the register UI.
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_basic_auth
from ..errors import PosError
from ..services import audit_service, maintenance_service

admin_bp = Blueprint("admin", __name__, url_prefix="/api")


@admin_bp.get("/operations-log")
def list_operations_route():
    limit = request.args.get("limit", 100, type=int)
    if limit is None or limit <= 0:
        return jsonify({"error": "limit must be a positive integer"}), 400
    try:
        return jsonify(audit_service.list_operations(limit)), 200
    except Exception:
        current_app.logger.exception("Failed to list operations log")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.delete("/operations-log")
def clear_operations_route():
    try:
        deleted = audit_service.clear_operations()
        return jsonify({"success": True, "deleted": deleted}), 200
    except Exception:
        current_app.logger.exception("Failed to clear operations log")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/reset-data")
@require_basic_auth
def reset_data_route():
    try:
        deleted = maintenance_service.reset_sales_data()
        return jsonify({"success": True, "deleted": deleted}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to reset data")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/reset-data-selective")
@require_basic_auth
def reset_data_selective_route():
    """Body flags: sales, closings, suppliers, promotions, log (or resetVentas, resetCierres, ...)."""
    try:
        data = request.get_json(silent=True)
        flags = maintenance_service.parse_reset_flags(data if isinstance(data, dict) else {})
        deleted = maintenance_service.reset_selective(flags)
        return jsonify({"success": True, "deleted": deleted}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to run selective reset")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.get("/backup")
@require_basic_auth
def export_backup_route():
    try:
        return jsonify(maintenance_service.export_backup()), 200
    except Exception:
        current_app.logger.exception("Failed to export backup")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/restore-backup")
@require_basic_auth
def restore_backup_route():
    """Body: {backup: {...}} or the backup document itself."""
    try:
        data = request.get_json(silent=True)
        backup = data.get("backup", data) if isinstance(data, dict) else data
        result = maintenance_service.restore_backup(backup)
        return jsonify({"success": True, **result}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to restore backup")
        return jsonify({"error": "Internal server error"}), 500

# Overview: Flask API routes for license activation and status.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_basic_auth
from ..errors import PosError
from ..services import license_service

licensing_bp = Blueprint("licensing", __name__, url_prefix="/api")


@licensing_bp.post("/activate")
def activate_route():
    """Body: {license_key|licenseKey|clave, customer_data?}."""
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
        key = data.get("license_key") or data.get("licenseKey") or data.get("clave")
        license_row = license_service.activate_license(key, data.get("customer_data"))
        return jsonify({
            "success": True,
            "message": "Licencia activada exitosamente",
            "expiration_date": license_row.to_dict()["expires_at"],
        }), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to activate license")
        return jsonify({"error": "Internal server error"}), 500


@licensing_bp.get("/license-status")
def license_status_route():
    try:
        return jsonify(license_service.license_details()), 200
    except Exception:
        current_app.logger.exception("Failed to read license status")
        return jsonify({"error": "Internal server error"}), 500


@licensing_bp.post("/deactivate-license")
@require_basic_auth
def deactivate_license_route():
    try:
        changed = license_service.deactivate_license()
        return jsonify({"success": True, "deactivated": changed}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to deactivate license")
        return jsonify({"error": "Internal server error"}), 500


@licensing_bp.get("/can-generate-reports")
def can_generate_reports_route():
    try:
        allowed = license_service.can_generate_reports()
        body = {"can_generate": allowed}
        if not allowed:
            body["message"] = "Se requiere una licencia activa para generar reportes"
        return jsonify(body), 200
    except Exception:
        current_app.logger.exception("Failed to check report permission")
        return jsonify({"error": "Internal server error"}), 500

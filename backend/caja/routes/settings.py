from flask import Blueprint, request, jsonify, current_app

from ..services import settings_service

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("/logging-enabled")
def get_logging_enabled():
    try:
        return jsonify({"enabled": settings_service.is_logging_enabled()}), 200
    except Exception:
        current_app.logger.exception("Failed to read logging setting")
        return jsonify({"error": "Internal server error"}), 500


@settings_bp.put("/logging-enabled")
def set_logging_enabled():
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get("enabled"), bool):
        return jsonify({"error": "enabled must be a boolean"}), 400
    try:
        enabled = settings_service.set_logging_enabled(data["enabled"])
        return jsonify({"success": True, "enabled": enabled}), 200
    except Exception:
        current_app.logger.exception("Failed to update logging setting")
        return jsonify({"error": "Internal server error"}), 500

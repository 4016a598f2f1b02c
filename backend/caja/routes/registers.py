# Overview: Flask API routes for register closing; parses input and returns JSON responses.

# backend/caja/routes/registers.py
"""
Register Closing API Routes

- close-register-preview: reconciliation numbers, nothing stored
- close-register-confirm: stores a closing with the counted cash
- close-register: legacy single-step close (counted cash number or "auto")

Totals are always recomputed on the server from the stored sales.
"""

from flask import Blueprint, request, jsonify, current_app

from ..errors import PosError
from ..services import register_service


registers_bp = Blueprint("registers", __name__, url_prefix="/api")


def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _opening(data: dict):
    return data.get("opening_cash", data.get("dineroInicial", data.get("dinero_inicial")))


def _date(data: dict):
    return data.get("date", data.get("fecha"))


@registers_bp.post("/close-register-preview")
def close_register_preview_route():
    try:
        data = _body()
        summary = register_service.preview_close(_date(data), _opening(data))
        return jsonify({"success": True, "preview": True, **register_service.summary_to_dict(summary)}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to preview register close")
        return jsonify({"error": "Internal server error"}), 500


@registers_bp.post("/close-register-confirm")
def close_register_confirm_route():
    """Body: {date|fecha, opening_cash|dineroInicial, counted_cash|dineroContado}."""
    try:
        data = _body()
        closing, summary = register_service.close_register(
            _date(data),
            _opening(data),
            data.get("counted_cash", data.get("dineroContado")),
        )
        return jsonify({
            "success": True,
            "message": "Cierre de caja registrado",
            "closing_id": closing.id,
            **register_service.summary_to_dict(summary, closing),
        }), 201
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to confirm register close")
        return jsonify({"error": "Internal server error"}), 500


@registers_bp.post("/close-register")
def close_register_route():
    try:
        data = _body()
        closing, summary = register_service.close_register(
            _date(data),
            _opening(data),
            data.get("dineroContado", data.get("counted_cash", "auto")),
        )
        return jsonify({
            "success": True,
            "closing_id": closing.id,
            **register_service.summary_to_dict(summary, closing),
        }), 201
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to close register")
        return jsonify({"error": "Internal server error"}), 500


@registers_bp.get("/cierres")
@registers_bp.get("/register-closings")
def list_closings_route():
    try:
        return jsonify([c.to_dict() for c in register_service.list_closings()]), 200
    except Exception:
        current_app.logger.exception("Failed to list register closings")
        return jsonify({"error": "Internal server error"}), 500

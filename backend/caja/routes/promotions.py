from __future__ import annotations

from flask import Blueprint, jsonify, request, current_app

from ..decorators import require_basic_auth
from ..errors import PosError
from ..services import promotions_service

promotions_bp = Blueprint("promotions", __name__, url_prefix="/api")


@promotions_bp.route("/promotions", methods=["GET"])
def list_promotions():
    try:
        return jsonify([p.to_dict() for p in promotions_service.list_promotions()])
    except Exception:
        current_app.logger.exception("Failed to list promotions")
        return jsonify({"error": "Internal server error"}), 500


@promotions_bp.route("/promotions/<int:promo_id>", methods=["GET"])
def get_promotion(promo_id: int):
    try:
        return jsonify(promotions_service.get_promotion(promo_id).to_dict(include_items=True))
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to get promotion")
        return jsonify({"error": "Internal server error"}), 500


@promotions_bp.route("/promotions", methods=["POST"])
def create_promotion():
    """Body: {title|titulo, items: [{product_id, discount_percent}]}."""
    try:
        promo = promotions_service.create_promotion(request.get_json(silent=True) or {})
        return jsonify({"success": True, "promotion": promo.to_dict(include_items=True)}), 201
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create promotion")
        return jsonify({"error": "Internal server error"}), 500


@promotions_bp.route("/promotions/<int:promo_id>", methods=["DELETE"])
def delete_promotion(promo_id: int):
    try:
        promotions_service.delete_promotion(promo_id)
        return jsonify({"success": True})
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete promotion")
        return jsonify({"error": "Internal server error"}), 500


@promotions_bp.route("/clean-duplicate-promotions", methods=["POST"])
@require_basic_auth
def clean_duplicate_promotions():
    try:
        return jsonify({"success": True, **promotions_service.clean_duplicate_promotions()})
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to clean duplicate promotions")
        return jsonify({"error": "Internal server error"}), 500

# Overview: Flask API routes for the product catalog; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_basic_auth
from ..errors import PosError
from ..services import products_service

products_bp = Blueprint("products", __name__, url_prefix="/api")


def _flag(name: str) -> bool:
    return request.args.get(name, "false").strip().lower() in {"1", "true", "yes"}


@products_bp.get("/products")
def list_products_route():
    try:
        return jsonify(products_service.list_products()), 200
    except Exception:
        current_app.logger.exception("Failed to list products")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/products/search")
def search_products_route():
    """
    Query params: q, category, limit (default 50, max 200), offset, only_promotions.
    """
    try:
        result = products_service.search_products(
            q=request.args.get("q"),
            category=request.args.get("category") or None,
            limit=request.args.get("limit"),
            offset=request.args.get("offset"),
            only_promotions=_flag("only_promotions"),
        )
        return jsonify(result), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to search products")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/products/with-discounts")
def products_with_discounts_route():
    try:
        return jsonify(products_service.list_products_with_discounts()), 200
    except Exception:
        current_app.logger.exception("Failed to list discounted products")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/products/<int:product_id>")
def get_product_route(product_id: int):
    try:
        return jsonify(products_service.get_product(product_id)), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to get product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.post("/products")
@require_basic_auth
def create_product_route():
    try:
        product = products_service.create_product(request.get_json(silent=True))
        return jsonify({"success": True, "product": product.to_dict()}), 201
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.put("/products/<int:product_id>")
@require_basic_auth
def update_product_route(product_id: int):
    try:
        product = products_service.update_product(product_id, request.get_json(silent=True))
        return jsonify({"success": True, "product": product.to_dict()}), 200
    except PosError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500


@products_bp.get("/categories")
def list_categories_route():
    try:
        return jsonify(products_service.list_categories()), 200
    except Exception:
        current_app.logger.exception("Failed to list categories")
        return jsonify({"error": "Internal server error"}), 500

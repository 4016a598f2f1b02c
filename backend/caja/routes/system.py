# backend/caja/routes/system.py
"""
System health, diagnostics and summary stats.
"""

import time
from flask import Blueprint, current_app, jsonify

from ..services import reporting_service
from caja.time_utils import now, to_iso

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        details = reporting_service.database_info()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": details,
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: database reachable
    - 503: database check failed
    """
    database_health = check_database_health()
    http_status = 200 if database_health["status"] == "healthy" else 503
    return {
        "status": database_health["status"],
        "timestamp": to_iso(now()),
        "checks": {"database": database_health},
    }, http_status


@system_bp.get("/api/diagnostic")
def diagnostic():
    database_health = check_database_health()
    return jsonify({
        "status": "ok" if database_health["status"] == "healthy" else "error",
        "server_time": to_iso(now()),
        "database": database_health,
    }), 200 if database_health["status"] == "healthy" else 500


@system_bp.get("/api/stats")
def stats():
    try:
        return jsonify(reporting_service.sales_stats()), 200
    except Exception:
        current_app.logger.exception("Failed to compute stats")
        return jsonify({"error": "Internal server error"}), 500

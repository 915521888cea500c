"""
Health check blueprint.

Endpoints:
    GET /api/v1/health/ready    simple 200 for load balancers
    GET /api/v1/health/live     database connectivity and latency
    GET /api/v1/version         API and application version
"""

import logging
import time

from flask import Blueprint, jsonify

from siteledger.models import db
from siteledger.utils.version import API_VERSION, app_version

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/v1")


@health_bp.route("/health/ready", methods=["GET"])
def ready():
    """Readiness check: always 200 if app is running."""
    return jsonify({"status": "ok"}), 200


@health_bp.route("/health/live", methods=["GET"])
def live():
    """Liveness check with database status."""
    try:
        t0 = time.perf_counter()
        db.session.execute(db.text("SELECT 1"))
        db_ms = (time.perf_counter() - t0) * 1000
        checks = {"database": {"status": "ok", "latency_ms": round(db_ms, 1)}}
        status = 200
    except Exception as exc:
        db.session.rollback()
        logger.error("Health check database failure: %s", exc)
        checks = {"database": {"status": "error"}}
        status = 503

    return jsonify({"status": "ok" if status == 200 else "degraded", "checks": checks}), status


@health_bp.route("/version", methods=["GET"])
def get_version():
    return jsonify({"api_version": API_VERSION, "app_version": app_version()}), 200

"""
SiteLedger
Dashboard Blueprint.

Endpoints:
    GET /api/v1/dashboard   Counts, recent activity and stale drafts for the caller's projects
"""

from flask import Blueprint, jsonify

from siteledger.blueprints import require_actor
from siteledger.services import dashboard_service

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/v1")


@dashboard_bp.route("/dashboard", methods=["GET"])
def get_dashboard():
    actor, err = require_actor()
    if err:
        return err
    return jsonify(dashboard_service.get_dashboard(actor)), 200

"""
SiteLedger
Daily Reports Blueprint.

Endpoints:
    GET    /api/v1/projects/<pid>/daily-reports                        List (from/to date filters)
    POST   /api/v1/projects/<pid>/daily-reports                        Create-or-get the day's draft
    GET    /api/v1/daily-reports/<id>                                  Detail with attachments
    PATCH  /api/v1/daily-reports/<id>                                  Edit draft
    POST   /api/v1/daily-reports/<id>/submit                           DRAFT → SUBMITTED
    POST   /api/v1/daily-reports/<id>/approve                          SUBMITTED → APPROVED (OWNER)
    POST   /api/v1/daily-reports/<id>/attachments                      Attach file, idempotent
    DELETE /api/v1/daily-reports/<id>/attachments/<file_object_id>     Detach file
"""

import logging

from flask import Blueprint, jsonify, request

from siteledger.blueprints import json_body, require_actor
from siteledger.services import daily_report_service
from siteledger.utils.errors import E, api_error, service_error_response
from siteledger.utils.helpers import parse_date, require_fields

logger = logging.getLogger(__name__)

daily_reports_bp = Blueprint("daily_reports", __name__, url_prefix="/api/v1")


@daily_reports_bp.route("/projects/<project_id>/daily-reports", methods=["GET"])
def list_reports(project_id):
    actor, err = require_actor()
    if err:
        return err

    bounds = {}
    for param in ("from", "to"):
        raw = request.args.get(param)
        if raw:
            bounds[param] = parse_date(raw)
            if bounds[param] is None:
                return api_error(E.VALIDATION_INVALID, f"{param} must be in YYYY-MM-DD format")

    reports, err = daily_report_service.list_for_project(
        actor, project_id, from_date=bounds.get("from"), to_date=bounds.get("to")
    )
    if err:
        return service_error_response(err)
    return jsonify([r.to_dict() for r in reports]), 200


@daily_reports_bp.route("/projects/<project_id>/daily-reports", methods=["POST"])
def create_or_get_draft(project_id):
    actor, err = require_actor()
    if err:
        return err
    data, err = json_body()
    if err:
        return err
    missing = require_fields(data, "report_date")
    if missing:
        return api_error(E.VALIDATION_REQUIRED, f"{missing} is required")
    report_date = parse_date(data.get("report_date"))
    if report_date is None:
        return api_error(E.VALIDATION_INVALID, "report_date must be in YYYY-MM-DD format")

    outcome, err = daily_report_service.create_or_get_draft(actor, project_id, report_date)
    if err:
        return service_error_response(err)
    # Same response whether this call created the draft or found it
    return jsonify(outcome.record.to_dict(include_attachments=True)), 200


@daily_reports_bp.route("/daily-reports/<report_id>", methods=["GET"])
def get_report(report_id):
    actor, err = require_actor()
    if err:
        return err
    report, err = daily_report_service.get_report(actor, report_id)
    if err:
        return service_error_response(err)
    return jsonify(report.to_dict(include_attachments=True)), 200


@daily_reports_bp.route("/daily-reports/<report_id>", methods=["PATCH"])
def update_draft(report_id):
    actor, err = require_actor()
    if err:
        return err
    data, err = json_body()
    if err:
        return err
    report, err = daily_report_service.update_draft(actor, report_id, data)
    if err:
        return service_error_response(err)
    return jsonify(report.to_dict(include_attachments=True)), 200


@daily_reports_bp.route("/daily-reports/<report_id>/submit", methods=["POST"])
def submit_report(report_id):
    actor, err = require_actor()
    if err:
        return err
    report, err = daily_report_service.submit_report(actor, report_id)
    if err:
        return service_error_response(err)
    return jsonify(report.to_dict(include_attachments=True)), 200


@daily_reports_bp.route("/daily-reports/<report_id>/approve", methods=["POST"])
def approve_report(report_id):
    actor, err = require_actor()
    if err:
        return err
    report, err = daily_report_service.approve_report(actor, report_id)
    if err:
        return service_error_response(err)
    return jsonify(report.to_dict(include_attachments=True)), 200


@daily_reports_bp.route("/daily-reports/<report_id>/attachments", methods=["POST"])
def attach_file(report_id):
    actor, err = require_actor()
    if err:
        return err
    data, err = json_body()
    if err:
        return err
    missing = require_fields(data, "file_object_id")
    if missing:
        return api_error(E.VALIDATION_REQUIRED, f"{missing} is required")
    outcome, err = daily_report_service.attach_file(actor, report_id, str(data["file_object_id"]))
    if err:
        return service_error_response(err)
    return jsonify(outcome.record.to_dict()), 200


@daily_reports_bp.route(
    "/daily-reports/<report_id>/attachments/<file_object_id>", methods=["DELETE"]
)
def detach_file(report_id, file_object_id):
    actor, err = require_actor()
    if err:
        return err
    _, err = daily_report_service.detach_file(actor, report_id, file_object_id)
    if err:
        return service_error_response(err)
    return "", 204

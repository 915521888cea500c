"""
SiteLedger
Projects Blueprint: projects and project membership.

Endpoints:
    Projects:
        GET    /api/v1/projects                            Projects the caller is a member of
        POST   /api/v1/projects                            Create (OWNER)
        GET    /api/v1/projects/<id>                       Detail (member)
        POST   /api/v1/projects/<id>/archive               Archive (OWNER)

    Members:
        GET    /api/v1/projects/<id>/members               List (member)
        POST   /api/v1/projects/<id>/members               Add, idempotent (OWNER)
"""

import logging

from flask import Blueprint, jsonify

from siteledger.blueprints import json_body, require_actor
from siteledger.services import project_member_service, project_service
from siteledger.utils.errors import E, api_error, service_error_response
from siteledger.utils.helpers import require_fields

logger = logging.getLogger(__name__)

projects_bp = Blueprint("projects", __name__, url_prefix="/api/v1")


# ── Projects ─────────────────────────────────────────────────────────────────


@projects_bp.route("/projects", methods=["GET"])
def list_projects():
    actor, err = require_actor()
    if err:
        return err
    return jsonify([p.to_dict() for p in project_service.list_projects(actor)]), 200


@projects_bp.route("/projects", methods=["POST"])
def create_project():
    actor, err = require_actor()
    if err:
        return err
    data, err = json_body()
    if err:
        return err
    project, err = project_service.create_project(actor, data)
    if err:
        return service_error_response(err)
    return jsonify(project.to_dict()), 201


@projects_bp.route("/projects/<project_id>", methods=["GET"])
def get_project(project_id):
    actor, err = require_actor()
    if err:
        return err
    project, err = project_service.get_project(actor, project_id)
    if err:
        return service_error_response(err)
    return jsonify(project.to_dict()), 200


@projects_bp.route("/projects/<project_id>/archive", methods=["POST"])
def archive_project(project_id):
    actor, err = require_actor()
    if err:
        return err
    project, err = project_service.archive_project(actor, project_id)
    if err:
        return service_error_response(err)
    return jsonify(project.to_dict()), 200


# ── Members ──────────────────────────────────────────────────────────────────


@projects_bp.route("/projects/<project_id>/members", methods=["GET"])
def list_members(project_id):
    actor, err = require_actor()
    if err:
        return err
    members, err = project_member_service.list_members(actor, project_id)
    if err:
        return service_error_response(err)
    return jsonify([m.to_dict(include_user=True) for m in members]), 200


@projects_bp.route("/projects/<project_id>/members", methods=["POST"])
def add_member(project_id):
    actor, err = require_actor()
    if err:
        return err
    data, err = json_body()
    if err:
        return err
    missing = require_fields(data, "user_id")
    if missing:
        return api_error(E.VALIDATION_REQUIRED, f"{missing} is required")
    outcome, err = project_member_service.add_member(
        actor, project_id, str(data["user_id"]), data.get("project_role")
    )
    if err:
        return service_error_response(err)
    # Same response whether this call created the membership or found it
    return jsonify(outcome.record.to_dict(include_user=True)), 200

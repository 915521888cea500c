"""
SiteLedger
Files Blueprint: presigned uploads and file registry.

Endpoints:
    POST   /api/v1/files/presign                      Upload URL(s) + object key(s)
    POST   /api/v1/files/finalize                     Register uploaded object, idempotent
    GET    /api/v1/files                              Company files
    GET    /api/v1/projects/<pid>/files               Project files (member)
    GET    /api/v1/files/<id>/download-url            Presigned download URL (?preview=1)
    PATCH  /api/v1/files/<id>                         Rename
    DELETE /api/v1/files/<id>                         Soft delete (OWNER, unattached only)
"""

import logging

from flask import Blueprint, jsonify, request

from siteledger.blueprints import json_body, require_actor
from siteledger.services import file_service
from siteledger.utils.errors import service_error_response

logger = logging.getLogger(__name__)

files_bp = Blueprint("files", __name__, url_prefix="/api/v1")


@files_bp.route("/files/presign", methods=["POST"])
def presign_upload():
    actor, err = require_actor()
    if err:
        return err
    data, err = json_body()
    if err:
        return err
    result, err = file_service.presign_upload(actor, data)
    if err:
        return service_error_response(err)
    return jsonify(result), 200


@files_bp.route("/files/finalize", methods=["POST"])
def finalize_upload():
    actor, err = require_actor()
    if err:
        return err
    data, err = json_body()
    if err:
        return err
    outcome, err = file_service.finalize_upload(actor, data)
    if err:
        return service_error_response(err)
    # Same response whether this call registered the object or found it
    return jsonify(outcome.record.to_dict()), 200


@files_bp.route("/files", methods=["GET"])
def list_company_files():
    actor, err = require_actor()
    if err:
        return err
    return jsonify(file_service.list_company_files(actor)), 200


@files_bp.route("/projects/<project_id>/files", methods=["GET"])
def list_project_files(project_id):
    actor, err = require_actor()
    if err:
        return err
    files, err = file_service.list_project_files(actor, project_id)
    if err:
        return service_error_response(err)
    return jsonify([f.to_dict() for f in files]), 200


@files_bp.route("/files/<file_object_id>/download-url", methods=["GET"])
def download_url(file_object_id):
    actor, err = require_actor()
    if err:
        return err
    preview = request.args.get("preview", "").lower() in ("1", "true", "yes")
    result, err = file_service.get_download_url(actor, file_object_id, preview=preview)
    if err:
        return service_error_response(err)
    return jsonify(result), 200


@files_bp.route("/files/<file_object_id>", methods=["PATCH"])
def rename_file(file_object_id):
    actor, err = require_actor()
    if err:
        return err
    data, err = json_body()
    if err:
        return err
    file_object, err = file_service.rename_file(actor, file_object_id, data.get("file_name"))
    if err:
        return service_error_response(err)
    return jsonify(file_object.to_dict()), 200


@files_bp.route("/files/<file_object_id>", methods=["DELETE"])
def delete_file(file_object_id):
    actor, err = require_actor()
    if err:
        return err
    _, err = file_service.delete_file(actor, file_object_id)
    if err:
        return service_error_response(err)
    return "", 204

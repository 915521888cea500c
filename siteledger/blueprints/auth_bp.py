"""
SiteLedger
Auth Blueprint: signup, login, current user and company users.

Endpoints:
    POST /api/v1/auth/signup      Create company + OWNER user, returns token
    POST /api/v1/auth/login       Email/password login, returns token
    GET  /api/v1/auth/me          Current user with company
    GET  /api/v1/users            Users of the caller's company
    POST /api/v1/users            OWNER creates a company user
"""

import logging

from flask import Blueprint, jsonify

from siteledger.blueprints import json_body, require_actor
from siteledger.services import auth_service
from siteledger.utils.errors import service_error_response

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1")


@auth_bp.route("/auth/signup", methods=["POST"])
def signup():
    data, err = json_body()
    if err:
        return err
    result, err = auth_service.signup(
        data.get("email"),
        data.get("password"),
        data.get("full_name"),
        data.get("company_name"),
    )
    if err:
        return service_error_response(err)
    return jsonify(result), 201


@auth_bp.route("/auth/login", methods=["POST"])
def login():
    data, err = json_body()
    if err:
        return err
    result, err = auth_service.login(data.get("email"), data.get("password"))
    if err:
        return service_error_response(err)
    return jsonify(result), 200


@auth_bp.route("/auth/me", methods=["GET"])
def me():
    actor, err = require_actor()
    if err:
        return err
    user, err = auth_service.get_current_user(actor)
    if err:
        return service_error_response(err)
    return jsonify(user), 200


@auth_bp.route("/users", methods=["GET"])
def list_users():
    actor, err = require_actor()
    if err:
        return err
    return jsonify([u.to_dict() for u in auth_service.list_users(actor)]), 200


@auth_bp.route("/users", methods=["POST"])
def create_user():
    actor, err = require_actor()
    if err:
        return err
    data, err = json_body()
    if err:
        return err
    user, err = auth_service.create_user(
        actor,
        data.get("email"),
        data.get("password"),
        data.get("full_name"),
        data.get("role") or "MEMBER",
    )
    if err:
        return service_error_response(err)
    return jsonify(user.to_dict()), 201

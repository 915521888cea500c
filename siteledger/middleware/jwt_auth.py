"""
JWT Auth Middleware: parses the Bearer token and resolves the actor.

For every /api/v1/ request outside the public prefixes:
  1. decode the access token (signature, expiry, type)
  2. load the user from the database; deleted users are rejected
  3. set g.actor (siteledger.security.types.Actor)

The hook never rejects a request itself. Views call
``siteledger.blueprints.require_actor()`` and return its 401 when no
actor was resolved, so public endpoints need no special casing here
beyond the skip list.
"""

import logging

import jwt as pyjwt
from flask import g, request

from siteledger.services.auth_service import resolve_actor
from siteledger.services.jwt_service import decode_access_token

logger = logging.getLogger(__name__)

# Paths that skip JWT auth entirely
JWT_SKIP_PREFIXES = (
    "/api/v1/auth/login",
    "/api/v1/auth/signup",
    "/api/v1/health",
    "/api/v1/version",
)


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.actor = None
        g.auth_error = None

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return

        token = auth_header[7:].strip()
        try:
            payload = decode_access_token(token)
        except pyjwt.ExpiredSignatureError:
            g.auth_error = "Token expired"
            return
        except pyjwt.InvalidTokenError:
            g.auth_error = "Invalid token"
            return

        actor, err = resolve_actor(payload["sub"], payload["company_id"])
        if err:
            logger.warning("Token for unknown or deleted user %s", payload.get("sub"))
            g.auth_error = err.message
            return
        g.actor = actor

"""
SiteLedger
Blueprint registry and shared view helpers.
"""

from flask import g, request

from siteledger.utils.errors import E, api_error


def require_actor():
    """Return (actor, None) for an authenticated request, else (None, 401 response)."""
    actor = getattr(g, "actor", None)
    if actor is None:
        message = getattr(g, "auth_error", None) or "Authentication required"
        return None, api_error(E.UNAUTHORIZED, message)
    return actor, None


def json_body():
    """Return the JSON object body, or (None, 400 response) when it is not an object."""
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return None, api_error(E.VALIDATION_INVALID, "Request body must be a JSON object")
    return data, None

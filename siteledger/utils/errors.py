"""JSON error envelope shared by every blueprint.

Body shape::

    {"error": "<human readable>", "code": "ERR_<CATEGORY>", "details": {...}?}

Views either build one directly::

    return api_error(E.VALIDATION_REQUIRED, "report_date is required")

or translate a service result::

    report, err = daily_report_service.get_report(actor, report_id)
    if err:
        return service_error_response(err)
"""

from __future__ import annotations

from flask import jsonify

from siteledger.core.errors import ErrorKind, ServiceError


class E:
    """Machine-readable error codes."""

    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"
    UNAUTHORIZED = "ERR_UNAUTHORIZED"
    FORBIDDEN = "ERR_FORBIDDEN"
    NOT_FOUND = "ERR_NOT_FOUND"
    CONFLICT_STATE = "ERR_CONFLICT_STATE"
    RATE_LIMITED = "ERR_RATE_LIMITED"
    INTERNAL = "ERR_INTERNAL"


_STATUS_BY_CODE: dict[str, int] = {
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 400,
    E.UNAUTHORIZED: 401,
    E.FORBIDDEN: 403,
    E.NOT_FOUND: 404,
    E.CONFLICT_STATE: 409,
    E.RATE_LIMITED: 429,
    E.INTERNAL: 500,
}

# Service results only ever produce these codes
_CODE_BY_KIND: dict[ErrorKind, str] = {
    ErrorKind.UNAUTHORIZED: E.UNAUTHORIZED,
    ErrorKind.FORBIDDEN: E.FORBIDDEN,
    ErrorKind.NOT_FOUND: E.NOT_FOUND,
    ErrorKind.CONFLICT: E.CONFLICT_STATE,
    ErrorKind.BAD_REQUEST: E.VALIDATION_INVALID,
    ErrorKind.INTERNAL: E.INTERNAL,
}


def api_error(code: str, message: str, *, status: int | None = None, details: dict | None = None):
    """Return ``(response, status)`` for a Flask view.

    ``status`` defaults to the code's usual HTTP status, or 400 for an
    unknown code.
    """
    body: dict = {"error": message, "code": code}
    if details:
        body["details"] = details
    return jsonify(body), status or _STATUS_BY_CODE.get(code, 400)


def service_error_response(err: ServiceError):
    return api_error(_CODE_BY_KIND[err.kind], err.message, status=err.status)

"""
Service-layer error taxonomy.

Services never raise for expected failures. They return a
``(value, ServiceError | None)`` tuple and callers compose them by early
return; blueprints turn the error into a JSON response with
``siteledger.utils.errors.service_error_response``.

Usage:
    from siteledger.core.errors import ServiceError

    if project is None:
        return None, ServiceError.not_found("Project not found")

Cross-company access always surfaces as NOT_FOUND so a caller can never
learn that a resource exists in another company.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    BAD_REQUEST = "BAD_REQUEST"
    INTERNAL = "INTERNAL"


_HTTP_STATUS = {
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.INTERNAL: 500,
}


@dataclass(frozen=True)
class ServiceError:
    """A classified, user-safe failure returned by a service function."""

    kind: ErrorKind
    message: str

    @property
    def status(self) -> int:
        return _HTTP_STATUS[self.kind]

    # ── Factories ────────────────────────────────────────────────────────

    @classmethod
    def unauthorized(cls, message: str = "Authentication required") -> "ServiceError":
        return cls(ErrorKind.UNAUTHORIZED, message)

    @classmethod
    def forbidden(cls, message: str = "Forbidden") -> "ServiceError":
        return cls(ErrorKind.FORBIDDEN, message)

    @classmethod
    def not_found(cls, message: str = "Not found") -> "ServiceError":
        return cls(ErrorKind.NOT_FOUND, message)

    @classmethod
    def conflict(cls, message: str) -> "ServiceError":
        return cls(ErrorKind.CONFLICT, message)

    @classmethod
    def bad_request(cls, message: str) -> "ServiceError":
        return cls(ErrorKind.BAD_REQUEST, message)

    @classmethod
    def internal(cls, message: str = "Internal server error") -> "ServiceError":
        return cls(ErrorKind.INTERNAL, message)

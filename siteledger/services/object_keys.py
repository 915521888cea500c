"""
Object-key scheme for uploaded files.

Keys encode the owning company and, for project files, the project:

    companies/{company_id}/projects/{project_id}/files/{random_id}
    companies/{company_id}/files/{random_id}

``random_id`` is always a fresh UUID4; nothing from the request ends up
in a key. Keys are built at presign time and checked again at finalize,
before any database lookup, so a client cannot register an object that
lives under another company's or project's prefix.
"""

import uuid


def expected_prefix(company_id: str, project_id: str | None = None) -> str:
    """Return the key prefix every object of this company/project must start with."""
    if project_id is not None:
        return f"companies/{company_id}/projects/{project_id}/files/"
    return f"companies/{company_id}/files/"


def build_object_key(company_id: str, project_id: str | None = None) -> str:
    return expected_prefix(company_id, project_id) + str(uuid.uuid4())


def validate_object_key(object_key: str, company_id: str, project_id: str | None = None) -> bool:
    """True iff ``object_key`` sits directly under the caller's expected prefix.

    A project-scoped key does not validate as a company-level key and
    vice versa. The part after the prefix must be a single non-empty
    path segment.
    """
    if not object_key or not company_id:
        return False
    prefix = expected_prefix(company_id, project_id)
    if not object_key.startswith(prefix):
        return False
    remainder = object_key[len(prefix):]
    return bool(remainder) and "/" not in remainder and remainder not in (".", "..")

"""Shared request-parsing helpers for blueprints and services.

parse_date:      strict ISO YYYY-MM-DD → date, None on bad input
require_fields:  first missing/blank required key in a JSON body
"""
import re
from datetime import date, datetime

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_date(value):
    """Parse a calendar date in YYYY-MM-DD form.

    Returns None for empty/invalid input, including well-formed strings
    that are not real dates (2026-02-30). Datetimes are not accepted:
    a report date is a calendar day, not an instant.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return None
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _ISO_DATE_RE.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def require_fields(data: dict, *fields: str) -> str | None:
    """Return the first field that is missing or blank, else None."""
    for field in fields:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            return field
    return None

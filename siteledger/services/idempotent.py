"""
Idempotent create-if-absent protocol.

Used by every operation that must create a row at most once for a
natural key even when the same request is retried or raced:

    - first draft report of the day   (company, project, report_date)
    - upload finalize                  (bucket, object_key, company)
    - project member add               (company, project, user)
    - report attachment                (company, report, file)

Steps, strictly in order (authorization is the caller's job and has
already happened):
  1. look the natural key up; if present return it, no write, no audit
  2. insert; the unique constraint on the natural key is the arbiter
  3. on success commit, run ``on_created`` (the audit call) once, return
  4. on IntegrityError roll back and look up once more; return the
     winner without auditing, or INTERNAL if the re-read still misses

There is one insert and at most one re-read. Nothing loops.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from sqlalchemy.exc import IntegrityError

from siteledger.core.errors import ServiceError
from siteledger.models import db

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class IdempotentOutcome(Generic[T]):
    """The record for the natural key and whether this call created it."""

    record: T
    created: bool


def get_or_create(
    *,
    label: str,
    lookup: Callable[[], T | None],
    build: Callable[[], T],
    on_created: Callable[[T], None] | None = None,
) -> tuple[IdempotentOutcome | None, ServiceError | None]:
    """Run the create-if-absent protocol for one natural key.

    Args:
        label: Short name used in log lines (e.g. "daily_report.draft").
        lookup: Returns the live record for the natural key, or None.
        build: Returns a new, unsaved model instance for the natural key.
        on_created: Called with the committed record, only when this
            call performed the insert.

    Returns:
        (IdempotentOutcome, None) on success, (None, ServiceError) when
        the unique constraint fired but the conflicting row is not
        visible to the re-read.
    """
    existing = lookup()
    if existing is not None:
        logger.debug("%s: natural key already present (id=%s)", label, existing.id)
        return IdempotentOutcome(existing, created=False), None

    record = build()
    try:
        db.session.add(record)
        db.session.flush()  # triggers the unique constraint before commit
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.info("%s: lost insert race, re-reading (%s)", label, exc.orig)
        winner = lookup()
        if winner is None:
            logger.error("%s: unique violation but no row visible on re-read", label)
            return None, ServiceError.internal()
        return IdempotentOutcome(winner, created=False), None

    if on_created is not None:
        on_created(record)
    return IdempotentOutcome(record, created=True), None

"""
Company-scoped query helpers.

Every get-by-id in SiteLedger goes through ``get_scoped_or_none`` instead
of ``db.session.get(Model, pk)``. A bare primary-key lookup would return
another company's row; this helper refuses to run without a scope.

Usage:
    report = get_scoped_or_none(DailyReport, report_id, company_id=actor.company_id)
    if report is None:
        return None, ServiceError.not_found("Daily report not found")

Scope field resolution:
    Each keyword argument maps directly to a column name on the model.
    A scope kwarg naming a column the model lacks raises ValueError, so
    the bug surfaces in tests instead of silently widening the query.

Soft-deleted rows (``deleted_at`` set) are excluded unless
``include_deleted=True``.
"""

import logging

from sqlalchemy import select

from siteledger.models import db

logger = logging.getLogger(__name__)

_SCOPE_KWARGS = ("company_id", "project_id")


def get_scoped_or_none(
    model,
    pk: str,
    *,
    company_id: str | None = None,
    project_id: str | None = None,
    include_deleted: bool = False,
):
    """Fetch one entity by PK inside the given scope, or None.

    Missing and out-of-scope rows are indistinguishable.

    Raises:
        ValueError: If no scope is given, or a given scope names a
                    column that does not exist on the model.
    """
    provided = {"company_id": company_id, "project_id": project_id}
    provided = {k: v for k, v in provided.items() if v is not None}

    if not provided:
        raise ValueError(
            f"{model.__name__} id={pk} requires a scope filter ({', '.join(_SCOPE_KWARGS)}). "
            "Unscoped lookups are forbidden."
        )

    missing = sorted(field for field in provided if not hasattr(model, field))
    if missing:
        raise ValueError(
            f"{model.__name__} has no scope column(s) {missing}; refusing an unscoped lookup."
        )

    if pk is None:
        return None

    stmt = select(model).where(model.id == pk)
    for field, value in provided.items():
        stmt = stmt.where(getattr(model, field) == value)
    if not include_deleted and hasattr(model, "deleted_at"):
        stmt = stmt.where(model.deleted_at.is_(None))

    result = db.session.execute(stmt).scalar_one_or_none()
    if result is None:
        logger.debug("get_scoped_or_none: %s id=%s not found in scope %s", model.__name__, pk, provided)
    return result

"""
Audit emitter.

``record`` appends one AuditEvent in its own commit and never raises.
Callers invoke it only after their primary change has been committed,
so a failed audit write can neither fail nor roll back that change.

Usage:
    from siteledger.services import audit_service

    db.session.commit()
    audit_service.record(
        company_id=actor.company_id,
        actor_user_id=actor.user_id,
        entity_type="PROJECT",
        entity_id=project.id,
        action="ARCHIVED",
        project_id=project.id,
    )
"""

import logging

from siteledger.models import db
from siteledger.models.audit import AUDIT_ACTIONS, AUDIT_ENTITY_TYPES, AuditEvent

logger = logging.getLogger(__name__)


def record(
    *,
    company_id: str,
    actor_user_id: str | None,
    entity_type: str,
    entity_id: str,
    action: str,
    project_id: str | None = None,
    metadata: dict | None = None,
) -> None:
    if entity_type not in AUDIT_ENTITY_TYPES or action not in AUDIT_ACTIONS:
        logger.warning("Unregistered audit event %s.%s", entity_type, action)

    try:
        db.session.add(
            AuditEvent(
                company_id=company_id,
                actor_user_id=actor_user_id,
                project_id=project_id,
                entity_type=entity_type,
                entity_id=str(entity_id),
                action=action,
                event_metadata=metadata,
            )
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception(
            "Audit write failed: %s.%s entity=%s company=%s",
            entity_type, action, entity_id, company_id,
        )

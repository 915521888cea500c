"""
SiteLedger
Audit domain model.

Models:
    - AuditEvent: append-only record of lifecycle side effects.

Rows are written by ``siteledger.services.audit_service.record`` after the
primary change has committed. Nothing in the application reads them back.
"""

from datetime import datetime, timezone

from siteledger.models import _uuid, db


# ── Constants ────────────────────────────────────────────────────────────────

AUDIT_ENTITY_TYPES = {
    "COMPANY",
    "USER",
    "PROJECT",
    "PROJECT_MEMBER",
    "DAILY_REPORT",
    "FILE_OBJECT",
}

AUDIT_ACTIONS = {
    "CREATED",
    "ARCHIVED",
    "ADDED",
    "SUBMITTED",
    "APPROVED",
    "UPLOADED",
    "RENAMED",
    "DELETED",
    "FILE_ATTACHED",
    "FILE_DETACHED",
}


class AuditEvent(db.Model):
    """
    Immutable audit trail entry.

    ``event_metadata`` is an opaque JSON blob supplied by the caller.
    """

    __tablename__ = "audit_events"
    __table_args__ = (
        db.Index("ix_audit_events_company_entity", "company_id", "entity_type", "entity_id"),
        db.Index("ix_audit_events_project", "project_id"),
        db.Index("ix_audit_events_created_at", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    company_id = db.Column(db.String(36), nullable=False, index=True)
    actor_user_id = db.Column(db.String(36), nullable=True)
    project_id = db.Column(db.String(36), nullable=True)
    entity_type = db.Column(db.String(50), nullable=False)
    entity_id = db.Column(db.String(64), nullable=False)
    action = db.Column(db.String(50), nullable=False)
    event_metadata = db.Column("metadata", db.JSON, nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    def to_dict(self):
        return {
            "id": self.id,
            "company_id": self.company_id,
            "actor_user_id": self.actor_user_id,
            "project_id": self.project_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "action": self.action,
            "metadata": self.event_metadata,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

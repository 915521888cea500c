"""
Soft Delete Mixin

Adds `deleted_at` timestamp column for soft delete.
Users, projects, daily reports and file objects are never physically
removed; they are marked deleted and filtered out of every lookup.

Usage:
    class FileObject(SoftDeleteMixin, TenantModel):
        ...

    obj.soft_delete()
    db.session.commit()
"""

from datetime import datetime, timezone

from siteledger.models import db


class SoftDeleteMixin:
    """Mixin that adds soft delete support to any SQLAlchemy model."""

    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, default=None, index=True)

    def soft_delete(self):
        """Mark this record as deleted."""
        self.deleted_at = datetime.now(timezone.utc)

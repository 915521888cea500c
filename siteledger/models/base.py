"""
TenantModel: Abstract base class for company-scoped models.

Every table that belongs to a company inherits from TenantModel
instead of db.Model directly. This adds:
  - opaque string primary key
  - company_id FK column with index
"""

from datetime import datetime, timezone

from siteledger.models import _uuid, db


class TenantModel(db.Model):
    """Abstract base for company-scoped tables."""
    __abstract__ = True

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    company_id = db.Column(
        db.String(36),
        db.ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

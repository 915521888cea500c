"""
SiteLedger
Auth domain models: companies and users.

Models:
    - Company: root of tenant isolation; every other row carries company_id.
    - User:    belongs to exactly one company; system role OWNER | MEMBER.
"""

from datetime import datetime, timezone

from siteledger.models import _uuid, db
from siteledger.models.soft_delete import SoftDeleteMixin


# ═══════════════════════════════════════════════════════════════
# 1. COMPANIES
# ═══════════════════════════════════════════════════════════════
class Company(db.Model):
    __tablename__ = "companies"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    name = db.Column(db.String(200), nullable=False)
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    users = db.relationship("User", back_populates="company", lazy="dynamic")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


# ═══════════════════════════════════════════════════════════════
# 2. USERS
# ═══════════════════════════════════════════════════════════════
class User(SoftDeleteMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    company_id = db.Column(
        db.String(36), db.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    email = db.Column(db.String(320), nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    full_name = db.Column(db.String(200), nullable=False)
    role = db.Column(db.String(20), nullable=False, default="MEMBER")  # OWNER, MEMBER
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    # Login is by email alone, so addresses are unique across companies
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_users_email"),
        db.Index("ix_users_company_id", "company_id"),
    )

    company = db.relationship("Company", back_populates="users")

    def to_dict(self):
        return {
            "id": self.id,
            "company_id": self.company_id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

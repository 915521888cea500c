"""
SiteLedger
Project domain models.

Models:
    - Project:       a construction site owned by one company.
    - ProjectMember: (company, project, user) membership with a project role.

Project numbers are unique per company among non-deleted projects; the
partial index lets an archived-then-deleted number be reused.
"""

from datetime import datetime, timezone

from siteledger.models import db
from siteledger.models.base import TenantModel
from siteledger.models.soft_delete import SoftDeleteMixin


class Project(SoftDeleteMixin, TenantModel):
    __tablename__ = "projects"

    project_number = db.Column(db.String(50), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    company_name = db.Column(db.String(200), nullable=True)
    address_line_1 = db.Column(db.String(200), nullable=True)
    address_line_2 = db.Column(db.String(200), nullable=True)
    city = db.Column(db.String(100), nullable=True)
    region = db.Column(db.String(100), nullable=True)
    postal_code = db.Column(db.String(20), nullable=True)
    country = db.Column(db.String(100), nullable=True)
    location = db.Column(db.String(300), nullable=True)
    status = db.Column(db.String(20), nullable=False, default="ACTIVE")  # ACTIVE, ARCHIVED
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.Index(
            "uq_projects_company_number_active",
            "company_id",
            "project_number",
            unique=True,
            postgresql_where=db.text("deleted_at IS NULL"),
            sqlite_where=db.text("deleted_at IS NULL"),
        ),
    )

    members = db.relationship(
        "ProjectMember", back_populates="project", lazy="dynamic", cascade="all, delete-orphan"
    )

    @property
    def address_display(self):
        parts = [
            self.address_line_1,
            self.address_line_2,
            self.city,
            " ".join(p for p in (self.region, self.postal_code) if p),
            self.country,
        ]
        return ", ".join(p for p in parts if p)

    def to_dict(self):
        return {
            "id": self.id,
            "company_id": self.company_id,
            "project_number": self.project_number,
            "name": self.name,
            "company_name": self.company_name,
            "address_line_1": self.address_line_1,
            "address_line_2": self.address_line_2,
            "city": self.city,
            "region": self.region,
            "postal_code": self.postal_code,
            "country": self.country,
            "location": self.location,
            "address_display": self.address_display,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class ProjectMember(TenantModel):
    __tablename__ = "project_members"

    project_id = db.Column(
        db.String(36), db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    project_role = db.Column(db.String(20), nullable=False, default="MEMBER")  # OWNER, MEMBER

    __table_args__ = (
        db.UniqueConstraint(
            "company_id", "project_id", "user_id", name="uq_project_members_company_project_user"
        ),
        db.Index("ix_project_members_project_id", "project_id"),
        db.Index("ix_project_members_user_id", "user_id"),
    )

    project = db.relationship("Project", back_populates="members")
    user = db.relationship("User")

    def to_dict(self, include_user=False):
        d = {
            "id": self.id,
            "company_id": self.company_id,
            "project_id": self.project_id,
            "user_id": self.user_id,
            "project_role": self.project_role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_user and self.user is not None:
            d["email"] = self.user.email
            d["full_name"] = self.user.full_name
        return d

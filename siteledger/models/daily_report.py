"""
SiteLedger
Daily report domain models.

Models:
    - DailyReport:           one site report per (company, project, date).
    - DailyReportAttachment: links a report to an uploaded file of the same project.

Status moves DRAFT → SUBMITTED → APPROVED and never back.
"""

from datetime import datetime, timezone

from siteledger.models import db
from siteledger.models.base import TenantModel
from siteledger.models.soft_delete import SoftDeleteMixin


class DailyReport(SoftDeleteMixin, TenantModel):
    __tablename__ = "daily_reports"

    project_id = db.Column(
        db.String(36), db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    report_date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(20), nullable=False, default="DRAFT")  # DRAFT, SUBMITTED, APPROVED
    created_by_user_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    work_completed_text = db.Column(db.Text, nullable=False, default="")
    issues_delays_text = db.Column(db.Text, nullable=True)
    notes_text = db.Column(db.Text, nullable=True)
    weather_observed = db.Column(db.JSON, nullable=True)
    hours_worked_total = db.Column(db.Float, nullable=True)
    submitted_at = db.Column(db.DateTime(timezone=True), nullable=True)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    approved_by_user_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # At most one live report per project and day
    __table_args__ = (
        db.Index(
            "uq_daily_reports_company_project_date_active",
            "company_id",
            "project_id",
            "report_date",
            unique=True,
            postgresql_where=db.text("deleted_at IS NULL"),
            sqlite_where=db.text("deleted_at IS NULL"),
        ),
        db.Index("ix_daily_reports_project_date", "project_id", "report_date"),
    )

    attachments = db.relationship(
        "DailyReportAttachment",
        back_populates="daily_report",
        lazy="dynamic",
        cascade="all, delete-orphan",
    )

    def to_dict(self, include_attachments=False):
        d = {
            "id": self.id,
            "company_id": self.company_id,
            "project_id": self.project_id,
            "report_date": self.report_date.isoformat() if self.report_date else None,
            "status": self.status,
            "created_by_user_id": self.created_by_user_id,
            "work_completed_text": self.work_completed_text,
            "issues_delays_text": self.issues_delays_text,
            "notes_text": self.notes_text,
            "weather_observed": self.weather_observed,
            "hours_worked_total": self.hours_worked_total,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "approved_at": self.approved_at.isoformat() if self.approved_at else None,
            "approved_by_user_id": self.approved_by_user_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_attachments:
            d["attachments"] = [a.to_dict() for a in self.attachments.all()]
        return d


class DailyReportAttachment(TenantModel):
    __tablename__ = "daily_report_attachments"

    daily_report_id = db.Column(
        db.String(36), db.ForeignKey("daily_reports.id", ondelete="CASCADE"), nullable=False
    )
    file_object_id = db.Column(
        db.String(36), db.ForeignKey("file_objects.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        db.UniqueConstraint(
            "company_id", "daily_report_id", "file_object_id",
            name="uq_daily_report_attachments_company_report_file",
        ),
        db.Index("ix_daily_report_attachments_file_object_id", "file_object_id"),
    )

    daily_report = db.relationship("DailyReport", back_populates="attachments")
    file_object = db.relationship("FileObject")

    def to_dict(self):
        d = {
            "id": self.id,
            "daily_report_id": self.daily_report_id,
            "file_object_id": self.file_object_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if self.file_object is not None:
            d["original_filename"] = self.file_object.original_filename
            d["mime_type"] = self.file_object.mime_type
        return d

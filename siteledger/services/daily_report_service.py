"""Daily report service.

Lifecycle:
    DRAFT ──submit──▶ SUBMITTED ──approve──▶ APPROVED

There is at most one live report per (company, project, report_date);
``create_or_get_draft`` returns it if it exists and creates it otherwise.
Drafts are editable by any project member; SUBMITTED and APPROVED
reports are frozen. Reports of another company are reported as not found.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from sqlalchemy import func, select

from siteledger.core.errors import ServiceError
from siteledger.models import db
from siteledger.models.daily_report import DailyReport, DailyReportAttachment
from siteledger.models.file_object import FileObject
from siteledger.security import policies
from siteledger.security.membership import authorize_project_access, is_member
from siteledger.security.types import Actor, DailyReportStatus, ReportSnapshot
from siteledger.services import audit_service
from siteledger.services.helpers.scoped_queries import get_scoped_or_none
from siteledger.services.idempotent import IdempotentOutcome, get_or_create

logger = logging.getLogger(__name__)

_TEXT_FIELDS = ("work_completed_text", "issues_delays_text", "notes_text")


# ── Lookups ──────────────────────────────────────────────────────────────────


def find_report_for_date(company_id: str, project_id: str, report_date: date) -> DailyReport | None:
    stmt = select(DailyReport).where(
        DailyReport.company_id == company_id,
        DailyReport.project_id == project_id,
        DailyReport.report_date == report_date,
        DailyReport.deleted_at.is_(None),
    )
    return db.session.execute(stmt).scalar_one_or_none()


def find_attachment(company_id: str, report_id: str, file_object_id: str) -> DailyReportAttachment | None:
    stmt = select(DailyReportAttachment).where(
        DailyReportAttachment.company_id == company_id,
        DailyReportAttachment.daily_report_id == report_id,
        DailyReportAttachment.file_object_id == file_object_id,
    )
    return db.session.execute(stmt).scalar_one_or_none()


def _load_report_for_member(actor: Actor, report_id: str):
    """Company-scoped fetch, then membership on the report's project."""
    report = get_scoped_or_none(DailyReport, report_id, company_id=actor.company_id)
    if report is None:
        return None, ServiceError.not_found("Daily report not found")
    if not is_member(actor.company_id, report.project_id, actor.user_id):
        logger.warning(
            "Daily report access denied: company=%s user=%s report=%s",
            actor.company_id, actor.user_id, report_id,
        )
        return None, ServiceError.forbidden("Not a project member")
    return report, None


# ── Reads ────────────────────────────────────────────────────────────────────


def list_for_project(
    actor: Actor,
    project_id: str,
    from_date: date | None = None,
    to_date: date | None = None,
) -> tuple[list[DailyReport] | None, ServiceError | None]:
    decision = authorize_project_access(actor, project_id)
    if not decision.allowed:
        return None, decision.error

    stmt = select(DailyReport).where(
        DailyReport.company_id == actor.company_id,
        DailyReport.project_id == project_id,
        DailyReport.deleted_at.is_(None),
    )
    if from_date is not None:
        stmt = stmt.where(DailyReport.report_date >= from_date)
    if to_date is not None:
        stmt = stmt.where(DailyReport.report_date <= to_date)
    stmt = stmt.order_by(DailyReport.report_date.desc())
    return list(db.session.execute(stmt).scalars()), None


def get_report(actor: Actor, report_id: str):
    return _load_report_for_member(actor, report_id)


# ── Create-or-get ────────────────────────────────────────────────────────────


def create_or_get_draft(
    actor: Actor, project_id: str, report_date: date
) -> tuple[IdempotentOutcome | None, ServiceError | None]:
    """Return the day's report for the project, creating an empty DRAFT if none exists.

    Whatever state an existing report is in (edited draft, submitted,
    approved) is returned as-is.
    """
    decision = authorize_project_access(actor, project_id)
    if not decision.allowed:
        return None, decision.error

    def _audit(report: DailyReport) -> None:
        audit_service.record(
            company_id=actor.company_id,
            actor_user_id=actor.user_id,
            entity_type="DAILY_REPORT",
            entity_id=report.id,
            action="CREATED",
            project_id=project_id,
            metadata={"projectId": project_id, "reportDate": report_date.isoformat()},
        )

    return get_or_create(
        label="daily_report.draft",
        lookup=lambda: find_report_for_date(actor.company_id, project_id, report_date),
        build=lambda: DailyReport(
            company_id=actor.company_id,
            project_id=project_id,
            report_date=report_date,
            status=DailyReportStatus.DRAFT.value,
            created_by_user_id=actor.user_id,
            work_completed_text="",
        ),
        on_created=_audit,
    )


# ── Draft edits & transitions ────────────────────────────────────────────────


def update_draft(actor: Actor, report_id: str, data: dict):
    report, err = _load_report_for_member(actor, report_id)
    if err:
        return None, err
    if not policies.can_edit_draft_report(actor, ReportSnapshot.from_report(report)):
        return None, ServiceError.conflict("Cannot edit submitted report")

    for field in _TEXT_FIELDS:
        if field in data:
            value = data[field]
            if value is not None and not isinstance(value, str):
                return None, ServiceError.bad_request(f"{field} must be a string")
            if field == "work_completed_text" and value is None:
                value = ""
            setattr(report, field, value)

    if "weather_observed" in data:
        weather = data["weather_observed"]
        if weather is not None and not isinstance(weather, dict):
            return None, ServiceError.bad_request("weather_observed must be an object")
        report.weather_observed = weather

    if "hours_worked_total" in data:
        hours = data["hours_worked_total"]
        if hours is not None:
            if isinstance(hours, bool) or not isinstance(hours, (int, float)) or hours < 0:
                return None, ServiceError.bad_request(
                    "hours_worked_total must be a non-negative number"
                )
            hours = float(hours)
        report.hours_worked_total = hours

    db.session.commit()
    return report, None


def submit_report(actor: Actor, report_id: str):
    report, err = _load_report_for_member(actor, report_id)
    if err:
        return None, err
    if not policies.can_submit_report(actor, ReportSnapshot.from_report(report)):
        return None, ServiceError.conflict("Report is already submitted")
    if not (report.work_completed_text or "").strip():
        return None, ServiceError.bad_request("work_completed_text must be non-empty to submit")

    report.status = DailyReportStatus.SUBMITTED.value
    report.submitted_at = datetime.now(timezone.utc)
    db.session.commit()

    audit_service.record(
        company_id=actor.company_id,
        actor_user_id=actor.user_id,
        entity_type="DAILY_REPORT",
        entity_id=report.id,
        action="SUBMITTED",
        project_id=report.project_id,
    )
    return report, None


def approve_report(actor: Actor, report_id: str):
    """OWNER approves a SUBMITTED report. Membership is not required for OWNERs.

    Existence is checked before the role, so another company's report is
    NOT_FOUND for every caller.
    """
    report = get_scoped_or_none(DailyReport, report_id, company_id=actor.company_id)
    if report is None:
        return None, ServiceError.not_found("Daily report not found")
    if not policies.can_approve_daily_report(actor):
        return None, ServiceError.forbidden("Only OWNER can approve daily reports")
    if report.status != DailyReportStatus.SUBMITTED.value:
        return None, ServiceError.conflict("Only submitted reports can be approved")

    report.status = DailyReportStatus.APPROVED.value
    report.approved_at = datetime.now(timezone.utc)
    report.approved_by_user_id = actor.user_id
    db.session.commit()

    audit_service.record(
        company_id=actor.company_id,
        actor_user_id=actor.user_id,
        entity_type="DAILY_REPORT",
        entity_id=report.id,
        action="APPROVED",
        project_id=report.project_id,
    )
    return report, None


# ── Attachments ──────────────────────────────────────────────────────────────


def attach_file(
    actor: Actor, report_id: str, file_object_id: str
) -> tuple[IdempotentOutcome | None, ServiceError | None]:
    """Link an uploaded file to a report; repeating the call returns the same link."""
    report, err = _load_report_for_member(actor, report_id)
    if err:
        return None, err
    if report.status != DailyReportStatus.DRAFT.value:
        return None, ServiceError.conflict("Cannot edit submitted report")

    file_object = get_scoped_or_none(FileObject, file_object_id, company_id=actor.company_id)
    if file_object is None:
        return None, ServiceError.not_found("File not found")
    if file_object.project_id != report.project_id:
        return None, ServiceError.forbidden("File must belong to the same project as the report")

    def _audit(attachment: DailyReportAttachment) -> None:
        audit_service.record(
            company_id=actor.company_id,
            actor_user_id=actor.user_id,
            entity_type="DAILY_REPORT",
            entity_id=report_id,
            action="FILE_ATTACHED",
            project_id=report.project_id,
            metadata={"reportId": report_id, "fileObjectId": file_object_id},
        )

    return get_or_create(
        label="daily_report.attach",
        lookup=lambda: find_attachment(actor.company_id, report_id, file_object_id),
        build=lambda: DailyReportAttachment(
            company_id=actor.company_id,
            daily_report_id=report_id,
            file_object_id=file_object_id,
        ),
        on_created=_audit,
    )


def detach_file(actor: Actor, report_id: str, file_object_id: str):
    report, err = _load_report_for_member(actor, report_id)
    if err:
        return None, err
    if report.status != DailyReportStatus.DRAFT.value:
        return None, ServiceError.conflict("Cannot edit submitted report")

    attachment = find_attachment(actor.company_id, report_id, file_object_id)
    if attachment is None:
        return None, ServiceError.not_found("Attachment not found")

    project_id = report.project_id
    db.session.delete(attachment)
    db.session.commit()

    audit_service.record(
        company_id=actor.company_id,
        actor_user_id=actor.user_id,
        entity_type="DAILY_REPORT",
        entity_id=report_id,
        action="FILE_DETACHED",
        project_id=project_id,
        metadata={"reportId": report_id, "fileObjectId": file_object_id},
    )
    return True, None


def attachment_count(company_id: str, file_object_id: str) -> int:
    stmt = select(func.count()).where(
        DailyReportAttachment.company_id == company_id,
        DailyReportAttachment.file_object_id == file_object_id,
    )
    return db.session.execute(stmt).scalar_one()

"""Dashboard summary for the signed-in user.

Every figure is limited to the actor's company and to projects the actor
is a member of; soft-deleted projects and reports are left out.

Shape:
    active_projects_count, total_projects_count
    reports_this_week   {submitted_count, draft_count, total_count}
    recent_projects     five most recently updated projects
    recent_reports      five most recently updated reports
    needs_attention     {stale_drafts_count}  drafts untouched for 48h
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select

from siteledger.models import db
from siteledger.models.auth import User
from siteledger.models.daily_report import DailyReport
from siteledger.models.project import Project, ProjectMember
from siteledger.security.types import Actor, DailyReportStatus, ProjectStatus

RECENT_LIMIT = 5
REPORT_WINDOW = timedelta(days=7)
STALE_DRAFT_AGE = timedelta(hours=48)


def _member_project_ids(actor: Actor):
    return select(ProjectMember.project_id).where(
        ProjectMember.company_id == actor.company_id,
        ProjectMember.user_id == actor.user_id,
    )


def _scalar(stmt) -> int:
    return db.session.execute(stmt).scalar_one()


def get_dashboard(actor: Actor, *, now: datetime | None = None) -> dict:
    now = now or datetime.now(timezone.utc)
    project_ids = _member_project_ids(actor)

    live_projects = (
        Project.company_id == actor.company_id,
        Project.deleted_at.is_(None),
        Project.id.in_(project_ids),
    )
    live_reports = (
        DailyReport.company_id == actor.company_id,
        DailyReport.deleted_at.is_(None),
        DailyReport.project_id.in_(project_ids),
    )

    total_projects = _scalar(select(func.count(Project.id)).where(*live_projects))
    active_projects = _scalar(
        select(func.count(Project.id)).where(
            *live_projects, Project.status == ProjectStatus.ACTIVE.value
        )
    )

    week_statuses = Counter(
        db.session.execute(
            select(DailyReport.status).where(
                *live_reports, DailyReport.created_at >= now - REPORT_WINDOW
            )
        ).scalars()
    )

    stale_drafts = _scalar(
        select(func.count(DailyReport.id)).where(
            *live_reports,
            DailyReport.status == DailyReportStatus.DRAFT.value,
            DailyReport.updated_at < now - STALE_DRAFT_AGE,
        )
    )

    recent_projects = db.session.execute(
        select(Project)
        .where(*live_projects)
        .order_by(Project.updated_at.desc())
        .limit(RECENT_LIMIT)
    ).scalars()

    recent_reports = db.session.execute(
        select(DailyReport, Project.name, User.full_name)
        .join(Project, Project.id == DailyReport.project_id)
        .outerjoin(User, User.id == DailyReport.created_by_user_id)
        .where(*live_reports)
        .order_by(DailyReport.updated_at.desc())
        .limit(RECENT_LIMIT)
    ).all()

    return {
        "active_projects_count": active_projects,
        "total_projects_count": total_projects,
        "reports_this_week": {
            "submitted_count": week_statuses[DailyReportStatus.SUBMITTED.value],
            "draft_count": week_statuses[DailyReportStatus.DRAFT.value],
            "total_count": sum(week_statuses.values()),
        },
        "recent_projects": [
            {
                "id": p.id,
                "name": p.name,
                "status": p.status,
                "location": p.location,
                "updated_at": p.updated_at.isoformat() if p.updated_at else None,
            }
            for p in recent_projects
        ],
        "recent_reports": [
            {
                "id": r.id,
                "project_id": r.project_id,
                "project_name": project_name,
                "report_date": r.report_date.isoformat(),
                "status": r.status,
                "updated_at": r.updated_at.isoformat() if r.updated_at else None,
                "created_by": {"id": r.created_by_user_id, "full_name": full_name},
            }
            for r, project_name, full_name in recent_reports
        ],
        "needs_attention": {"stale_drafts_count": stale_drafts},
    }

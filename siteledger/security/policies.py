"""
Role policies.

Pure functions over an ``Actor`` (and, for report edits, a
``ReportSnapshot``). They do no I/O and never look at project
membership; callers combine them with ``siteledger.security.membership``.

A company mismatch on a report is a plain ``False`` here. Callers that
fetched the report through a company-scoped query never reach that
branch, and must report the mismatch as NOT_FOUND if they do.
"""

from siteledger.security.types import Actor, DailyReportStatus, ReportSnapshot, UserRole


def _is_owner(actor: Actor) -> bool:
    return actor.role == UserRole.OWNER


def can_create_project(actor: Actor) -> bool:
    return _is_owner(actor)


def can_archive_project(actor: Actor) -> bool:
    return _is_owner(actor)


def can_manage_project_members(actor: Actor) -> bool:
    return _is_owner(actor)


def can_approve_daily_report(actor: Actor) -> bool:
    return _is_owner(actor)


def can_delete_file(actor: Actor) -> bool:
    return _is_owner(actor)


def can_edit_draft_report(actor: Actor, report: ReportSnapshot) -> bool:
    """Any user of the report's company may edit it while it is a draft."""
    return actor.company_id == report.company_id and report.status == DailyReportStatus.DRAFT


def can_submit_report(actor: Actor, report: ReportSnapshot) -> bool:
    return actor.company_id == report.company_id and report.status == DailyReportStatus.DRAFT

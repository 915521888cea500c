"""
Role, status and actor types shared by policies, the membership
resolver and every service.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum


class UserRole(str, Enum):
    OWNER = "OWNER"
    MEMBER = "MEMBER"


class ProjectRole(str, Enum):
    OWNER = "OWNER"
    MEMBER = "MEMBER"


class ProjectStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


class DailyReportStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"


@dataclass(frozen=True)
class Actor:
    """The authenticated caller: who they are, their company and system role."""

    user_id: str
    company_id: str
    role: UserRole

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(user_id=user.id, company_id=user.company_id, role=UserRole(user.role))


@dataclass(frozen=True)
class ReportSnapshot:
    """The fields of a daily report that policy decisions look at."""

    id: str
    company_id: str
    project_id: str
    status: DailyReportStatus
    created_by_user_id: str | None = None
    report_date: date | None = None

    @classmethod
    def from_report(cls, report) -> "ReportSnapshot":
        return cls(
            id=report.id,
            company_id=report.company_id,
            project_id=report.project_id,
            status=DailyReportStatus(report.status),
            created_by_user_id=report.created_by_user_id,
            report_date=report.report_date,
        )

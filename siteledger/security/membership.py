"""
Company/membership resolver.

Answers "does this project exist in this company?" and "is this user a
member of it?", then composes the two with an optional role policy into
a single ``AccessDecision``.

Order of checks in ``authorize_project_access``:
  1. project exists in the actor's company  → else NOT_FOUND
  2. role policy (if given) or membership    → else FORBIDDEN

A project in another company looks exactly like a missing one. Nothing
here is cached; every call goes to the request-scoped session.

Usage:
    decision = authorize_project_access(actor, project_id)
    if not decision.allowed:
        return None, decision.error
"""

import logging
from dataclasses import dataclass
from typing import Callable

from sqlalchemy import select

from siteledger.core.errors import ErrorKind, ServiceError
from siteledger.models import db
from siteledger.models.project import Project, ProjectMember
from siteledger.security.types import Actor, ProjectRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of a project access check."""

    allowed: bool
    kind: ErrorKind | None = None
    message: str = ""

    @property
    def error(self) -> ServiceError | None:
        if self.allowed:
            return None
        return ServiceError(self.kind, self.message)


ALLOW = AccessDecision(allowed=True)


def project_exists(company_id: str, project_id: str) -> bool:
    """True iff a non-deleted project with this id belongs to the company."""
    if not company_id or not project_id:
        return False
    stmt = (
        select(Project.id)
        .where(Project.id == project_id)
        .where(Project.company_id == company_id)
        .where(Project.deleted_at.is_(None))
    )
    return db.session.execute(stmt).first() is not None


def _membership(company_id: str, project_id: str, user_id: str):
    stmt = select(ProjectMember).where(
        ProjectMember.company_id == company_id,
        ProjectMember.project_id == project_id,
        ProjectMember.user_id == user_id,
    )
    return db.session.execute(stmt).scalar_one_or_none()


def is_member(company_id: str, project_id: str, user_id: str) -> bool:
    return _membership(company_id, project_id, user_id) is not None


def get_project_role(company_id: str, project_id: str, user_id: str) -> ProjectRole | None:
    member = _membership(company_id, project_id, user_id)
    if member is None:
        return None
    return ProjectRole(member.project_role)


def authorize_project_access(
    actor: Actor,
    project_id: str,
    *,
    policy: Callable[[Actor], bool] | None = None,
    forbidden_message: str = "Not a project member",
) -> AccessDecision:
    """Check existence, then the role policy or membership.

    With ``policy`` the role decides and membership is not consulted;
    without it the actor must be a member of the project.
    """
    if not project_exists(actor.company_id, project_id):
        logger.warning(
            "Project access denied (not found): company=%s user=%s project=%s",
            actor.company_id, actor.user_id, project_id,
        )
        return AccessDecision(False, ErrorKind.NOT_FOUND, "Project not found")

    if policy is not None:
        if policy(actor):
            return ALLOW
    elif is_member(actor.company_id, project_id, actor.user_id):
        return ALLOW

    logger.warning(
        "Project access denied (forbidden): company=%s user=%s project=%s",
        actor.company_id, actor.user_id, project_id,
    )
    return AccessDecision(False, ErrorKind.FORBIDDEN, forbidden_message)

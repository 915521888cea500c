"""Project membership service.

``add_member`` is idempotent on (company, project, user): a repeat add
returns the existing membership instead of inserting a second row. What
happens to the role on a repeat add with a different ``project_role`` is
controlled by MEMBER_READD_ROLE_POLICY:

    keep   (default)  the stored role is returned unchanged, no write
    update            the stored role is overwritten; no ADDED audit
"""

from __future__ import annotations

import logging

from flask import current_app
from sqlalchemy import select

from siteledger.core.errors import ServiceError
from siteledger.models import db
from siteledger.models.auth import User
from siteledger.models.project import ProjectMember
from siteledger.security import policies
from siteledger.security.membership import authorize_project_access
from siteledger.security.types import Actor, ProjectRole
from siteledger.services import audit_service
from siteledger.services.idempotent import IdempotentOutcome, get_or_create
from siteledger.services.helpers.scoped_queries import get_scoped_or_none

logger = logging.getLogger(__name__)

READD_KEEP = "keep"
READD_UPDATE = "update"


def _readd_policy() -> str:
    policy = current_app.config.get("MEMBER_READD_ROLE_POLICY", READD_KEEP)
    return policy if policy in (READD_KEEP, READD_UPDATE) else READD_KEEP


def find_membership(company_id: str, project_id: str, user_id: str) -> ProjectMember | None:
    stmt = select(ProjectMember).where(
        ProjectMember.company_id == company_id,
        ProjectMember.project_id == project_id,
        ProjectMember.user_id == user_id,
    )
    return db.session.execute(stmt).scalar_one_or_none()


def list_members(actor: Actor, project_id: str) -> tuple[list[ProjectMember] | None, ServiceError | None]:
    decision = authorize_project_access(actor, project_id)
    if not decision.allowed:
        return None, decision.error
    stmt = (
        select(ProjectMember)
        .where(ProjectMember.company_id == actor.company_id, ProjectMember.project_id == project_id)
        .order_by(ProjectMember.created_at)
    )
    return list(db.session.execute(stmt).scalars()), None


def add_member(
    actor: Actor, project_id: str, user_id: str, project_role: str | None = None
) -> tuple[IdempotentOutcome | None, ServiceError | None]:
    decision = authorize_project_access(
        actor,
        project_id,
        policy=policies.can_manage_project_members,
        forbidden_message="Only OWNER can manage project members",
    )
    if not decision.allowed:
        return None, decision.error

    try:
        role = ProjectRole(project_role or ProjectRole.MEMBER.value)
    except ValueError:
        return None, ServiceError.bad_request("project_role must be OWNER or MEMBER")

    target = get_scoped_or_none(User, user_id, company_id=actor.company_id)
    if target is None:
        return None, ServiceError.not_found("User not found")

    def _audit(member: ProjectMember) -> None:
        audit_service.record(
            company_id=actor.company_id,
            actor_user_id=actor.user_id,
            entity_type="PROJECT_MEMBER",
            entity_id=member.id,
            action="ADDED",
            project_id=project_id,
            metadata={"userId": user_id, "projectRole": role.value},
        )

    outcome, err = get_or_create(
        label="project_member.add",
        lookup=lambda: find_membership(actor.company_id, project_id, user_id),
        build=lambda: ProjectMember(
            company_id=actor.company_id,
            project_id=project_id,
            user_id=user_id,
            project_role=role.value,
        ),
        on_created=_audit,
    )
    if err:
        return None, err

    member = outcome.record
    if (
        not outcome.created
        and member.project_role != role.value
        and _readd_policy() == READD_UPDATE
    ):
        logger.info(
            "Re-add of member %s on project %s changes role %s → %s",
            user_id, project_id, member.project_role, role.value,
        )
        member.project_role = role.value
        db.session.commit()
    return outcome, None

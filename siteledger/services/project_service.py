"""Project service: list, create, read and archive, scoped to the actor's company.

A project's creator becomes its OWNER member in the same transaction as
the project row. Projects are archived, never hard-deleted.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from siteledger.core.errors import ServiceError
from siteledger.models import db
from siteledger.models.project import Project, ProjectMember
from siteledger.security import policies
from siteledger.security.membership import authorize_project_access
from siteledger.security.types import Actor, ProjectRole, ProjectStatus
from siteledger.services import audit_service
from siteledger.services.helpers.scoped_queries import get_scoped_or_none

logger = logging.getLogger(__name__)

_OPTIONAL_FIELDS = (
    "company_name",
    "address_line_1",
    "address_line_2",
    "city",
    "region",
    "postal_code",
    "country",
    "location",
)


def _clean(value) -> str:
    return str(value or "").strip()


def _number_in_use(company_id: str, project_number: str) -> bool:
    stmt = select(Project.id).where(
        Project.company_id == company_id,
        Project.project_number == project_number,
        Project.deleted_at.is_(None),
    )
    return db.session.execute(stmt).first() is not None


def list_projects(actor: Actor) -> list[Project]:
    """Live projects of the actor's company that the actor is a member of, newest update first."""
    stmt = (
        select(Project)
        .join(
            ProjectMember,
            (ProjectMember.project_id == Project.id)
            & (ProjectMember.company_id == actor.company_id)
            & (ProjectMember.user_id == actor.user_id),
        )
        .where(Project.company_id == actor.company_id, Project.deleted_at.is_(None))
        .order_by(Project.updated_at.desc())
    )
    return list(db.session.execute(stmt).scalars())


def create_project(actor: Actor, data: dict) -> tuple[Project | None, ServiceError | None]:
    if not policies.can_create_project(actor):
        return None, ServiceError.forbidden("Only OWNER can create projects")

    project_number = _clean(data.get("project_number"))
    name = _clean(data.get("name"))
    if not project_number:
        return None, ServiceError.bad_request("project_number is required")
    if not name:
        return None, ServiceError.bad_request("name is required")

    duplicate = ServiceError.conflict(
        f'Project number "{project_number}" already exists in your company'
    )
    if _number_in_use(actor.company_id, project_number):
        return None, duplicate

    project = Project(
        company_id=actor.company_id,
        project_number=project_number,
        name=name,
        status=ProjectStatus.ACTIVE.value,
        **{field: (_clean(data.get(field)) or None) for field in _OPTIONAL_FIELDS},
    )
    db.session.add(project)
    try:
        db.session.flush()
        db.session.add(
            ProjectMember(
                company_id=actor.company_id,
                project_id=project.id,
                user_id=actor.user_id,
                project_role=ProjectRole.OWNER.value,
            )
        )
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        if _number_in_use(actor.company_id, project_number):
            return None, duplicate
        raise

    audit_service.record(
        company_id=actor.company_id,
        actor_user_id=actor.user_id,
        entity_type="PROJECT",
        entity_id=project.id,
        action="CREATED",
        project_id=project.id,
        metadata={"projectNumber": project_number},
    )
    logger.info("Project created: %s (%s) company=%s", project.id, project_number, actor.company_id)
    return project, None


def get_project(actor: Actor, project_id: str) -> tuple[Project | None, ServiceError | None]:
    decision = authorize_project_access(actor, project_id)
    if not decision.allowed:
        return None, decision.error
    return get_scoped_or_none(Project, project_id, company_id=actor.company_id), None


def archive_project(actor: Actor, project_id: str) -> tuple[Project | None, ServiceError | None]:
    decision = authorize_project_access(
        actor,
        project_id,
        policy=policies.can_archive_project,
        forbidden_message="Only OWNER can archive projects",
    )
    if not decision.allowed:
        return None, decision.error

    project = get_scoped_or_none(Project, project_id, company_id=actor.company_id)

    project.status = ProjectStatus.ARCHIVED.value
    db.session.commit()

    audit_service.record(
        company_id=actor.company_id,
        actor_user_id=actor.user_id,
        entity_type="PROJECT",
        entity_id=project.id,
        action="ARCHIVED",
        project_id=project.id,
    )
    return project, None

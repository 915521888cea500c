"""
Company/membership resolver.

Covers:
  1. project_exists: own company, other company, soft-deleted, unknown id
  2. is_member / get_project_role
  3. authorize_project_access: NOT_FOUND before FORBIDDEN, role policy path
"""

from datetime import datetime, timezone

from siteledger.core.errors import ErrorKind
from siteledger.models import db
from siteledger.models.project import Project
from siteledger.security import policies
from siteledger.security.membership import (
    authorize_project_access,
    get_project_role,
    is_member,
    project_exists,
)
from siteledger.security.types import Actor, ProjectRole


class TestProjectExists:
    def test_own_company_project_exists(self, seed):
        assert project_exists(seed.company_a_id, seed.project_a_id)

    def test_other_company_project_looks_missing(self, seed):
        assert not project_exists(seed.company_a_id, seed.project_b_id)
        assert not project_exists(seed.company_b_id, seed.project_a_id)

    def test_unknown_and_empty_ids(self, seed):
        assert not project_exists(seed.company_a_id, "does-not-exist")
        assert not project_exists(seed.company_a_id, "")
        assert not project_exists("", seed.project_a_id)

    def test_soft_deleted_project_does_not_exist(self, seed):
        project = db.session.get(Project, seed.project_a_id)
        project.deleted_at = datetime.now(timezone.utc)
        db.session.commit()
        assert not project_exists(seed.company_a_id, seed.project_a_id)


class TestMembership:
    def test_members_and_roles(self, seed):
        assert is_member(seed.company_a_id, seed.project_a_id, seed.member_a.id)
        assert get_project_role(seed.company_a_id, seed.project_a_id, seed.owner_a.id) == ProjectRole.OWNER
        assert get_project_role(seed.company_a_id, seed.project_a_id, seed.member_a.id) == ProjectRole.MEMBER

    def test_non_member(self, seed):
        assert not is_member(seed.company_a_id, seed.project_a_id, seed.outsider_a.id)
        assert get_project_role(seed.company_a_id, seed.project_a_id, seed.outsider_a.id) is None

    def test_membership_requires_matching_company(self, seed):
        assert not is_member(seed.company_b_id, seed.project_a_id, seed.member_a.id)


class TestAuthorizeProjectAccess:
    def test_member_is_allowed(self, seed):
        decision = authorize_project_access(seed.member_a_actor, seed.project_a_id)
        assert decision.allowed
        assert decision.error is None

    def test_non_member_is_forbidden(self, seed):
        decision = authorize_project_access(seed.outsider_a_actor, seed.project_a_id)
        assert not decision.allowed
        assert decision.kind == ErrorKind.FORBIDDEN
        assert decision.error.status == 403

    def test_cross_company_is_not_found_not_forbidden(self, seed):
        decision = authorize_project_access(seed.owner_b_actor, seed.project_a_id)
        assert decision.kind == ErrorKind.NOT_FOUND
        assert decision.message == "Project not found"

    def test_role_policy_replaces_membership(self, seed):
        # member_a is on the project, but the role policy alone decides
        decision = authorize_project_access(
            seed.member_a_actor, seed.project_a_id, policy=policies.can_manage_project_members
        )
        assert decision.kind == ErrorKind.FORBIDDEN

    def test_role_policy_still_checks_existence_first(self, seed):
        decision = authorize_project_access(
            seed.owner_b_actor, seed.project_a_id, policy=policies.can_manage_project_members
        )
        assert decision.kind == ErrorKind.NOT_FOUND

    def test_role_policy_allows_owner_without_membership(self, seed, make_user):
        second_owner = make_user(seed.company_a_id, role="OWNER")
        decision = authorize_project_access(
            Actor.from_user(second_owner),
            seed.project_a_id,
            policy=policies.can_manage_project_members,
        )
        assert decision.allowed

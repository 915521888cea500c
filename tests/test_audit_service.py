"""
Audit emitter: one row per call, and a failed write never escapes.
"""

from siteledger.models import db
from siteledger.models.audit import AuditEvent
from siteledger.models.auth import Company
from siteledger.services import audit_service


def test_record_appends_event_with_metadata():
    audit_service.record(
        company_id="c-1",
        actor_user_id="u-1",
        entity_type="PROJECT",
        entity_id="p-1",
        action="ARCHIVED",
        project_id="p-1",
        metadata={"reason": "done"},
    )
    event = AuditEvent.query.one()
    assert event.company_id == "c-1"
    assert event.entity_type == "PROJECT"
    assert event.action == "ARCHIVED"
    assert event.event_metadata == {"reason": "done"}
    assert event.created_at is not None


def test_failed_write_is_swallowed_and_leaves_committed_work_alone():
    company = Company(name="Committed Co")
    db.session.add(company)
    db.session.commit()

    # object() cannot be JSON-serialised, so the flush fails
    result = audit_service.record(
        company_id=company.id,
        actor_user_id=None,
        entity_type="COMPANY",
        entity_id=company.id,
        action="CREATED",
        metadata={"bad": object()},
    )

    assert result is None
    assert AuditEvent.query.count() == 0
    assert Company.query.filter_by(name="Committed Co").count() == 1


def test_session_is_usable_after_failed_write():
    audit_service.record(
        company_id="c-1", actor_user_id=None, entity_type="COMPANY",
        entity_id="c-1", action="CREATED", metadata={"bad": object()},
    )
    audit_service.record(
        company_id="c-1", actor_user_id=None, entity_type="COMPANY",
        entity_id="c-1", action="CREATED",
    )
    assert AuditEvent.query.count() == 1

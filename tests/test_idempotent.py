"""
Create-if-absent protocol (siteledger.services.idempotent).

The insert race is simulated without threads: the first lookup misses
even though a row for the natural key already exists, so the insert hits
the unique constraint and the protocol must fall back to its re-read.
"""

from siteledger.core.errors import ErrorKind
from siteledger.models import db
from siteledger.models.auth import Company, User
from siteledger.services.idempotent import get_or_create


def _company():
    company = Company(name="Idem Co")
    db.session.add(company)
    db.session.commit()
    return company


def _find(email):
    return User.query.filter_by(email=email).first()


def _build(company_id, email):
    return lambda: User(
        company_id=company_id, email=email, full_name="X", role="MEMBER", password_hash="h"
    )


def test_creates_once_and_reports_created():
    company = _company()
    created = []
    outcome, err = get_or_create(
        label="test.user",
        lookup=lambda: _find("a@idem-co.com"),
        build=_build(company.id, "a@idem-co.com"),
        on_created=created.append,
    )
    assert err is None
    assert outcome.created is True
    assert created == [outcome.record]
    assert User.query.count() == 1


def test_existing_record_is_returned_without_write_or_callback():
    company = _company()
    first, _ = get_or_create(
        label="test.user",
        lookup=lambda: _find("a@idem-co.com"),
        build=_build(company.id, "a@idem-co.com"),
    )
    calls = []
    second, err = get_or_create(
        label="test.user",
        lookup=lambda: _find("a@idem-co.com"),
        build=lambda: calls.append("build"),
        on_created=lambda r: calls.append("audit"),
    )
    assert err is None
    assert second.created is False
    assert second.record.id == first.record.id
    assert calls == []


def test_lost_race_returns_winner_without_callback():
    company = _company()
    winner = User(company_id=company.id, email="race@idem-co.com", full_name="W",
                  role="MEMBER", password_hash="h")
    db.session.add(winner)
    db.session.commit()
    winner_id = winner.id

    lookups = {"n": 0}

    def stale_then_fresh():
        lookups["n"] += 1
        return None if lookups["n"] == 1 else _find("race@idem-co.com")

    created = []
    outcome, err = get_or_create(
        label="test.user",
        lookup=stale_then_fresh,
        build=_build(company.id, "race@idem-co.com"),
        on_created=created.append,
    )
    assert err is None
    assert outcome.created is False
    assert outcome.record.id == winner_id
    assert created == []
    assert lookups["n"] == 2
    assert User.query.filter_by(email="race@idem-co.com").count() == 1


def test_unique_violation_with_empty_reread_is_internal_and_does_not_loop():
    company = _company()
    db.session.add(User(company_id=company.id, email="ghost@idem-co.com", full_name="G",
                        role="MEMBER", password_hash="h"))
    db.session.commit()

    lookups = {"n": 0}

    def always_miss():
        lookups["n"] += 1
        return None

    outcome, err = get_or_create(
        label="test.user",
        lookup=always_miss,
        build=_build(company.id, "ghost@idem-co.com"),
    )
    assert outcome is None
    assert err.kind == ErrorKind.INTERNAL
    assert lookups["n"] == 2

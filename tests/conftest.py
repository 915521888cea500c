"""
Shared pytest fixtures for the SiteLedger test suite.

Provides:
    - app: Flask application (session-scoped)
    - session: Per-test table create/drop inside an app context (autouse)
    - signer: Fake object signer installed on the app for every test (autouse)
    - client: Flask test client (function-scoped)
    - seed: Two companies with owners, members and one project each
    - make_user / auth_headers: helpers for ad-hoc users and JWT headers
"""

from types import SimpleNamespace

import pytest

from siteledger import create_app
from siteledger.models import db as _db
from siteledger.models.auth import Company, User
from siteledger.models.project import Project, ProjectMember
from siteledger.security.types import Actor
from siteledger.services.jwt_service import generate_access_token
from siteledger.utils.crypto import hash_password

TEST_PASSWORD = "correct-horse-battery"


class FakeSigner:
    """Stands in for S3ObjectSigner; records every call."""

    def __init__(self, bucket="siteledger-test", endpoint_url=None):
        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self.calls = []

    def presign_upload(self, object_key, mime_type, expires_in):
        self.calls.append(("put", object_key, mime_type, expires_in))
        return f"https://s3.test/{self.bucket}/{object_key}?op=put&expires={expires_in}"

    def presign_download(self, object_key, expires_in, content_disposition=None):
        self.calls.append(("get", object_key, content_disposition, expires_in))
        return f"https://s3.test/{self.bucket}/{object_key}?op=get&expires={expires_in}"

    def set_content_disposition(self, object_key, content_disposition, content_type=None):
        self.calls.append(("copy", object_key, content_disposition, content_type))


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def password_hash():
    """bcrypt is slow on purpose; hash the shared test password once."""
    return hash_password(TEST_PASSWORD)


@pytest.fixture(autouse=True)
def session(app):
    """Per-test: open app context, create tables, drop them afterwards."""
    with app.app_context():
        _db.create_all()
        yield _db.session
        _db.session.rollback()
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(autouse=True)
def signer(app):
    fake = FakeSigner()
    app.extensions["object_signer"] = fake
    return fake


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Seed helpers ─────────────────────────────────────────────────────────


@pytest.fixture()
def make_user(password_hash):
    counter = {"n": 0}

    def _make(company_id, *, role="MEMBER", email=None, full_name=None):
        counter["n"] += 1
        user = User(
            company_id=company_id,
            email=email or f"user{counter['n']}@builders-test.com",
            full_name=full_name or f"User {counter['n']}",
            role=role,
            password_hash=password_hash,
        )
        _db.session.add(user)
        _db.session.commit()
        return user

    return _make


@pytest.fixture()
def auth_headers():
    def _headers(user):
        token = generate_access_token(user.id, user.company_id)
        return {"Authorization": f"Bearer {token}"}

    return _headers


def _project(company_id, number, *members):
    project = Project(company_id=company_id, project_number=number, name=f"Site {number}")
    _db.session.add(project)
    _db.session.flush()
    for user, role in members:
        _db.session.add(
            ProjectMember(
                company_id=company_id, project_id=project.id, user_id=user.id, project_role=role
            )
        )
    _db.session.commit()
    return project


@pytest.fixture()
def seed(make_user):
    """Two companies. A has an owner, a project member and an outsider; B has an owner.

    Attributes ending in ``_id`` are plain strings; ``*_actor`` are Actor values.
    """
    company_a = Company(name="Acme Builders")
    company_b = Company(name="Beta Construction")
    _db.session.add_all([company_a, company_b])
    _db.session.commit()

    owner_a = make_user(company_a.id, role="OWNER", email="owner@acme-builders.com")
    member_a = make_user(company_a.id, email="member@acme-builders.com")
    outsider_a = make_user(company_a.id, email="outsider@acme-builders.com")
    owner_b = make_user(company_b.id, role="OWNER", email="owner@beta-construction.com")

    project_a = _project(company_a.id, "A-100", (owner_a, "OWNER"), (member_a, "MEMBER"))
    project_b = _project(company_b.id, "B-200", (owner_b, "OWNER"))

    return SimpleNamespace(
        company_a_id=company_a.id,
        company_b_id=company_b.id,
        owner_a=owner_a,
        member_a=member_a,
        outsider_a=outsider_a,
        owner_b=owner_b,
        project_a_id=project_a.id,
        project_b_id=project_b.id,
        owner_a_actor=Actor.from_user(owner_a),
        member_a_actor=Actor.from_user(member_a),
        outsider_a_actor=Actor.from_user(outsider_a),
        owner_b_actor=Actor.from_user(owner_b),
    )

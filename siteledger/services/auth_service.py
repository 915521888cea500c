"""
Auth Service: signup, login, company users and actor resolution.

Signup creates a company and its first user (system role OWNER) in one
transaction. Emails are unique across all companies because login is by
email alone. Every function returns ``(value, ServiceError | None)``.
"""

import logging

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from siteledger.core.errors import ServiceError
from siteledger.models import db
from siteledger.models.auth import Company, User
from siteledger.security.types import Actor, UserRole
from siteledger.services import audit_service
from siteledger.services.jwt_service import token_response
from siteledger.utils.crypto import hash_password, verify_password

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def _normalize_email(email: str) -> tuple[str | None, ServiceError | None]:
    try:
        valid = validate_email((email or "").strip(), check_deliverability=False)
    except EmailNotValidError as e:
        return None, ServiceError.bad_request(f"Invalid email: {e}")
    return valid.normalized.lower(), None


def _email_taken(email: str) -> bool:
    return db.session.execute(select(User.id).where(User.email == email)).first() is not None


def _user_payload(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "role": user.role,
        "company_id": user.company_id,
    }


# ═══════════════════════════════════════════════════════════════
# Signup / Login
# ═══════════════════════════════════════════════════════════════
def signup(email: str, password: str, full_name: str, company_name: str):
    email, err = _normalize_email(email)
    if err:
        return None, err
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        return None, ServiceError.bad_request(
            f"password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    if not (full_name or "").strip() or not (company_name or "").strip():
        return None, ServiceError.bad_request("full_name and company_name are required")

    if _email_taken(email):
        return None, ServiceError.conflict("Email already registered")

    company = Company(name=company_name.strip())
    db.session.add(company)
    db.session.flush()
    user = User(
        company_id=company.id,
        email=email,
        full_name=full_name.strip(),
        role=UserRole.OWNER.value,
        password_hash=hash_password(password),
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # A concurrent signup with the same email loses on uq_users_email
        db.session.rollback()
        if _email_taken(email):
            return None, ServiceError.conflict("Email already registered")
        raise

    audit_service.record(
        company_id=company.id, actor_user_id=user.id,
        entity_type="COMPANY", entity_id=company.id, action="CREATED",
    )
    audit_service.record(
        company_id=company.id, actor_user_id=user.id,
        entity_type="USER", entity_id=user.id, action="CREATED",
    )
    logger.info("Signup: company=%s owner=%s", company.id, user.id)
    return {"token": token_response(user.id, company.id), "user": _user_payload(user)}, None


def login(email: str, password: str):
    email = (email or "").strip().lower()
    user = db.session.execute(
        select(User).where(User.email == email, User.deleted_at.is_(None))
    ).scalar_one_or_none()

    if user is None or not verify_password(password or "", user.password_hash):
        logger.warning("Failed login attempt for %s", email)
        return None, ServiceError.unauthorized("Invalid credentials")

    return {"token": token_response(user.id, user.company_id), "user": _user_payload(user)}, None


# ═══════════════════════════════════════════════════════════════
# Company users
# ═══════════════════════════════════════════════════════════════
def create_user(actor: Actor, email: str, password: str, full_name: str, role: str = "MEMBER"):
    """OWNER adds a user to their own company."""
    if actor.role != UserRole.OWNER:
        return None, ServiceError.forbidden("Only OWNER can create users")
    try:
        role = UserRole(role or UserRole.MEMBER.value)
    except ValueError:
        return None, ServiceError.bad_request("role must be OWNER or MEMBER")

    email, err = _normalize_email(email)
    if err:
        return None, err
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        return None, ServiceError.bad_request(
            f"password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    if not (full_name or "").strip():
        return None, ServiceError.bad_request("full_name is required")
    if _email_taken(email):
        return None, ServiceError.conflict("Email already registered")

    user = User(
        company_id=actor.company_id,
        email=email,
        full_name=full_name.strip(),
        role=role.value,
        password_hash=hash_password(password),
    )
    db.session.add(user)
    db.session.commit()

    audit_service.record(
        company_id=actor.company_id, actor_user_id=actor.user_id,
        entity_type="USER", entity_id=user.id, action="CREATED",
        metadata={"role": role.value},
    )
    return user, None


def list_users(actor: Actor) -> list[User]:
    stmt = (
        select(User)
        .where(User.company_id == actor.company_id, User.deleted_at.is_(None))
        .order_by(User.full_name)
    )
    return list(db.session.execute(stmt).scalars())


# ═══════════════════════════════════════════════════════════════
# Actor resolution (used by the JWT middleware)
# ═══════════════════════════════════════════════════════════════
def resolve_actor(user_id: str, company_id: str):
    """Load the live user behind a token; deleted or moved users are rejected."""
    user = db.session.execute(
        select(User).where(
            User.id == user_id,
            User.company_id == company_id,
            User.deleted_at.is_(None),
        )
    ).scalar_one_or_none()
    if user is None:
        return None, ServiceError.unauthorized("Invalid or expired token")
    return Actor.from_user(user), None


def get_current_user(actor: Actor):
    user = db.session.execute(
        select(User).where(User.id == actor.user_id, User.company_id == actor.company_id)
    ).scalar_one_or_none()
    if user is None:
        return None, ServiceError.not_found("User not found")
    company = db.session.get(Company, actor.company_id)
    d = _user_payload(user)
    d["company"] = company.to_dict() if company else None
    return d, None

"""
Authentication Service

Bootstrap, registration, login, token refresh and the password-reset flow.

SECURITY:
- Login failures (unknown email, wrong password, inactive account) all
  produce the same 401 so the response never reveals which one happened.
- forgot-password behaves identically whether or not the email exists;
  only an existing active account actually receives a token.
- Reset tokens are single use: the stored digest is cleared on success.
"""
from datetime import datetime, timedelta
from typing import Optional, Tuple

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from safestart.config import get_settings
from safestart.core.context import Actor
from safestart.core.exceptions import AuthenticationError, BusinessRuleError, ConflictError
from safestart.core.security import (
    InvalidTokenError,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    generate_reset_token,
    get_password_hash,
    hash_reset_token,
    pwd_context,
    verify_password,
)
from safestart.models.company import Company
from safestart.models.user import User, UserRole
from safestart.schemas.auth import BootstrapAdminRequest, RegisterRequest, TokenPair
from safestart.services import audit
from safestart.services.audit import AuditAction
from safestart.services.base import commit_or_conflict, ensure_payload_tenant
from safestart.services.email import email_service
from safestart.services.sms import sms_service
from safestart.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)
settings = get_settings()

INVALID_CREDENTIALS = "Invalid credentials"


def issue_tokens(user: User) -> TokenPair:
    role = UserRole(user.role).value
    return TokenPair(
        access_token=create_access_token(user.id, user.company_id, role),
        refresh_token=create_refresh_token(user.id, user.company_id, role),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


def _email_taken(db: Session, email: str) -> bool:
    return db.query(User.id).filter(User.email == email).first() is not None


def bootstrap_admin(
    db: Session,
    payload: BootstrapAdminRequest,
    background_tasks: BackgroundTasks,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Tuple[User, Company, TokenPair]:
    """
    Create the first company and its admin.

    Runs once per deployment: any existing admin, in any company,
    makes every later call a 409.
    """
    if db.query(User.id).filter(User.role == UserRole.ADMIN).first():
        log_security_event("bootstrap_rejected", {"email": payload.email, "ip_address": ip_address}, logger)
        raise ConflictError("An admin already exists. Bootstrap can only be performed once.")

    email = payload.email.lower()
    if _email_taken(db, email):
        raise ConflictError("User with this email already exists")

    company = Company(
        name=payload.company_name,
        address=payload.company_address,
        phone=payload.company_phone,
        email=payload.company_email,
    )
    db.add(company)
    db.flush()

    user = User(
        company_id=company.id,
        email=email,
        hashed_password=get_password_hash(payload.password),
        full_name=payload.full_name,
        phone=payload.phone,
        role=UserRole.ADMIN,
        is_active=True,
    )
    db.add(user)
    commit_or_conflict(db, "An admin already exists. Bootstrap can only be performed once.")

    actor = Actor.from_user(user, ip_address, user_agent)
    audit.record(
        db, actor, AuditAction.BOOTSTRAP_ADMIN, "company", company.id,
        {"company_name": company.name, "admin_email": user.email},
    )

    background_tasks.add_task(
        email_service.send_welcome_email, user.email, user.full_name, company.name, UserRole.ADMIN.value
    )

    logger.info(f"Bootstrap complete: company={company.id}, admin={user.id}")

    return user, company, issue_tokens(user)


def register_user(
    db: Session,
    actor: Actor,
    payload: RegisterRequest,
    background_tasks: BackgroundTasks,
) -> User:
    """Admin adds a user to the admin's own company."""
    ensure_payload_tenant(actor, payload.company_id)

    email = payload.email.lower()
    if _email_taken(db, email):
        raise ConflictError("User with this email already exists")

    user = User(
        company_id=actor.tenant_id,
        email=email,
        hashed_password=get_password_hash(payload.password),
        full_name=payload.full_name,
        phone=payload.phone,
        role=payload.role,
        is_active=True,
    )
    db.add(user)
    commit_or_conflict(db, "User with this email already exists")

    audit.record(
        db, actor, AuditAction.REGISTER_USER, "user", user.id,
        {"email": user.email, "role": payload.role.value},
    )

    company = db.query(Company).filter(Company.id == actor.tenant_id).first()
    company_name = company.name if company else ""
    background_tasks.add_task(
        email_service.send_welcome_email, user.email, user.full_name, company_name, payload.role.value
    )
    if user.phone:
        background_tasks.add_task(sms_service.send_welcome_sms, user.phone, user.full_name, company_name)

    logger.info(f"User registered: {user.id} by {actor.user_id}")

    return user


def authenticate(
    db: Session,
    email: str,
    password: str,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Tuple[User, TokenPair]:
    user = db.query(User).filter(User.email == email.lower()).first()

    if user is None:
        # Burn the same bcrypt time as a real check
        pwd_context.dummy_verify()
        log_security_event("failed_login", {"reason": "user_not_found", "email": email, "ip_address": ip_address}, logger)
        raise AuthenticationError(INVALID_CREDENTIALS)

    if not verify_password(password, user.hashed_password):
        log_security_event("failed_login", {"reason": "invalid_password", "user_id": user.id, "ip_address": ip_address}, logger)
        raise AuthenticationError(INVALID_CREDENTIALS)

    if not user.is_active:
        log_security_event("failed_login", {"reason": "user_inactive", "user_id": user.id, "ip_address": ip_address}, logger)
        raise AuthenticationError(INVALID_CREDENTIALS)

    user.last_login_at = datetime.utcnow()
    db.commit()

    actor = Actor.from_user(user, ip_address, user_agent)
    audit.record(db, actor, AuditAction.LOGIN, "user", user.id)

    logger.info(f"Successful login: user={user.id}, company={user.company_id}")

    return user, issue_tokens(user)


def refresh(db: Session, refresh_token: str) -> TokenPair:
    """Exchange a refresh token for a new pair, re-reading role and status."""
    try:
        claims = decode_refresh_token(refresh_token)
    except InvalidTokenError as e:
        log_security_event("invalid_token", {"reason": str(e), "token_type": "refresh"}, logger)
        raise AuthenticationError("Invalid or expired refresh token")

    user = db.query(User).filter(User.id == claims.user_id).first()
    if user is None or not user.is_active or user.company_id != claims.tenant_id:
        log_security_event("invalid_token", {"reason": "user_unavailable", "user_id": claims.user_id}, logger)
        raise AuthenticationError("Invalid or expired refresh token")

    return issue_tokens(user)


def request_password_reset(
    db: Session,
    email: str,
    background_tasks: BackgroundTasks,
    ip_address: Optional[str] = None,
) -> None:
    """
    Issue a reset token for an active account. Silent for unknown
    or inactive emails; the caller returns the same message either way.
    """
    user = db.query(User).filter(User.email == email.lower()).first()
    if user is None or not user.is_active:
        logger.info(f"Password reset requested for unknown or inactive account from {ip_address}")
        return

    token = generate_reset_token()
    user.reset_token_hash = hash_reset_token(token)
    user.reset_token_expires = datetime.utcnow() + timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
    db.commit()

    audit.record(
        db, None, AuditAction.PASSWORD_RESET_REQUESTED, "user", user.id,
        {"ip_address": ip_address}, tenant_id=user.company_id, user_id=user.id,
    )

    background_tasks.add_task(email_service.send_password_reset_email, user.email, user.full_name, token)
    if user.phone:
        background_tasks.add_task(sms_service.send_password_reset_sms, user.phone)


def reset_password(db: Session, token: str, new_password: str) -> User:
    user = db.query(User).filter(
        User.reset_token_hash == hash_reset_token(token),
        User.reset_token_expires > datetime.utcnow(),
    ).first()

    if user is None:
        log_security_event("invalid_reset_token", {}, logger)
        raise BusinessRuleError("Invalid or expired reset token")

    user.hashed_password = get_password_hash(new_password)
    user.reset_token_hash = None
    user.reset_token_expires = None
    db.commit()

    audit.record(
        db, None, AuditAction.PASSWORD_RESET, "user", user.id,
        tenant_id=user.company_id, user_id=user.id,
    )

    logger.info(f"Password reset completed for user {user.id}")

    return user

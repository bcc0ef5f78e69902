"""
User Service

Profile reads and updates inside the caller's company.

RBAC:
- List users: admin or supervisor
- Update user: admin (any user in company) or self (full_name/phone only)
- Change password: self, with the current password
"""
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from safestart.core.context import Actor
from safestart.core.exceptions import BusinessRuleError, NotFoundError, PermissionDenied
from safestart.core.permissions import SELF_EDITABLE_USER_FIELDS, can_modify_user, require_manager
from safestart.core.security import get_password_hash, verify_password
from safestart.models.user import User, UserRole
from safestart.schemas.user import PasswordChangeRequest, UserUpdate
from safestart.services import audit
from safestart.services.audit import AuditAction
from safestart.services.base import PageRequest, apply_sort, get_owned_or_404, paginate, tenant_query
from safestart.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)

USER_SORT_FIELDS = ("created_at", "full_name", "email", "role", "last_login_at")


def get_self(db: Session, actor: Actor) -> User:
    user = db.query(User).filter(User.id == actor.user_id).first()
    if user is None:
        raise NotFoundError("User")
    return user


def list_users(
    db: Session,
    actor: Actor,
    page: PageRequest,
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
) -> Tuple[List[User], int]:
    require_manager(actor, "list_users")

    query = tenant_query(db, User, actor)
    if role:
        query = query.filter(User.role == role)
    if is_active is not None:
        query = query.filter(User.is_active == is_active)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(User.full_name.ilike(pattern), User.email.ilike(pattern)))

    query = apply_sort(query, User, page, USER_SORT_FIELDS)
    return paginate(query, page)


def update_user(db: Session, actor: Actor, user_id: str, patch: UserUpdate) -> User:
    """
    Apply a profile patch.

    Lookup first, so another company's user id is a 404 even for a
    caller who would fail the permission check anyway.
    """
    user = get_owned_or_404(db, User, actor, user_id, "User")

    if not can_modify_user(actor, user.id):
        log_security_event(
            "permission_denied",
            {"user_id": actor.user_id, "tenant_id": actor.tenant_id, "action": "update_user", "resource_id": user_id},
            logger
        )
        raise PermissionDenied("Not authorized to modify this user")

    update_data = patch.model_dump(exclude_unset=True, exclude_none=True)

    if not actor.is_admin:
        forbidden = set(update_data) - SELF_EDITABLE_USER_FIELDS
        if forbidden:
            raise PermissionDenied(f"Only admins can change: {', '.join(sorted(forbidden))}")

    # Admins cannot lock themselves out of their own company
    if actor.user_id == user.id:
        if update_data.get("is_active") is False:
            raise BusinessRuleError("You cannot deactivate your own account")
        if "role" in update_data and update_data["role"] != UserRole.ADMIN and actor.is_admin:
            raise BusinessRuleError("You cannot remove your own admin role")

    for field, value in update_data.items():
        setattr(user, field, value)

    db.commit()
    db.refresh(user)

    audit.record(
        db, actor, AuditAction.UPDATE_USER, "user", user.id,
        {"fields": sorted(update_data)},
    )

    logger.info(f"User updated: {user.id} by {actor.user_id}")

    return user


def change_password(db: Session, actor: Actor, payload: PasswordChangeRequest) -> None:
    user = get_self(db, actor)

    if not verify_password(payload.current_password, user.hashed_password):
        log_security_event("failed_password_change", {"user_id": actor.user_id}, logger)
        raise BusinessRuleError("Current password is incorrect")

    user.hashed_password = get_password_hash(payload.new_password)
    db.commit()

    audit.record(db, actor, AuditAction.CHANGE_PASSWORD, "user", user.id)

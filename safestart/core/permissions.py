"""
Permission Checks

Role rules on top of tenant isolation. Tenant isolation itself is handled
by the tenant-scoped lookups in services/base.py; these helpers only
answer "may this actor do X to a row it can already see".

Roles are flat, not hierarchical, except that admin and supervisor
together form the manager group.
"""
from typing import Iterable
import logging

from safestart.core.context import Actor
from safestart.core.exceptions import PermissionDenied
from safestart.models.user import UserRole, MANAGER_ROLES
from safestart.utils.logging import log_security_event

logger = logging.getLogger(__name__)

# Fields a non-admin may change on their own profile
SELF_EDITABLE_USER_FIELDS = {"full_name", "phone"}


def require_role(actor: Actor, allowed: Iterable[UserRole], action: str = "") -> None:
    """Raise PermissionDenied unless actor.role is one of `allowed`."""
    allowed = tuple(allowed)
    if actor.role not in allowed:
        log_security_event(
            "permission_denied",
            {
                "user_id": actor.user_id,
                "tenant_id": actor.tenant_id,
                "role": actor.role.value,
                "action": action,
            },
            logger
        )
        raise PermissionDenied(
            "Insufficient permissions. Required role: " + ", ".join(r.value for r in allowed)
        )


def require_admin(actor: Actor, action: str = "") -> None:
    require_role(actor, (UserRole.ADMIN,), action)


def require_manager(actor: Actor, action: str = "") -> None:
    require_role(actor, MANAGER_ROLES, action)


def can_modify_user(actor: Actor, target_user_id: str) -> bool:
    """
    Admins can modify anyone in their company; everyone else only themselves.
    Cross-tenant targets never reach this check.
    """
    return actor.is_admin or actor.user_id == target_user_id


def can_modify_issue(actor: Actor, reported_by: str) -> bool:
    """Reporters can edit their own issues; managers can edit any."""
    return actor.is_manager or actor.user_id == reported_by

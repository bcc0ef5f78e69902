"""
Actor Context

The resolved identity of the caller, built once by the access guard and
passed explicitly into every service call. Immutable so no service can
change the tenant it is operating under.
"""
from dataclasses import dataclass
from typing import Optional

from safestart.models.user import User, UserRole, MANAGER_ROLES


@dataclass(frozen=True)
class Actor:
    user_id: str
    tenant_id: str
    role: UserRole
    email: str
    full_name: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @classmethod
    def from_user(cls, user: User, ip_address: Optional[str] = None, user_agent: Optional[str] = None) -> "Actor":
        return cls(
            user_id=user.id,
            tenant_id=user.company_id,
            role=UserRole(user.role),
            email=user.email,
            full_name=user.full_name,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_manager(self) -> bool:
        return self.role in MANAGER_ROLES

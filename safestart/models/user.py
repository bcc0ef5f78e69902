"""
User Model

Users belong to exactly one company and carry one of four roles.

IMPORTANT: company_id is the isolation field. Every query for
tenant data MUST filter by the acting user's company_id.
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from safestart.database import Base
import uuid
import enum


class UserRole(str, enum.Enum):
    """
    User roles.

    ADMIN: manages the company, users, vehicles and templates
    SUPERVISOR: manages vehicles/templates, resolves issues
    DRIVER: runs inspections and reports issues
    MECHANIC: runs inspections and reports issues
    """
    ADMIN = "admin"
    SUPERVISOR = "supervisor"
    DRIVER = "driver"
    MECHANIC = "mechanic"


# Roles allowed to manage fleet data and resolve issues
MANAGER_ROLES = (UserRole.ADMIN, UserRole.SUPERVISOR)


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    company_id = Column(
        String(36),
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Email is unique across all companies; login is not tenant-scoped
    email = Column(String(255), nullable=False, unique=True, index=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)

    role = Column(
        SQLEnum(UserRole),
        default=UserRole.DRIVER,
        nullable=False,
        index=True
    )

    # Users are deactivated, never deleted
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    # Password reset. Only the SHA-256 of the emailed token is stored.
    reset_token_hash = Column(String(64), nullable=True, index=True)
    reset_token_expires = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    last_login_at = Column(DateTime, nullable=True)

    company = relationship("Company", back_populates="users")

    __table_args__ = (
        Index('idx_user_company_active', 'company_id', 'is_active'),
        Index('idx_user_company_role', 'company_id', 'role'),
    )

    def __repr__(self):
        return f"<User {self.email} (company={self.company_id})>"

    @property
    def is_manager(self) -> bool:
        return self.role in MANAGER_ROLES

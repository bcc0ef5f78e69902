"""
Audit Log Model

Append-only record of state-changing and sensitive-read operations.
Rows are never updated or deleted through the ORM; the mapper events
below reject any attempt.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, JSON, event
from datetime import datetime
from safestart.database import Base
import uuid


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    company_id = Column(
        String(36),
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    # Nullable: password resets and bootstrap have no authenticated actor
    user_id = Column(String(36), nullable=True, index=True)

    action = Column(String(50), nullable=False, index=True)
    resource_type = Column(String(50), nullable=False)
    resource_id = Column(String(36), nullable=True)
    details = Column(JSON, nullable=True)

    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    __table_args__ = (
        Index('idx_audit_company_created', 'company_id', 'created_at'),
        Index('idx_audit_resource', 'resource_type', 'resource_id'),
    )

    def __repr__(self):
        return f"<AuditLog {self.action} {self.resource_type}:{self.resource_id}>"


class AuditLogImmutableError(Exception):
    pass


@event.listens_for(AuditLog, "before_update")
def _reject_update(mapper, connection, target):
    raise AuditLogImmutableError("Audit records cannot be modified")


@event.listens_for(AuditLog, "before_delete")
def _reject_delete(mapper, connection, target):
    raise AuditLogImmutableError("Audit records cannot be deleted")

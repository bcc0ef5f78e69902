"""
Issue Model

Issues are defects reported against a vehicle, optionally raised
from an inspection. `resolved` is one-way.
"""
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Index, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from safestart.database import Base
import uuid
import enum


class IssueSeverity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Issue(Base):
    __tablename__ = "issues"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    company_id = Column(
        String(36),
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    vehicle_id = Column(
        String(36),
        ForeignKey("vehicles.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    inspection_id = Column(
        String(36),
        ForeignKey("inspections.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    reported_by = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    severity = Column(
        SQLEnum(IssueSeverity),
        default=IssueSeverity.MEDIUM,
        nullable=False,
        index=True
    )
    title = Column(String(255), nullable=True)
    description = Column(Text, nullable=False)
    photo_urls = Column(JSON, nullable=True)

    resolved = Column(Boolean, default=False, nullable=False, index=True)
    resolved_at = Column(DateTime, nullable=True)
    resolved_by = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    resolution_notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    vehicle = relationship("Vehicle")
    reporter = relationship("User", foreign_keys=[reported_by])

    __table_args__ = (
        Index('idx_issue_company_resolved', 'company_id', 'resolved'),
        Index('idx_issue_company_severity', 'company_id', 'severity'),
    )

    def __repr__(self):
        return f"<Issue {self.id} ({self.severity}, resolved={self.resolved})>"

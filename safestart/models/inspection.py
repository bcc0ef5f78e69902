"""
Inspection Models

Status moves forward only: pending -> in_progress -> completed.
A completed inspection is terminal; neither its fields nor its
answers can change afterwards.
"""
from sqlalchemy import Column, String, Text, Boolean, Float, DateTime, ForeignKey, Index, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from safestart.database import Base
import uuid
import enum


class InspectionStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class InspectionResult(str, enum.Enum):
    PASS = "pass"
    FAIL = "fail"
    NEEDS_ATTENTION = "needs_attention"


# Position of each status in the forward-only sequence
STATUS_ORDER = {
    InspectionStatus.PENDING: 0,
    InspectionStatus.IN_PROGRESS: 1,
    InspectionStatus.COMPLETED: 2,
}


class Inspection(Base):
    __tablename__ = "inspections"

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
    template_id = Column(
        String(36),
        ForeignKey("checklist_templates.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    inspector_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    status = Column(
        SQLEnum(InspectionStatus),
        default=InspectionStatus.PENDING,
        nullable=False,
        index=True
    )
    result = Column(SQLEnum(InspectionResult), nullable=True)
    score = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)

    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    vehicle = relationship("Vehicle")
    template = relationship("ChecklistTemplate")
    inspector = relationship("User")
    answers = relationship(
        "InspectionAnswer",
        back_populates="inspection",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index('idx_inspection_company_status', 'company_id', 'status'),
        Index('idx_inspection_company_created', 'company_id', 'created_at'),
    )

    def __repr__(self):
        return f"<Inspection {self.id} ({self.status})>"

    @property
    def is_completed(self) -> bool:
        return self.status == InspectionStatus.COMPLETED


class InspectionAnswer(Base):
    __tablename__ = "inspection_answers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    inspection_id = Column(
        String(36),
        ForeignKey("inspections.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    item_id = Column(
        String(36),
        ForeignKey("checklist_items.id", ondelete="RESTRICT"),
        nullable=False
    )

    value_bool = Column(Boolean, nullable=True)
    value_text = Column(Text, nullable=True)
    value_number = Column(Float, nullable=True)
    photo_url = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    inspection = relationship("Inspection", back_populates="answers")
    item = relationship("ChecklistItem")

    __table_args__ = (
        UniqueConstraint('inspection_id', 'item_id', name='uq_answer_inspection_item'),
    )

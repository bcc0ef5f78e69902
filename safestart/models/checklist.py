"""
Checklist Template Models

A template is an ordered list of items an inspector answers.
Templates are soft-deleted via is_active; items are hard-deleted
and the remaining ones renumbered.
"""
from sqlalchemy import Column, String, Text, Boolean, Integer, DateTime, ForeignKey, Index, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from safestart.database import Base
import uuid
import enum


class ItemInputType(str, enum.Enum):
    YES_NO = "yes_no"
    TEXT = "text"
    NUMBER = "number"
    PHOTO = "photo"
    SELECT = "select"


class ChecklistTemplate(Base):
    __tablename__ = "checklist_templates"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    company_id = Column(
        String(36),
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    created_by = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    vehicle_type = Column(String(50), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    items = relationship(
        "ChecklistItem",
        back_populates="template",
        cascade="all, delete-orphan",
        order_by="ChecklistItem.sort_order",
    )

    __table_args__ = (
        Index('idx_template_company_active', 'company_id', 'is_active'),
    )

    def __repr__(self):
        return f"<ChecklistTemplate {self.name} (company={self.company_id})>"

    def soft_delete(self):
        self.is_active = False


class ChecklistItem(Base):
    __tablename__ = "checklist_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Items inherit their tenant from the template
    template_id = Column(
        String(36),
        ForeignKey("checklist_templates.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    label = Column(String(500), nullable=False)
    input_type = Column(SQLEnum(ItemInputType), default=ItemInputType.YES_NO, nullable=False)
    is_required = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    options = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    template = relationship("ChecklistTemplate", back_populates="items")

    def __repr__(self):
        return f"<ChecklistItem {self.sort_order}: {self.label}>"

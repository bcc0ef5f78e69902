"""
Vehicle Model

Vehicles are soft-deleted by moving them to status INACTIVE.
License plates are unique within a company, not globally.
"""
from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from safestart.database import Base
import uuid
import enum


class VehicleStatus(str, enum.Enum):
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    INACTIVE = "inactive"


class Vehicle(Base):
    __tablename__ = "vehicles"

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

    name = Column(String(255), nullable=True)
    license_plate = Column(String(20), nullable=False)
    vehicle_type = Column(String(50), nullable=True)
    make = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    year = Column(Integer, nullable=True)
    vin = Column(String(17), nullable=True)
    mileage = Column(Integer, nullable=True)
    status = Column(
        SQLEnum(VehicleStatus),
        default=VehicleStatus.ACTIVE,
        nullable=False,
        index=True
    )
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    creator = relationship("User", foreign_keys=[created_by])

    __table_args__ = (
        Index('idx_vehicle_company_plate', 'company_id', 'license_plate', unique=True),
        Index('idx_vehicle_company_status', 'company_id', 'status'),
    )

    def __repr__(self):
        return f"<Vehicle {self.license_plate} (company={self.company_id})>"

    def soft_delete(self):
        self.status = VehicleStatus.INACTIVE

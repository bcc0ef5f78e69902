"""
Vehicle Schemas
"""
from pydantic import BaseModel, Field, StringConstraints
from typing import Annotated, Optional
from datetime import datetime
from safestart.models.vehicle import VehicleStatus
from safestart.schemas.common import TenantScopedCreate

# Stripped before the length check so a blank plate is rejected
LicensePlate = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=20)]


class VehicleBase(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    vehicle_type: Optional[str] = Field(None, max_length=50)
    make: Optional[str] = Field(None, max_length=100)
    model: Optional[str] = Field(None, max_length=100)
    year: Optional[int] = Field(None, ge=1900, le=2100)
    vin: Optional[str] = Field(None, max_length=17)
    mileage: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None


class VehicleCreate(TenantScopedCreate, VehicleBase):
    license_plate: LicensePlate
    status: VehicleStatus = VehicleStatus.ACTIVE


class VehicleUpdate(VehicleBase):
    license_plate: Optional[LicensePlate] = None
    status: Optional[VehicleStatus] = None


class VehicleResponse(VehicleBase):
    id: str
    company_id: str
    license_plate: str
    status: VehicleStatus
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

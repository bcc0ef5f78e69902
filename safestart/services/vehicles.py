"""
Vehicle Service

CRUD for a company's vehicles. Deleting a vehicle only marks it inactive;
inspections and issues that reference it stay intact.
"""
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from safestart.core.context import Actor
from safestart.core.exceptions import ConflictError
from safestart.core.permissions import require_manager
from safestart.models.vehicle import Vehicle, VehicleStatus
from safestart.schemas.vehicle import VehicleCreate, VehicleUpdate
from safestart.services import audit
from safestart.services.audit import AuditAction
from safestart.services.base import (
    PageRequest,
    apply_sort,
    commit_or_conflict,
    ensure_payload_tenant,
    get_owned_or_404,
    paginate,
    tenant_query,
)
from safestart.utils.logging import get_logger

logger = get_logger(__name__)

VEHICLE_SORT_FIELDS = ("created_at", "updated_at", "name", "license_plate", "make", "model", "year", "status")
DUPLICATE_PLATE = "A vehicle with this license plate already exists"


def _normalize_plate(plate: str) -> str:
    return plate.strip().upper()


def _plate_taken(db: Session, actor: Actor, plate: str, exclude_id: Optional[str] = None) -> bool:
    query = tenant_query(db, Vehicle, actor).filter(Vehicle.license_plate == plate)
    if exclude_id:
        query = query.filter(Vehicle.id != exclude_id)
    return query.first() is not None


def create_vehicle(db: Session, actor: Actor, payload: VehicleCreate) -> Vehicle:
    require_manager(actor, "create_vehicle")
    ensure_payload_tenant(actor, payload.company_id)

    data = payload.model_dump()
    data["license_plate"] = _normalize_plate(payload.license_plate)

    if _plate_taken(db, actor, data["license_plate"]):
        raise ConflictError(DUPLICATE_PLATE)

    vehicle = Vehicle(company_id=actor.tenant_id, created_by=actor.user_id, **data)
    db.add(vehicle)
    commit_or_conflict(db, DUPLICATE_PLATE)
    db.refresh(vehicle)

    audit.record(
        db, actor, AuditAction.CREATE_VEHICLE, "vehicle", vehicle.id,
        {"license_plate": vehicle.license_plate},
    )

    logger.info(f"Vehicle created: {vehicle.id} by {actor.user_id}")

    return vehicle


def list_vehicles(
    db: Session,
    actor: Actor,
    page: PageRequest,
    search: Optional[str] = None,
    status: Optional[VehicleStatus] = None,
    make: Optional[str] = None,
    model: Optional[str] = None,
    vehicle_type: Optional[str] = None,
) -> Tuple[List[Vehicle], int]:
    """
    List vehicles. Inactive (deleted) vehicles are hidden unless the
    caller filters for them explicitly.
    """
    query = tenant_query(db, Vehicle, actor)

    if status:
        query = query.filter(Vehicle.status == status)
    else:
        query = query.filter(Vehicle.status != VehicleStatus.INACTIVE)

    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Vehicle.name.ilike(pattern),
            Vehicle.license_plate.ilike(pattern),
            Vehicle.make.ilike(pattern),
            Vehicle.model.ilike(pattern),
            Vehicle.vin.ilike(pattern),
        ))
    if make:
        query = query.filter(Vehicle.make.ilike(f"%{make}%"))
    if model:
        query = query.filter(Vehicle.model.ilike(f"%{model}%"))
    if vehicle_type:
        query = query.filter(Vehicle.vehicle_type == vehicle_type)

    query = apply_sort(query, Vehicle, page, VEHICLE_SORT_FIELDS)
    return paginate(query, page)


def get_vehicle(db: Session, actor: Actor, vehicle_id: str) -> Vehicle:
    vehicle = get_owned_or_404(db, Vehicle, actor, vehicle_id, "Vehicle")
    audit.record(db, actor, AuditAction.VIEW_VEHICLE, "vehicle", vehicle.id)
    return vehicle


def update_vehicle(db: Session, actor: Actor, vehicle_id: str, patch: VehicleUpdate) -> Vehicle:
    vehicle = get_owned_or_404(db, Vehicle, actor, vehicle_id, "Vehicle")
    require_manager(actor, "update_vehicle")

    update_data = patch.model_dump(exclude_unset=True, exclude_none=True)
    if "license_plate" in update_data:
        update_data["license_plate"] = _normalize_plate(update_data["license_plate"])
        if _plate_taken(db, actor, update_data["license_plate"], exclude_id=vehicle.id):
            raise ConflictError(DUPLICATE_PLATE)

    for field, value in update_data.items():
        setattr(vehicle, field, value)

    commit_or_conflict(db, DUPLICATE_PLATE)
    db.refresh(vehicle)

    audit.record(
        db, actor, AuditAction.UPDATE_VEHICLE, "vehicle", vehicle.id,
        {"fields": sorted(update_data)},
    )

    logger.info(f"Vehicle updated: {vehicle.id} by {actor.user_id}")

    return vehicle


def delete_vehicle(db: Session, actor: Actor, vehicle_id: str) -> Vehicle:
    vehicle = get_owned_or_404(db, Vehicle, actor, vehicle_id, "Vehicle")
    require_manager(actor, "delete_vehicle")

    vehicle.soft_delete()
    db.commit()

    audit.record(
        db, actor, AuditAction.DELETE_VEHICLE, "vehicle", vehicle.id,
        {"license_plate": vehicle.license_plate},
    )

    logger.info(f"Vehicle deactivated: {vehicle.id} by {actor.user_id}")

    return vehicle

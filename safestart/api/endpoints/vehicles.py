"""
Vehicle Endpoints

RBAC:
- List/view vehicles: all authenticated users
- Create/update/delete: admin or supervisor
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from safestart.database import get_db
from safestart.core.context import Actor
from safestart.models.vehicle import VehicleStatus
from safestart.schemas.common import ApiResponse, MessageResponse, PaginationMeta
from safestart.schemas.vehicle import VehicleCreate, VehicleResponse, VehicleUpdate
from safestart.services import vehicles as vehicle_service
from safestart.services.base import PageRequest
from safestart.api.deps import get_current_actor, page_params

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


@router.post("", response_model=ApiResponse[VehicleResponse], status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    payload: VehicleCreate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    vehicle = vehicle_service.create_vehicle(db, actor, payload)
    return ApiResponse(message="Vehicle created successfully", data=VehicleResponse.model_validate(vehicle))


@router.get("", response_model=ApiResponse[List[VehicleResponse]])
async def list_vehicles(
    page: PageRequest = Depends(page_params),
    search: Optional[str] = Query(None, max_length=100),
    status: Optional[VehicleStatus] = Query(None),
    make: Optional[str] = Query(None, max_length=100),
    model: Optional[str] = Query(None, max_length=100),
    vehicle_type: Optional[str] = Query(None, max_length=50),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """
    List vehicles in the caller's company.

    Deleted vehicles only appear with `status=inactive`.
    """
    vehicles, total = vehicle_service.list_vehicles(
        db, actor, page,
        search=search, status=status, make=make, model=model, vehicle_type=vehicle_type,
    )
    return ApiResponse(
        data=[VehicleResponse.model_validate(v) for v in vehicles],
        pagination=PaginationMeta.build(page.page, page.limit, total),
    )


@router.get("/{vehicle_id}", response_model=ApiResponse[VehicleResponse])
async def get_vehicle(
    vehicle_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    vehicle = vehicle_service.get_vehicle(db, actor, vehicle_id)
    return ApiResponse(data=VehicleResponse.model_validate(vehicle))


@router.patch("/{vehicle_id}", response_model=ApiResponse[VehicleResponse])
async def update_vehicle(
    vehicle_id: str,
    patch: VehicleUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    vehicle = vehicle_service.update_vehicle(db, actor, vehicle_id, patch)
    return ApiResponse(message="Vehicle updated successfully", data=VehicleResponse.model_validate(vehicle))


@router.delete("/{vehicle_id}", response_model=MessageResponse)
async def delete_vehicle(
    vehicle_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Soft delete: the vehicle is marked inactive, not removed."""
    vehicle_service.delete_vehicle(db, actor, vehicle_id)
    return MessageResponse(message="Vehicle deleted successfully")

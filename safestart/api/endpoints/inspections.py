"""
Inspection Endpoints

Any user in the company can create and view inspections. Updates and
answer submissions are limited to the assigned inspector and managers,
and stop once the inspection is completed.
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from safestart.database import get_db
from safestart.core.context import Actor
from safestart.models.inspection import InspectionResult, InspectionStatus
from safestart.schemas.common import ApiResponse, PaginationMeta
from safestart.schemas.inspection import (
    InspectionCreate,
    InspectionResponse,
    InspectionStats,
    InspectionSummary,
    InspectionUpdate,
    SubmitAnswersRequest,
)
from safestart.services import inspections as inspection_service
from safestart.services.base import PageRequest
from safestart.utils.export import export_filename, inspections_to_csv
from safestart.api.deps import get_current_actor, page_params

router = APIRouter(prefix="/inspections", tags=["inspections"])


def inspection_filters(
    status: Optional[InspectionStatus] = Query(None),
    result: Optional[InspectionResult] = Query(None),
    vehicle_id: Optional[str] = Query(None),
    inspector_id: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
) -> dict:
    return {
        "status": status,
        "result": result,
        "vehicle_id": vehicle_id,
        "inspector_id": inspector_id,
        "start_date": start_date,
        "end_date": end_date,
    }


@router.post("", response_model=ApiResponse[InspectionResponse], status_code=status.HTTP_201_CREATED)
async def create_inspection(
    payload: InspectionCreate,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    inspection = inspection_service.create_inspection(db, actor, payload, background_tasks)
    return ApiResponse(message="Inspection created successfully", data=InspectionResponse.model_validate(inspection))


@router.get("", response_model=ApiResponse[List[InspectionSummary]])
async def list_inspections(
    page: PageRequest = Depends(page_params),
    filters: dict = Depends(inspection_filters),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    inspections, total = inspection_service.list_inspections(db, actor, page, **filters)
    return ApiResponse(
        data=[InspectionSummary.model_validate(i) for i in inspections],
        pagination=PaginationMeta.build(page.page, page.limit, total),
    )


@router.get("/stats", response_model=ApiResponse[InspectionStats])
async def get_inspection_stats(
    filters: dict = Depends(inspection_filters),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    stats = inspection_service.inspection_stats(db, actor, **filters)
    return ApiResponse(data=InspectionStats(**stats))


@router.get("/export/csv")
async def export_inspections_csv(
    filters: dict = Depends(inspection_filters),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """CSV of every matching inspection. 404 when nothing matches."""
    inspections = inspection_service.export_inspections(db, actor, **filters)
    return Response(
        content=inspections_to_csv(inspections),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename("inspections")}"'},
    )


@router.get("/{inspection_id}", response_model=ApiResponse[InspectionResponse])
async def get_inspection(
    inspection_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    inspection = inspection_service.get_inspection(db, actor, inspection_id)
    return ApiResponse(data=InspectionResponse.model_validate(inspection))


@router.patch("/{inspection_id}", response_model=ApiResponse[InspectionResponse])
async def update_inspection(
    inspection_id: str,
    patch: InspectionUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    inspection = inspection_service.update_inspection(db, actor, inspection_id, patch)
    return ApiResponse(message="Inspection updated successfully", data=InspectionResponse.model_validate(inspection))


@router.post("/{inspection_id}/answers", response_model=ApiResponse[InspectionResponse])
async def submit_answers(
    inspection_id: str,
    payload: SubmitAnswersRequest,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    inspection = inspection_service.submit_answers(db, actor, inspection_id, payload.answers)
    return ApiResponse(message="Answers submitted successfully", data=InspectionResponse.model_validate(inspection))

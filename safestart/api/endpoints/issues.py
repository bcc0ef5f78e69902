"""
Issue Endpoints

RBAC:
- Report/list/view: all authenticated users
- Edit: reporter or admin/supervisor
- Resolve: admin/supervisor
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from safestart.database import get_db
from safestart.core.context import Actor
from safestart.models.issue import IssueSeverity
from safestart.schemas.common import ApiResponse, PaginationMeta
from safestart.schemas.issue import IssueCreate, IssueResolve, IssueResponse, IssueStats, IssueUpdate
from safestart.services import issues as issue_service
from safestart.services.base import PageRequest
from safestart.api.deps import get_current_actor, page_params

router = APIRouter(prefix="/issues", tags=["issues"])


def issue_filters(
    vehicle_id: Optional[str] = Query(None),
    severity: Optional[IssueSeverity] = Query(None),
    resolved: Optional[bool] = Query(None),
    reported_by: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
) -> dict:
    return {
        "vehicle_id": vehicle_id,
        "severity": severity,
        "resolved": resolved,
        "reported_by": reported_by,
        "start_date": start_date,
        "end_date": end_date,
    }


@router.post("", response_model=ApiResponse[IssueResponse], status_code=status.HTTP_201_CREATED)
async def create_issue(
    payload: IssueCreate,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    issue = issue_service.create_issue(db, actor, payload, background_tasks)
    return ApiResponse(message="Issue reported successfully", data=IssueResponse.model_validate(issue))


@router.get("", response_model=ApiResponse[List[IssueResponse]])
async def list_issues(
    page: PageRequest = Depends(page_params),
    filters: dict = Depends(issue_filters),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    issues, total = issue_service.list_issues(db, actor, page, **filters)
    return ApiResponse(
        data=[IssueResponse.model_validate(i) for i in issues],
        pagination=PaginationMeta.build(page.page, page.limit, total),
    )


@router.get("/stats", response_model=ApiResponse[IssueStats])
async def get_issue_stats(
    filters: dict = Depends(issue_filters),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    stats = issue_service.issue_stats(db, actor, **filters)
    return ApiResponse(data=IssueStats(**stats))


@router.get("/{issue_id}", response_model=ApiResponse[IssueResponse])
async def get_issue(
    issue_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    issue = issue_service.get_issue(db, actor, issue_id)
    return ApiResponse(data=IssueResponse.model_validate(issue))


@router.patch("/{issue_id}", response_model=ApiResponse[IssueResponse])
async def update_issue(
    issue_id: str,
    patch: IssueUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    issue = issue_service.update_issue(db, actor, issue_id, patch)
    return ApiResponse(message="Issue updated successfully", data=IssueResponse.model_validate(issue))


@router.patch("/{issue_id}/resolve", response_model=ApiResponse[IssueResponse])
async def resolve_issue(
    issue_id: str,
    payload: Optional[IssueResolve] = None,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    # Notes are optional, so is the body
    issue = issue_service.resolve_issue(db, actor, issue_id, payload or IssueResolve())
    return ApiResponse(message="Issue resolved successfully", data=IssueResponse.model_validate(issue))

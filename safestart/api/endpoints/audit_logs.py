"""
Audit Log Endpoints

Read-only view of the caller's company audit trail. Admin only.
"""
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from safestart.database import get_db
from safestart.core.context import Actor
from safestart.schemas.audit import AuditLogResponse
from safestart.schemas.common import ApiResponse, PaginationMeta
from safestart.services import audit as audit_service
from safestart.services.base import PageRequest
from safestart.api.deps import page_params, require_admin

router = APIRouter(prefix="/audit-logs", tags=["audit"])


@router.get("", response_model=ApiResponse[List[AuditLogResponse]])
async def list_audit_logs(
    page: PageRequest = Depends(page_params),
    user_id: Optional[str] = Query(None),
    action: Optional[str] = Query(None, max_length=50),
    resource_type: Optional[str] = Query(None, max_length=50),
    resource_id: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_db)
):
    logs, total = audit_service.list_audit_logs(
        db, actor, page,
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        start_date=start_date,
        end_date=end_date,
    )
    return ApiResponse(
        data=[AuditLogResponse.model_validate(log) for log in logs],
        pagination=PaginationMeta.build(page.page, page.limit, total),
    )

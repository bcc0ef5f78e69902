"""
Notification Endpoints

Every operation is limited to the caller's own notifications.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from safestart.database import get_db
from safestart.core.context import Actor
from safestart.schemas.common import ApiResponse, PaginationMeta
from safestart.schemas.notification import MarkAllReadResult, NotificationResponse, UnreadCount
from safestart.services import notifications as notification_service
from safestart.services.base import PageRequest
from safestart.api.deps import get_current_actor, page_params

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=ApiResponse[List[NotificationResponse]])
async def list_notifications(
    page: PageRequest = Depends(page_params),
    is_read: Optional[bool] = Query(None),
    type: Optional[str] = Query(None, max_length=50),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    notifications, total = notification_service.list_notifications(db, actor, page, is_read=is_read, type=type)
    return ApiResponse(
        data=[NotificationResponse.model_validate(n) for n in notifications],
        pagination=PaginationMeta.build(page.page, page.limit, total),
    )


@router.get("/unread-count", response_model=ApiResponse[UnreadCount])
async def get_unread_count(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    return ApiResponse(data=UnreadCount(count=notification_service.unread_count(db, actor)))


@router.patch("/mark-all-read", response_model=ApiResponse[MarkAllReadResult])
async def mark_all_read(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    updated = notification_service.mark_all_read(db, actor)
    return ApiResponse(message="All notifications marked as read", data=MarkAllReadResult(updated=updated))


@router.patch("/{notification_id}/read", response_model=ApiResponse[NotificationResponse])
async def mark_read(
    notification_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    notification = notification_service.mark_read(db, actor, notification_id)
    return ApiResponse(message="Notification marked as read", data=NotificationResponse.model_validate(notification))

"""
User Management Endpoints

All operations are scoped to the caller's company.

RBAC:
- Get self / change own password: any authenticated user
- List users: admin or supervisor
- Update user: admin, or self (full_name and phone only)
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from safestart.database import get_db
from safestart.core.context import Actor
from safestart.models.user import UserRole
from safestart.schemas.common import ApiResponse, MessageResponse, PaginationMeta
from safestart.schemas.user import PasswordChangeRequest, UserResponse, UserUpdate
from safestart.services import users as user_service
from safestart.services.base import PageRequest
from safestart.api.deps import get_current_actor, page_params, require_manager

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=ApiResponse[UserResponse])
async def get_me(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    user = user_service.get_self(db, actor)
    return ApiResponse(data=UserResponse.model_validate(user))


@router.patch("/me/password", response_model=MessageResponse)
async def change_password(
    payload: PasswordChangeRequest,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    user_service.change_password(db, actor, payload)
    return MessageResponse(message="Password changed successfully")


@router.get("", response_model=ApiResponse[List[UserResponse]])
async def list_users(
    page: PageRequest = Depends(page_params),
    role: Optional[UserRole] = Query(None),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    actor: Actor = Depends(require_manager),
    db: Session = Depends(get_db)
):
    users, total = user_service.list_users(db, actor, page, role=role, is_active=is_active, search=search)
    return ApiResponse(
        data=[UserResponse.model_validate(u) for u in users],
        pagination=PaginationMeta.build(page.page, page.limit, total),
    )


@router.patch("/{user_id}", response_model=ApiResponse[UserResponse])
async def update_user(
    user_id: str,
    patch: UserUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    user = user_service.update_user(db, actor, user_id, patch)
    return ApiResponse(message="User updated successfully", data=UserResponse.model_validate(user))

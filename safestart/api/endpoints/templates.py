"""
Checklist Template Endpoints

RBAC:
- List/view templates: all authenticated users
- Everything else: admin or supervisor
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from safestart.database import get_db
from safestart.core.context import Actor
from safestart.schemas.common import ApiResponse, MessageResponse, PaginationMeta
from safestart.schemas.template import (
    ChecklistItemCreate,
    ChecklistItemResponse,
    ChecklistItemUpdate,
    ReorderItemsRequest,
    TemplateCreate,
    TemplateResponse,
    TemplateUpdate,
)
from safestart.services import templates as template_service
from safestart.services.base import PageRequest
from safestart.api.deps import get_current_actor, page_params

router = APIRouter(prefix="/templates", tags=["templates"])


@router.post("", response_model=ApiResponse[TemplateResponse], status_code=status.HTTP_201_CREATED)
async def create_template(
    payload: TemplateCreate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    template = template_service.create_template(db, actor, payload)
    return ApiResponse(message="Template created successfully", data=TemplateResponse.model_validate(template))


@router.get("", response_model=ApiResponse[List[TemplateResponse]])
async def list_templates(
    page: PageRequest = Depends(page_params),
    search: Optional[str] = Query(None, max_length=100),
    vehicle_type: Optional[str] = Query(None, max_length=50),
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    templates, total = template_service.list_templates(db, actor, page, search=search, vehicle_type=vehicle_type)
    return ApiResponse(
        data=[TemplateResponse.model_validate(t) for t in templates],
        pagination=PaginationMeta.build(page.page, page.limit, total),
    )


@router.get("/{template_id}", response_model=ApiResponse[TemplateResponse])
async def get_template(
    template_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    template = template_service.get_template(db, actor, template_id)
    return ApiResponse(data=TemplateResponse.model_validate(template))


@router.patch("/{template_id}", response_model=ApiResponse[TemplateResponse])
async def update_template(
    template_id: str,
    patch: TemplateUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    template = template_service.update_template(db, actor, template_id, patch)
    return ApiResponse(message="Template updated successfully", data=TemplateResponse.model_validate(template))


@router.delete("/{template_id}", response_model=MessageResponse)
async def delete_template(
    template_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    template_service.delete_template(db, actor, template_id)
    return MessageResponse(message="Template deleted successfully")


@router.post("/{template_id}/items/reorder", response_model=ApiResponse[TemplateResponse])
async def reorder_items(
    template_id: str,
    payload: ReorderItemsRequest,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    template = template_service.reorder_items(db, actor, template_id, payload.item_ids)
    return ApiResponse(message="Items reordered successfully", data=TemplateResponse.model_validate(template))


@router.post("/{template_id}/items", response_model=ApiResponse[ChecklistItemResponse], status_code=status.HTTP_201_CREATED)
async def add_item(
    template_id: str,
    payload: ChecklistItemCreate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    item = template_service.add_item(db, actor, template_id, payload)
    return ApiResponse(message="Item added successfully", data=ChecklistItemResponse.model_validate(item))


@router.patch("/{template_id}/items/{item_id}", response_model=ApiResponse[ChecklistItemResponse])
async def update_item(
    template_id: str,
    item_id: str,
    patch: ChecklistItemUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    item = template_service.update_item(db, actor, template_id, item_id, patch)
    return ApiResponse(message="Item updated successfully", data=ChecklistItemResponse.model_validate(item))


@router.delete("/{template_id}/items/{item_id}", response_model=MessageResponse)
async def delete_item(
    template_id: str,
    item_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    template_service.delete_item(db, actor, template_id, item_id)
    return MessageResponse(message="Item deleted successfully")

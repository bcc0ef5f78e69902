"""
Checklist Template Schemas
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from safestart.models.checklist import ItemInputType
from safestart.schemas.common import TenantScopedCreate


class ChecklistItemCreate(BaseModel):
    label: str = Field(..., min_length=1, max_length=500)
    input_type: ItemInputType = ItemInputType.YES_NO
    is_required: bool = True
    options: Optional[List[str]] = None


class ChecklistItemUpdate(BaseModel):
    label: Optional[str] = Field(None, min_length=1, max_length=500)
    input_type: Optional[ItemInputType] = None
    is_required: Optional[bool] = None
    options: Optional[List[str]] = None


class ChecklistItemResponse(BaseModel):
    id: str
    template_id: str
    label: str
    input_type: ItemInputType
    is_required: bool
    sort_order: int
    options: Optional[List[str]] = None

    class Config:
        from_attributes = True


class TemplateCreate(TenantScopedCreate):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    vehicle_type: Optional[str] = Field(None, max_length=50)
    items: List[ChecklistItemCreate] = []


class TemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    vehicle_type: Optional[str] = Field(None, max_length=50)


class ReorderItemsRequest(BaseModel):
    """Item ids in their new order. Must list every item exactly once."""
    item_ids: List[str] = Field(..., min_length=1)


class TemplateResponse(BaseModel):
    id: str
    company_id: str
    name: str
    description: Optional[str] = None
    vehicle_type: Optional[str] = None
    is_active: bool
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    items: List[ChecklistItemResponse] = []

    class Config:
        from_attributes = True

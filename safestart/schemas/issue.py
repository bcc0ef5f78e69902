"""
Issue Schemas
"""
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime
from safestart.models.issue import IssueSeverity
from safestart.schemas.common import TenantScopedCreate


class IssueCreate(TenantScopedCreate):
    vehicle_id: str = Field(..., min_length=1)
    inspection_id: Optional[str] = None
    severity: IssueSeverity = IssueSeverity.MEDIUM
    title: Optional[str] = Field(None, max_length=255)
    description: str = Field(..., min_length=1, max_length=5000)
    photo_urls: List[str] = []


class IssueUpdate(BaseModel):
    severity: Optional[IssueSeverity] = None
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    photo_urls: Optional[List[str]] = None


class IssueResolve(BaseModel):
    resolution_notes: Optional[str] = Field(None, max_length=5000)


class IssueResponse(BaseModel):
    id: str
    company_id: str
    vehicle_id: str
    inspection_id: Optional[str] = None
    reported_by: Optional[str] = None
    severity: IssueSeverity
    title: Optional[str] = None
    description: str
    photo_urls: Optional[List[str]] = None
    resolved: bool
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None
    resolution_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class IssueStats(BaseModel):
    total: int
    resolved: int
    unresolved: int
    by_severity: Dict[str, int]

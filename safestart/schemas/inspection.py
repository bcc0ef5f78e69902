"""
Inspection Schemas
"""
from pydantic import AfterValidator, BaseModel, Field
from typing import Annotated, Dict, List, Optional
from datetime import datetime
from safestart.models.inspection import InspectionStatus, InspectionResult
from safestart.schemas.common import TenantScopedCreate


class AnswerInput(BaseModel):
    item_id: str = Field(..., min_length=1)
    value_bool: Optional[bool] = None
    value_text: Optional[str] = Field(None, max_length=5000)
    value_number: Optional[float] = None
    photo_url: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=2000)


def _unique_items(answers: List[AnswerInput]) -> List[AnswerInput]:
    item_ids = [answer.item_id for answer in answers]
    if len(item_ids) != len(set(item_ids)):
        raise ValueError("Each checklist item may be answered only once per request")
    return answers


UniqueAnswers = Annotated[List[AnswerInput], AfterValidator(_unique_items)]


class InspectionCreate(TenantScopedCreate):
    vehicle_id: str = Field(..., min_length=1)
    template_id: str = Field(..., min_length=1)
    # Managers may assign someone else; defaults to the caller
    inspector_id: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=5000)
    answers: UniqueAnswers = []


class InspectionUpdate(BaseModel):
    status: Optional[InspectionStatus] = None
    result: Optional[InspectionResult] = None
    score: Optional[float] = Field(None, ge=0, le=100)
    notes: Optional[str] = Field(None, max_length=5000)


class SubmitAnswersRequest(BaseModel):
    answers: UniqueAnswers = Field(..., min_length=1)


class AnswerResponse(BaseModel):
    id: str
    inspection_id: str
    item_id: str
    value_bool: Optional[bool] = None
    value_text: Optional[str] = None
    value_number: Optional[float] = None
    photo_url: Optional[str] = None
    notes: Optional[str] = None
    updated_at: datetime

    class Config:
        from_attributes = True


class InspectionSummary(BaseModel):
    id: str
    company_id: str
    vehicle_id: str
    template_id: str
    inspector_id: Optional[str] = None
    status: InspectionStatus
    result: Optional[InspectionResult] = None
    score: Optional[float] = None
    notes: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class InspectionResponse(InspectionSummary):
    answers: List[AnswerResponse] = []


class InspectionStats(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_result: Dict[str, int]

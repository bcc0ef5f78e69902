"""
Company Endpoints

A user can read and (as admin) edit only their own company.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from safestart.database import get_db
from safestart.core.context import Actor
from safestart.schemas.common import ApiResponse
from safestart.schemas.company import CompanyResponse, CompanyUpdate
from safestart.services import companies as company_service
from safestart.api.deps import get_current_actor

router = APIRouter(prefix="/companies", tags=["companies"])


@router.get("/{company_id}", response_model=ApiResponse[CompanyResponse])
async def get_company(
    company_id: str,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    company = company_service.get_company(db, actor, company_id)
    return ApiResponse(data=CompanyResponse.model_validate(company))


@router.patch("/{company_id}", response_model=ApiResponse[CompanyResponse])
async def update_company(
    company_id: str,
    patch: CompanyUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    company = company_service.update_company(db, actor, company_id, patch)
    return ApiResponse(message="Company updated successfully", data=CompanyResponse.model_validate(company))

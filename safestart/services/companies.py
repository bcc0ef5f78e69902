"""
Company Service

A caller can only ever see or edit their own company. Any other id,
existing or not, is a 404.
"""
from sqlalchemy.orm import Session

from safestart.core.context import Actor
from safestart.core.exceptions import NotFoundError
from safestart.core.permissions import require_admin
from safestart.models.company import Company
from safestart.schemas.company import CompanyUpdate
from safestart.services import audit
from safestart.services.audit import AuditAction
from safestart.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)


def _get_own_company(db: Session, actor: Actor, company_id: str) -> Company:
    if company_id != actor.tenant_id:
        log_security_event(
            "cross_tenant_access",
            {"user_id": actor.user_id, "tenant_id": actor.tenant_id, "resource_type": "Company", "resource_id": company_id},
            logger
        )
        raise NotFoundError("Company")

    company = db.query(Company).filter(Company.id == company_id).first()
    if company is None:
        raise NotFoundError("Company")
    return company


def get_company(db: Session, actor: Actor, company_id: str) -> Company:
    company = _get_own_company(db, actor, company_id)
    audit.record(db, actor, AuditAction.VIEW_COMPANY, "company", company.id)
    return company


def update_company(db: Session, actor: Actor, company_id: str, patch: CompanyUpdate) -> Company:
    company = _get_own_company(db, actor, company_id)
    require_admin(actor, "update_company")

    update_data = patch.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(company, field, value)

    db.commit()
    db.refresh(company)

    audit.record(
        db, actor, AuditAction.UPDATE_COMPANY, "company", company.id,
        {"fields": sorted(update_data)},
    )

    logger.info(f"Company updated: {company.id} by {actor.user_id}")

    return company

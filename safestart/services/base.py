"""
Tenant-Scoped Query Helpers

Every service goes through these helpers to load, list and create
tenant-owned rows, so the company_id filter is applied in one place.

TENANT_ISOLATION: a row owned by another company is reported exactly like
a missing row (404). The cross-tenant hit is logged as a security event.
"""
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Type

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from safestart.core.context import Actor
from safestart.core.exceptions import ConflictError, NotFoundError, PermissionDenied, ValidationFailed
from safestart.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = 10
    sort_by: Optional[str] = None
    sort_order: str = "desc"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def get_owned_or_404(db: Session, model: Type[Any], actor: Actor, row_id: str, resource: str) -> Any:
    """Load `model` by id, 404 unless it belongs to the actor's company."""
    row = db.query(model).filter(model.id == row_id).first()
    if row is None:
        raise NotFoundError(resource)

    if row.company_id != actor.tenant_id:
        log_security_event(
            "cross_tenant_access",
            {
                "user_id": actor.user_id,
                "tenant_id": actor.tenant_id,
                "resource_type": resource,
                "resource_id": row_id,
            },
            logger
        )
        raise NotFoundError(resource)

    return row


def tenant_query(db: Session, model: Type[Any], actor: Actor) -> Query:
    """Base query for `model` restricted to the actor's company."""
    return db.query(model).filter(model.company_id == actor.tenant_id)


def ensure_payload_tenant(actor: Actor, company_id: Optional[str]) -> None:
    """Reject create payloads that try to target another company."""
    if company_id and company_id != actor.tenant_id:
        log_security_event(
            "cross_tenant_write",
            {"user_id": actor.user_id, "tenant_id": actor.tenant_id, "target_tenant_id": company_id},
            logger
        )
        raise PermissionDenied("Cannot create resources for another company")


def apply_sort(query: Query, model: Type[Any], page: PageRequest, allowed: Sequence[str]) -> Query:
    """
    Order by a whitelisted column; newest first when no sortBy is given.
    id is used as a tie-breaker so offset pagination stays stable.
    """
    sort_by = page.sort_by or "created_at"
    if sort_by not in allowed:
        raise ValidationFailed(
            "Validation failed",
            errors=[{"field": "sortBy", "message": f"Must be one of: {', '.join(allowed)}"}]
        )

    column = getattr(model, sort_by)
    ordering = column.asc() if page.sort_order == "asc" else column.desc()
    return query.order_by(ordering, model.id.asc())


def paginate(query: Query, page: PageRequest) -> Tuple[List[Any], int]:
    """Return (rows for the requested page, total matching rows)."""
    total = query.order_by(None).count()
    rows = query.offset(page.offset).limit(page.limit).all()
    return rows, total


def commit_or_conflict(db: Session, message: str) -> None:
    """
    Commit, turning a unique-constraint violation into 409.

    Pre-checks catch the common case; this covers two requests racing
    past the pre-check.
    """
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info(f"Integrity conflict on commit: {message}")
        raise ConflictError(message)

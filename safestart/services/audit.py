"""
Audit Recorder

Appends an AuditLog row after the primary write has committed.

Audit is best-effort: a failed append is rolled back, logged and
swallowed so the triggering request still succeeds. There is no retry
and no two-phase guarantee with the primary write.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from safestart.core.context import Actor
from safestart.models.audit_log import AuditLog
from safestart.services.base import PageRequest, apply_sort, paginate, tenant_query
from safestart.utils.logging import get_logger

logger = get_logger(__name__)


class AuditAction:
    BOOTSTRAP_ADMIN = "BOOTSTRAP_ADMIN"
    REGISTER_USER = "REGISTER_USER"
    LOGIN = "LOGIN"
    PASSWORD_RESET_REQUESTED = "PASSWORD_RESET_REQUESTED"
    PASSWORD_RESET = "PASSWORD_RESET"
    CHANGE_PASSWORD = "CHANGE_PASSWORD"
    UPDATE_USER = "UPDATE_USER"
    VIEW_COMPANY = "VIEW_COMPANY"
    UPDATE_COMPANY = "UPDATE_COMPANY"
    CREATE_VEHICLE = "CREATE_VEHICLE"
    VIEW_VEHICLE = "VIEW_VEHICLE"
    UPDATE_VEHICLE = "UPDATE_VEHICLE"
    DELETE_VEHICLE = "DELETE_VEHICLE"
    CREATE_TEMPLATE = "CREATE_TEMPLATE"
    VIEW_TEMPLATE = "VIEW_TEMPLATE"
    UPDATE_TEMPLATE = "UPDATE_TEMPLATE"
    DELETE_TEMPLATE = "DELETE_TEMPLATE"
    ADD_TEMPLATE_ITEM = "ADD_TEMPLATE_ITEM"
    UPDATE_TEMPLATE_ITEM = "UPDATE_TEMPLATE_ITEM"
    DELETE_TEMPLATE_ITEM = "DELETE_TEMPLATE_ITEM"
    REORDER_TEMPLATE_ITEMS = "REORDER_TEMPLATE_ITEMS"
    CREATE_INSPECTION = "CREATE_INSPECTION"
    VIEW_INSPECTION = "VIEW_INSPECTION"
    UPDATE_INSPECTION = "UPDATE_INSPECTION"
    SUBMIT_INSPECTION_ANSWERS = "SUBMIT_INSPECTION_ANSWERS"
    EXPORT_INSPECTIONS = "EXPORT_INSPECTIONS"
    CREATE_ISSUE = "CREATE_ISSUE"
    VIEW_ISSUE = "VIEW_ISSUE"
    UPDATE_ISSUE = "UPDATE_ISSUE"
    RESOLVE_ISSUE = "RESOLVE_ISSUE"


AUDIT_SORT_FIELDS = ("created_at", "action", "resource_type")


def record(
    db: Session,
    actor: Optional[Actor],
    action: str,
    resource_type: str,
    resource_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    tenant_id: Optional[str] = None,
    user_id: Optional[str] = None,
) -> None:
    """
    Append an audit record. Never raises for store failures.

    `tenant_id`/`user_id` override the actor's values for flows with no
    authenticated actor (bootstrap, password reset).
    """
    company_id = tenant_id or (actor.tenant_id if actor else None)
    try:
        entry = AuditLog(
            company_id=company_id,
            user_id=user_id or (actor.user_id if actor else None),
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details or {},
            ip_address=actor.ip_address if actor else None,
            user_agent=actor.user_agent if actor else None,
        )
        db.add(entry)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(
            f"Failed to write audit record {action} {resource_type}:{resource_id}",
            exc_info=True,
            extra={"tenant_id": company_id, "action": action}
        )


def list_audit_logs(
    db: Session,
    actor: Actor,
    page: PageRequest,
    user_id: Optional[str] = None,
    action: Optional[str] = None,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
):
    query = tenant_query(db, AuditLog, actor)

    if user_id:
        query = query.filter(AuditLog.user_id == user_id)
    if action:
        query = query.filter(AuditLog.action == action)
    if resource_type:
        query = query.filter(AuditLog.resource_type == resource_type)
    if resource_id:
        query = query.filter(AuditLog.resource_id == resource_id)
    if start_date:
        query = query.filter(AuditLog.created_at >= start_date)
    if end_date:
        query = query.filter(AuditLog.created_at <= end_date)

    query = apply_sort(query, AuditLog, page, AUDIT_SORT_FIELDS)
    return paginate(query, page)

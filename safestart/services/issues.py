"""
Issue Service

Defects reported against vehicles.

RBAC:
- Report, list, view: any user in the company
- Edit: the reporter, or admin/supervisor; resolved issues are read-only
- Resolve: admin/supervisor only; one-way
"""
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

from fastapi import BackgroundTasks
from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from safestart.core.context import Actor
from safestart.core.exceptions import BusinessRuleError, PermissionDenied
from safestart.core.permissions import can_modify_issue, require_manager
from safestart.models.inspection import Inspection
from safestart.models.issue import Issue, IssueSeverity
from safestart.models.vehicle import Vehicle
from safestart.schemas.issue import IssueCreate, IssueResolve, IssueUpdate
from safestart.services import audit, notifications
from safestart.services.audit import AuditAction
from safestart.services.base import (
    PageRequest,
    apply_sort,
    ensure_payload_tenant,
    get_owned_or_404,
    paginate,
    tenant_query,
)
from safestart.services.inspections import vehicle_label
from safestart.utils.logging import get_logger

logger = get_logger(__name__)

ISSUE_SORT_FIELDS = ("created_at", "updated_at", "severity", "resolved", "resolved_at")
ALREADY_RESOLVED = "Issue is already resolved"


def _filtered_query(
    db: Session,
    actor: Actor,
    vehicle_id: Optional[str] = None,
    severity: Optional[IssueSeverity] = None,
    resolved: Optional[bool] = None,
    reported_by: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Query:
    query = tenant_query(db, Issue, actor)
    if vehicle_id:
        query = query.filter(Issue.vehicle_id == vehicle_id)
    if severity:
        query = query.filter(Issue.severity == severity)
    if resolved is not None:
        query = query.filter(Issue.resolved == resolved)
    if reported_by:
        query = query.filter(Issue.reported_by == reported_by)
    if start_date:
        query = query.filter(Issue.created_at >= datetime.combine(start_date, datetime.min.time()))
    if end_date:
        query = query.filter(Issue.created_at < datetime.combine(end_date + timedelta(days=1), datetime.min.time()))
    return query


def create_issue(
    db: Session,
    actor: Actor,
    payload: IssueCreate,
    background_tasks: BackgroundTasks,
) -> Issue:
    """
    Report an issue and alert the company's managers: in-app for every
    severity, email for every severity, SMS for critical only.
    """
    ensure_payload_tenant(actor, payload.company_id)

    vehicle = get_owned_or_404(db, Vehicle, actor, payload.vehicle_id, "Vehicle")
    if payload.inspection_id:
        inspection = get_owned_or_404(db, Inspection, actor, payload.inspection_id, "Inspection")
        if inspection.vehicle_id != vehicle.id:
            raise BusinessRuleError("Inspection does not belong to this vehicle")

    issue = Issue(
        company_id=actor.tenant_id,
        reported_by=actor.user_id,
        **payload.model_dump(),
    )
    db.add(issue)
    db.commit()
    db.refresh(issue)

    audit.record(
        db, actor, AuditAction.CREATE_ISSUE, "issue", issue.id,
        {"vehicle_id": vehicle.id, "severity": payload.severity.value},
    )

    label = vehicle_label(vehicle)
    managers = notifications.get_managers(db, actor.tenant_id, exclude_user_id=actor.user_id)
    notifications.notify_users(
        db,
        actor.tenant_id,
        [manager.id for manager in managers],
        notifications.NotificationType.ISSUE_REPORTED,
        f"New {payload.severity.value} issue on {label}",
        payload.description,
        {"issue_id": issue.id, "vehicle_id": vehicle.id, "severity": payload.severity.value},
    )
    notifications.queue_issue_alerts(
        background_tasks,
        managers,
        label,
        payload.severity.value,
        payload.description,
        actor.full_name,
        issue.id,
        send_sms=payload.severity == IssueSeverity.CRITICAL,
    )

    logger.info(f"Issue created: {issue.id} ({payload.severity.value}) by {actor.user_id}")

    return issue


def list_issues(db: Session, actor: Actor, page: PageRequest, **filters) -> Tuple[List[Issue], int]:
    query = _filtered_query(db, actor, **filters)
    query = apply_sort(query, Issue, page, ISSUE_SORT_FIELDS)
    return paginate(query, page)


def issue_stats(db: Session, actor: Actor, **filters) -> Dict:
    query = _filtered_query(db, actor, **filters)

    total = query.count()
    resolved = query.filter(Issue.resolved == True).count()  # noqa: E712

    by_severity = {severity.value: 0 for severity in IssueSeverity}
    for severity, count in query.with_entities(Issue.severity, func.count(Issue.id)).group_by(Issue.severity):
        by_severity[IssueSeverity(severity).value] = count

    return {
        "total": total,
        "resolved": resolved,
        "unresolved": total - resolved,
        "by_severity": by_severity,
    }


def get_issue(db: Session, actor: Actor, issue_id: str) -> Issue:
    issue = get_owned_or_404(db, Issue, actor, issue_id, "Issue")
    audit.record(db, actor, AuditAction.VIEW_ISSUE, "issue", issue.id)
    return issue


def update_issue(db: Session, actor: Actor, issue_id: str, patch: IssueUpdate) -> Issue:
    issue = get_owned_or_404(db, Issue, actor, issue_id, "Issue")

    if not can_modify_issue(actor, issue.reported_by):
        raise PermissionDenied("Only the reporter or a manager can edit this issue")
    if issue.resolved:
        raise BusinessRuleError("Cannot update a resolved issue")

    update_data = patch.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(issue, field, value)

    db.commit()
    db.refresh(issue)

    audit.record(
        db, actor, AuditAction.UPDATE_ISSUE, "issue", issue.id,
        {"fields": sorted(update_data)},
    )

    return issue


def resolve_issue(db: Session, actor: Actor, issue_id: str, payload: IssueResolve) -> Issue:
    issue = get_owned_or_404(db, Issue, actor, issue_id, "Issue")
    require_manager(actor, "resolve_issue")

    if issue.resolved:
        raise BusinessRuleError(ALREADY_RESOLVED)

    issue.resolved = True
    issue.resolved_at = datetime.utcnow()
    issue.resolved_by = actor.user_id
    issue.resolution_notes = payload.resolution_notes

    db.commit()
    db.refresh(issue)

    audit.record(
        db, actor, AuditAction.RESOLVE_ISSUE, "issue", issue.id,
        {"resolution_notes": payload.resolution_notes},
    )

    if issue.reported_by and issue.reported_by != actor.user_id:
        notifications.notify_users(
            db,
            actor.tenant_id,
            [issue.reported_by],
            notifications.NotificationType.ISSUE_RESOLVED,
            "Issue resolved",
            f"{actor.full_name} resolved the issue you reported",
            {"issue_id": issue.id, "vehicle_id": issue.vehicle_id},
        )

    logger.info(f"Issue resolved: {issue.id} by {actor.user_id}")

    return issue

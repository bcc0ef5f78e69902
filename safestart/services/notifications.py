"""
Notification Service

In-app notifications (rows in `notifications`) plus the helpers that fan
out email/SMS through BackgroundTasks. Recipients are only ever the
caller's own notifications for reads; writes come from other services.
"""
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from fastapi import BackgroundTasks
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from safestart.core.context import Actor
from safestart.core.exceptions import NotFoundError
from safestart.models.notification import Notification
from safestart.models.user import User, MANAGER_ROLES
from safestart.services.base import PageRequest, apply_sort, paginate
from safestart.services.email import email_service
from safestart.services.sms import sms_service
from safestart.utils.logging import get_logger

logger = get_logger(__name__)

NOTIFICATION_SORT_FIELDS = ("created_at", "type", "is_read")


class NotificationType:
    ISSUE_REPORTED = "issue_reported"
    ISSUE_RESOLVED = "issue_resolved"
    INSPECTION_ASSIGNED = "inspection_assigned"


def notify_users(
    db: Session,
    tenant_id: str,
    user_ids: Iterable[str],
    type: str,
    title: str,
    message: str,
    data: Optional[Dict[str, Any]] = None,
) -> int:
    """
    Create one in-app notification per recipient. Best-effort: a store
    failure is logged and the triggering request still succeeds.
    """
    user_ids = list(dict.fromkeys(user_ids))
    if not user_ids:
        return 0

    try:
        for user_id in user_ids:
            db.add(Notification(
                company_id=tenant_id,
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                data=data or {},
            ))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(
            f"Failed to create {type} notifications",
            exc_info=True,
            extra={"tenant_id": tenant_id}
        )
        return 0

    return len(user_ids)


def get_managers(db: Session, tenant_id: str, exclude_user_id: Optional[str] = None) -> List[User]:
    """Active admins and supervisors of a company."""
    query = db.query(User).filter(
        User.company_id == tenant_id,
        User.role.in_(MANAGER_ROLES),
        User.is_active == True,  # noqa: E712
    )
    if exclude_user_id:
        query = query.filter(User.id != exclude_user_id)
    return query.all()


def queue_issue_alerts(
    background_tasks: BackgroundTasks,
    recipients: List[User],
    vehicle_label: str,
    severity: str,
    description: str,
    reporter_name: str,
    issue_id: str,
    send_sms: bool,
) -> None:
    for recipient in recipients:
        background_tasks.add_task(
            email_service.send_issue_notification_email,
            recipient.email,
            recipient.full_name,
            vehicle_label,
            severity,
            description,
            reporter_name,
            issue_id,
        )
        if send_sms and recipient.phone:
            background_tasks.add_task(
                sms_service.send_issue_alert_sms,
                recipient.phone,
                vehicle_label,
                severity,
                description,
            )


def list_notifications(
    db: Session,
    actor: Actor,
    page: PageRequest,
    is_read: Optional[bool] = None,
    type: Optional[str] = None,
) -> Tuple[List[Notification], int]:
    query = db.query(Notification).filter(
        Notification.user_id == actor.user_id,
        Notification.company_id == actor.tenant_id,
    )
    if is_read is not None:
        query = query.filter(Notification.is_read == is_read)
    if type:
        query = query.filter(Notification.type == type)

    query = apply_sort(query, Notification, page, NOTIFICATION_SORT_FIELDS)
    return paginate(query, page)


def unread_count(db: Session, actor: Actor) -> int:
    return db.query(Notification).filter(
        Notification.user_id == actor.user_id,
        Notification.company_id == actor.tenant_id,
        Notification.is_read == False,  # noqa: E712
    ).count()


def mark_read(db: Session, actor: Actor, notification_id: str) -> Notification:
    """Mark one of the caller's notifications read. Other users' ids are 404."""
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == actor.user_id,
        Notification.company_id == actor.tenant_id,
    ).first()
    if notification is None:
        raise NotFoundError("Notification")

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.utcnow()
        db.commit()
        db.refresh(notification)

    return notification


def mark_all_read(db: Session, actor: Actor) -> int:
    updated = db.query(Notification).filter(
        Notification.user_id == actor.user_id,
        Notification.company_id == actor.tenant_id,
        Notification.is_read == False,  # noqa: E712
    ).update(
        {Notification.is_read: True, Notification.read_at: datetime.utcnow()},
        synchronize_session=False,
    )
    db.commit()
    return updated

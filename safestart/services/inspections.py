"""
Inspection Service

Inspections run a checklist template against a vehicle.

State machine (forward only, skipping allowed):
    pending -> in_progress -> completed
`completed` is terminal: later updates and answer submissions are
rejected with a business-rule error.

Creating an inspection together with its answers happens in a single
commit here, so there is no window where the inspection exists without
the answers it was submitted with.
"""
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from fastapi import BackgroundTasks
from sqlalchemy import func
from sqlalchemy.orm import Query, Session, joinedload

from safestart.core.context import Actor
from safestart.core.exceptions import BusinessRuleError, NotFoundError, ValidationFailed
from safestart.core.permissions import require_manager
from safestart.models.checklist import ChecklistTemplate
from safestart.models.inspection import (
    STATUS_ORDER,
    Inspection,
    InspectionAnswer,
    InspectionResult,
    InspectionStatus,
)
from safestart.models.user import User
from safestart.models.vehicle import Vehicle, VehicleStatus
from safestart.schemas.inspection import AnswerInput, InspectionCreate, InspectionUpdate
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
from safestart.services.email import email_service
from safestart.services.sms import sms_service
from safestart.services.templates import get_active_template
from safestart.utils.logging import get_logger

logger = get_logger(__name__)

INSPECTION_SORT_FIELDS = ("created_at", "updated_at", "completed_at", "status", "score")
COMPLETED_MESSAGE = "Cannot update completed inspection"


def vehicle_label(vehicle: Vehicle) -> str:
    if vehicle.name:
        return f"{vehicle.name} ({vehicle.license_plate})"
    return vehicle.license_plate


def _check_answers(template: ChecklistTemplate, answers: Iterable[AnswerInput]) -> None:
    """Every answered item must belong to the inspection's template."""
    valid_ids = {item.id for item in template.items}
    errors = [
        {"field": f"answers[{index}].item_id", "message": "Item does not belong to this inspection's template"}
        for index, answer in enumerate(answers)
        if answer.item_id not in valid_ids
    ]
    if errors:
        raise ValidationFailed("Validation failed", errors=errors)


def _require_participant(actor: Actor, inspection: Inspection, action: str) -> None:
    """Only the assigned inspector or a manager may change an inspection."""
    if inspection.inspector_id != actor.user_id:
        require_manager(actor, action)


def _apply_answers(inspection: Inspection, answers: Iterable[AnswerInput]) -> int:
    """Insert or overwrite one answer per item. Returns the number written."""
    existing = {answer.item_id: answer for answer in inspection.answers}
    count = 0
    for answer in answers:
        values = answer.model_dump(exclude={"item_id"})
        row = existing.get(answer.item_id)
        if row is None:
            inspection.answers.append(InspectionAnswer(item_id=answer.item_id, **values))
        else:
            for field, value in values.items():
                setattr(row, field, value)
        count += 1
    return count


def _filtered_query(
    db: Session,
    actor: Actor,
    status: Optional[InspectionStatus] = None,
    result: Optional[InspectionResult] = None,
    vehicle_id: Optional[str] = None,
    inspector_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Query:
    query = tenant_query(db, Inspection, actor)
    if status:
        query = query.filter(Inspection.status == status)
    if result:
        query = query.filter(Inspection.result == result)
    if vehicle_id:
        query = query.filter(Inspection.vehicle_id == vehicle_id)
    if inspector_id:
        query = query.filter(Inspection.inspector_id == inspector_id)
    if start_date:
        query = query.filter(Inspection.created_at >= datetime.combine(start_date, datetime.min.time()))
    if end_date:
        # end_date is inclusive of the whole day
        query = query.filter(Inspection.created_at < datetime.combine(end_date + timedelta(days=1), datetime.min.time()))
    return query


def create_inspection(
    db: Session,
    actor: Actor,
    payload: InspectionCreate,
    background_tasks: BackgroundTasks,
) -> Inspection:
    ensure_payload_tenant(actor, payload.company_id)

    vehicle = get_owned_or_404(db, Vehicle, actor, payload.vehicle_id, "Vehicle")
    if vehicle.status == VehicleStatus.INACTIVE:
        raise BusinessRuleError("Cannot inspect an inactive vehicle")

    template = get_active_template(db, actor, payload.template_id)

    inspector_id = payload.inspector_id or actor.user_id
    inspector = None
    if inspector_id != actor.user_id:
        require_manager(actor, "assign_inspection")
        inspector = get_owned_or_404(db, User, actor, inspector_id, "Inspector")
        if not inspector.is_active:
            raise BusinessRuleError("Cannot assign an inspection to an inactive user")

    _check_answers(template, payload.answers)

    inspection = Inspection(
        company_id=actor.tenant_id,
        vehicle_id=vehicle.id,
        template_id=template.id,
        inspector_id=inspector_id,
        notes=payload.notes,
        status=InspectionStatus.PENDING,
    )
    if payload.answers:
        _apply_answers(inspection, payload.answers)
        inspection.status = InspectionStatus.IN_PROGRESS
        inspection.started_at = datetime.utcnow()

    db.add(inspection)
    db.commit()
    db.refresh(inspection)

    audit.record(
        db, actor, AuditAction.CREATE_INSPECTION, "inspection", inspection.id,
        {"vehicle_id": vehicle.id, "template_id": template.id, "answer_count": len(payload.answers)},
    )

    if inspector is not None:
        label = vehicle_label(vehicle)
        notifications.notify_users(
            db,
            actor.tenant_id,
            [inspector.id],
            notifications.NotificationType.INSPECTION_ASSIGNED,
            "Inspection assigned",
            f"{actor.full_name} assigned you a {template.name} inspection for {label}",
            {"inspection_id": inspection.id, "vehicle_id": vehicle.id},
        )
        background_tasks.add_task(
            email_service.send_inspection_reminder_email,
            inspector.email,
            inspector.full_name,
            label,
            template.name,
            inspection.id,
        )
        if inspector.phone:
            background_tasks.add_task(sms_service.send_inspection_reminder_sms, inspector.phone, label)

    logger.info(f"Inspection created: {inspection.id} by {actor.user_id}")

    return inspection


def list_inspections(
    db: Session,
    actor: Actor,
    page: PageRequest,
    **filters,
) -> Tuple[List[Inspection], int]:
    query = _filtered_query(db, actor, **filters)
    query = apply_sort(query, Inspection, page, INSPECTION_SORT_FIELDS)
    return paginate(query, page)


def inspection_stats(db: Session, actor: Actor, **filters) -> Dict:
    query = _filtered_query(db, actor, **filters)

    by_status = {status.value: 0 for status in InspectionStatus}
    for status, count in query.with_entities(Inspection.status, func.count(Inspection.id)).group_by(Inspection.status):
        by_status[InspectionStatus(status).value] = count

    by_result = {result.value: 0 for result in InspectionResult}
    rows = (
        query.filter(Inspection.result.isnot(None))
        .with_entities(Inspection.result, func.count(Inspection.id))
        .group_by(Inspection.result)
    )
    for result, count in rows:
        by_result[InspectionResult(result).value] = count

    return {
        "total": sum(by_status.values()),
        "by_status": by_status,
        "by_result": by_result,
    }


def export_inspections(db: Session, actor: Actor, **filters) -> List[Inspection]:
    """All matching inspections, newest first, with related rows loaded."""
    inspections = (
        _filtered_query(db, actor, **filters)
        .options(
            joinedload(Inspection.vehicle),
            joinedload(Inspection.template),
            joinedload(Inspection.inspector),
        )
        .order_by(Inspection.created_at.desc(), Inspection.id.asc())
        .all()
    )
    if not inspections:
        raise NotFoundError("Inspections to export")

    audit.record(
        db, actor, AuditAction.EXPORT_INSPECTIONS, "inspection", None,
        {"count": len(inspections), "filters": {k: str(v) for k, v in filters.items() if v is not None}},
    )

    return inspections


def get_inspection(db: Session, actor: Actor, inspection_id: str) -> Inspection:
    inspection = get_owned_or_404(db, Inspection, actor, inspection_id, "Inspection")
    audit.record(db, actor, AuditAction.VIEW_INSPECTION, "inspection", inspection.id)
    return inspection


def update_inspection(db: Session, actor: Actor, inspection_id: str, patch: InspectionUpdate) -> Inspection:
    inspection = get_owned_or_404(db, Inspection, actor, inspection_id, "Inspection")
    if inspection.is_completed:
        raise BusinessRuleError(COMPLETED_MESSAGE)
    _require_participant(actor, inspection, "update_inspection")

    update_data = patch.model_dump(exclude_unset=True, exclude_none=True)
    new_status = update_data.pop("status", None)

    if new_status is not None and new_status != inspection.status:
        if STATUS_ORDER[new_status] < STATUS_ORDER[InspectionStatus(inspection.status)]:
            raise BusinessRuleError(
                f"Cannot move inspection from {InspectionStatus(inspection.status).value} to {new_status.value}"
            )
        now = datetime.utcnow()
        if inspection.started_at is None:
            inspection.started_at = now
        if new_status == InspectionStatus.COMPLETED:
            inspection.completed_at = now
        inspection.status = new_status

    for field, value in update_data.items():
        setattr(inspection, field, value)

    db.commit()
    db.refresh(inspection)

    details = {"fields": sorted(update_data)}
    if new_status is not None:
        details["status"] = new_status.value
    audit.record(db, actor, AuditAction.UPDATE_INSPECTION, "inspection", inspection.id, details)

    logger.info(f"Inspection updated: {inspection.id} by {actor.user_id}")

    return inspection


def submit_answers(db: Session, actor: Actor, inspection_id: str, answers: List[AnswerInput]) -> Inspection:
    """
    Upsert answers. A pending inspection moves to in_progress on its
    first submission.
    """
    inspection = get_owned_or_404(db, Inspection, actor, inspection_id, "Inspection")
    if inspection.is_completed:
        raise BusinessRuleError(COMPLETED_MESSAGE)
    _require_participant(actor, inspection, "submit_inspection_answers")

    _check_answers(inspection.template, answers)
    written = _apply_answers(inspection, answers)

    if inspection.status == InspectionStatus.PENDING:
        inspection.status = InspectionStatus.IN_PROGRESS
        inspection.started_at = inspection.started_at or datetime.utcnow()

    db.commit()
    db.refresh(inspection)

    audit.record(
        db, actor, AuditAction.SUBMIT_INSPECTION_ANSWERS, "inspection", inspection.id,
        {"answer_count": written},
    )

    return inspection

"""
Checklist Template Service

Templates and their ordered items. Deleted (inactive) templates behave
as missing for every operation. Items have no company_id of their own;
they are always reached through a tenant-checked template.
"""
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from safestart.core.context import Actor
from safestart.core.exceptions import ConflictError, NotFoundError, ValidationFailed
from safestart.core.permissions import require_manager
from safestart.models.checklist import ChecklistItem, ChecklistTemplate
from safestart.models.inspection import InspectionAnswer
from safestart.schemas.template import (
    ChecklistItemCreate,
    ChecklistItemUpdate,
    TemplateCreate,
    TemplateUpdate,
)
from safestart.services import audit
from safestart.services.audit import AuditAction
from safestart.services.base import (
    PageRequest,
    apply_sort,
    ensure_payload_tenant,
    get_owned_or_404,
    paginate,
    tenant_query,
)
from safestart.utils.logging import get_logger

logger = get_logger(__name__)

TEMPLATE_SORT_FIELDS = ("created_at", "updated_at", "name")


def get_active_template(db: Session, actor: Actor, template_id: str) -> ChecklistTemplate:
    template = get_owned_or_404(db, ChecklistTemplate, actor, template_id, "Template")
    if not template.is_active:
        raise NotFoundError("Template")
    return template


def _get_item(template: ChecklistTemplate, item_id: str) -> ChecklistItem:
    for item in template.items:
        if item.id == item_id:
            return item
    raise NotFoundError("Checklist item")


def _renumber(template: ChecklistTemplate) -> None:
    for position, item in enumerate(sorted(template.items, key=lambda i: i.sort_order)):
        item.sort_order = position


def create_template(db: Session, actor: Actor, payload: TemplateCreate) -> ChecklistTemplate:
    require_manager(actor, "create_template")
    ensure_payload_tenant(actor, payload.company_id)

    template = ChecklistTemplate(
        company_id=actor.tenant_id,
        created_by=actor.user_id,
        name=payload.name,
        description=payload.description,
        vehicle_type=payload.vehicle_type,
    )
    # Items keep the order they were submitted in
    for position, item in enumerate(payload.items):
        template.items.append(ChecklistItem(sort_order=position, **item.model_dump()))

    db.add(template)
    db.commit()
    db.refresh(template)

    audit.record(
        db, actor, AuditAction.CREATE_TEMPLATE, "template", template.id,
        {"name": template.name, "item_count": len(payload.items)},
    )

    logger.info(f"Template created: {template.id} by {actor.user_id}")

    return template


def list_templates(
    db: Session,
    actor: Actor,
    page: PageRequest,
    search: Optional[str] = None,
    vehicle_type: Optional[str] = None,
) -> Tuple[List[ChecklistTemplate], int]:
    query = tenant_query(db, ChecklistTemplate, actor).filter(ChecklistTemplate.is_active == True)  # noqa: E712

    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            ChecklistTemplate.name.ilike(pattern),
            ChecklistTemplate.description.ilike(pattern),
        ))
    if vehicle_type:
        query = query.filter(ChecklistTemplate.vehicle_type == vehicle_type)

    query = apply_sort(query, ChecklistTemplate, page, TEMPLATE_SORT_FIELDS)
    return paginate(query, page)


def get_template(db: Session, actor: Actor, template_id: str) -> ChecklistTemplate:
    template = get_active_template(db, actor, template_id)
    audit.record(db, actor, AuditAction.VIEW_TEMPLATE, "template", template.id)
    return template


def update_template(db: Session, actor: Actor, template_id: str, patch: TemplateUpdate) -> ChecklistTemplate:
    template = get_active_template(db, actor, template_id)
    require_manager(actor, "update_template")

    update_data = patch.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(template, field, value)

    db.commit()
    db.refresh(template)

    audit.record(
        db, actor, AuditAction.UPDATE_TEMPLATE, "template", template.id,
        {"fields": sorted(update_data)},
    )

    return template


def delete_template(db: Session, actor: Actor, template_id: str) -> ChecklistTemplate:
    template = get_active_template(db, actor, template_id)
    require_manager(actor, "delete_template")

    template.soft_delete()
    db.commit()

    audit.record(db, actor, AuditAction.DELETE_TEMPLATE, "template", template.id, {"name": template.name})

    logger.info(f"Template deactivated: {template.id} by {actor.user_id}")

    return template


def add_item(db: Session, actor: Actor, template_id: str, payload: ChecklistItemCreate) -> ChecklistItem:
    """Append an item after the template's current last item."""
    template = get_active_template(db, actor, template_id)
    require_manager(actor, "add_template_item")

    next_position = max((item.sort_order for item in template.items), default=-1) + 1
    item = ChecklistItem(sort_order=next_position, **payload.model_dump())
    template.items.append(item)

    db.commit()
    db.refresh(item)

    audit.record(
        db, actor, AuditAction.ADD_TEMPLATE_ITEM, "template", template.id,
        {"item_id": item.id, "label": item.label},
    )

    return item


def update_item(
    db: Session,
    actor: Actor,
    template_id: str,
    item_id: str,
    patch: ChecklistItemUpdate,
) -> ChecklistItem:
    template = get_active_template(db, actor, template_id)
    require_manager(actor, "update_template_item")
    item = _get_item(template, item_id)

    update_data = patch.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(item, field, value)

    db.commit()
    db.refresh(item)

    audit.record(
        db, actor, AuditAction.UPDATE_TEMPLATE_ITEM, "template", template.id,
        {"item_id": item.id, "fields": sorted(update_data)},
    )

    return item


def delete_item(db: Session, actor: Actor, template_id: str, item_id: str) -> None:
    """
    Remove an item and close the gap it leaves in sort_order.

    Items that already have answers cannot be removed.
    """
    template = get_active_template(db, actor, template_id)
    require_manager(actor, "delete_template_item")
    item = _get_item(template, item_id)

    answered = db.query(InspectionAnswer.id).filter(InspectionAnswer.item_id == item.id).first()
    if answered is not None:
        raise ConflictError("Checklist item has recorded answers and cannot be deleted")

    template.items.remove(item)
    _renumber(template)
    db.commit()

    audit.record(
        db, actor, AuditAction.DELETE_TEMPLATE_ITEM, "template", template.id,
        {"item_id": item_id, "label": item.label},
    )


def reorder_items(db: Session, actor: Actor, template_id: str, item_ids: List[str]) -> ChecklistTemplate:
    """
    Set a new item order. `item_ids` must contain every item of the
    template exactly once.
    """
    template = get_active_template(db, actor, template_id)
    require_manager(actor, "reorder_template_items")

    items_by_id = {item.id: item for item in template.items}
    if len(item_ids) != len(set(item_ids)) or set(item_ids) != set(items_by_id):
        raise ValidationFailed(
            "Validation failed",
            errors=[{"field": "item_ids", "message": "Must list every item of the template exactly once"}]
        )

    for position, item_id in enumerate(item_ids):
        items_by_id[item_id].sort_order = position

    db.commit()
    # Reload so the relationship reflects the new order_by
    db.expire(template, ["items"])

    audit.record(
        db, actor, AuditAction.REORDER_TEMPLATE_ITEMS, "template", template.id,
        {"item_ids": item_ids},
    )

    return template

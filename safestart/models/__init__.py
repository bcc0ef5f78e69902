"""
Database Models

Every tenant-owned model carries company_id. Checklist items and
inspection answers inherit their tenant from their parent row.
"""
from safestart.models.company import Company, CompanySize
from safestart.models.user import User, UserRole
from safestart.models.vehicle import Vehicle, VehicleStatus
from safestart.models.checklist import ChecklistTemplate, ChecklistItem, ItemInputType
from safestart.models.inspection import Inspection, InspectionAnswer, InspectionStatus, InspectionResult
from safestart.models.issue import Issue, IssueSeverity
from safestart.models.notification import Notification
from safestart.models.audit_log import AuditLog

__all__ = [
    "Company", "CompanySize",
    "User", "UserRole",
    "Vehicle", "VehicleStatus",
    "ChecklistTemplate", "ChecklistItem", "ItemInputType",
    "Inspection", "InspectionAnswer", "InspectionStatus", "InspectionResult",
    "Issue", "IssueSeverity",
    "Notification",
    "AuditLog",
]

"""
CSV export helpers.
"""
import csv
import io
from datetime import datetime
from typing import Any, Iterable, List, Optional, Sequence

from safestart.models.inspection import Inspection

INSPECTION_CSV_HEADERS = [
    "Inspection ID",
    "Vehicle",
    "Template",
    "Inspector",
    "Status",
    "Result",
    "Score",
    "Notes",
    "Created At",
    "Completed At",
]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "value"):  # enums
        return str(value.value)
    return str(value)


def rows_to_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_cell(value) for value in row])
    return buffer.getvalue()


def _vehicle_cell(inspection: Inspection) -> Optional[str]:
    vehicle = inspection.vehicle
    if vehicle is None:
        return None
    parts: List[str] = [p for p in (vehicle.make, vehicle.model) if p]
    if parts:
        return f"{' '.join(parts)} ({vehicle.license_plate})"
    return vehicle.license_plate


def inspections_to_csv(inspections: Iterable[Inspection]) -> str:
    rows = (
        [
            inspection.id,
            _vehicle_cell(inspection),
            inspection.template.name if inspection.template else None,
            inspection.inspector.full_name if inspection.inspector else None,
            inspection.status,
            inspection.result,
            inspection.score,
            inspection.notes,
            inspection.created_at,
            inspection.completed_at,
        ]
        for inspection in inspections
    )
    return rows_to_csv(INSPECTION_CSV_HEADERS, rows)


def export_filename(prefix: str) -> str:
    return f"{prefix}-{datetime.utcnow().strftime('%Y%m%d-%H%M%S')}.csv"

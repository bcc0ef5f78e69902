"""Audit trail tests."""
import pytest
from sqlalchemy.exc import SQLAlchemyError

from safestart.models.audit_log import AuditLog, AuditLogImmutableError
from safestart.services import audit as audit_service


def _actions(client, headers, **params):
    response = client.get("/api/v1/audit-logs", params={"limit": 100, **params}, headers=headers)
    assert response.status_code == 200
    return [entry["action"] for entry in response.json()["data"]]


def test_mutations_are_recorded(client, acme, vehicle):
    client.patch(f"/api/v1/vehicles/{vehicle['id']}", json={"notes": "serviced"}, headers=acme["headers"])

    actions = _actions(client, acme["headers"], resource_type="vehicle")
    assert set(actions) == {"CREATE_VEHICLE", "UPDATE_VEHICLE"}

    bootstrap = _actions(client, acme["headers"], action="BOOTSTRAP_ADMIN")
    assert bootstrap == ["BOOTSTRAP_ADMIN"]


def test_entries_carry_actor_and_request_details(client, acme, vehicle):
    response = client.get(
        "/api/v1/audit-logs",
        params={"action": "CREATE_VEHICLE"},
        headers=acme["headers"],
    )
    entry = response.json()["data"][0]
    assert entry["user_id"] == acme["admin_id"]
    assert entry["company_id"] == acme["company_id"]
    assert entry["resource_id"] == vehicle["id"]
    assert entry["ip_address"]


def test_audit_log_is_tenant_scoped(client, acme, globex, vehicle):
    assert "CREATE_VEHICLE" not in _actions(client, globex["headers"])


def test_admin_only(client, acme, make_user):
    _, supervisor_headers = make_user(acme["headers"], "supervisor", "s@acme.com")
    response = client.get("/api/v1/audit-logs", headers=supervisor_headers)
    assert response.status_code == 403


def test_audit_failure_does_not_fail_request(client, acme, monkeypatch):
    def broken_audit_log(**kwargs):
        raise SQLAlchemyError("audit store unavailable")

    monkeypatch.setattr(audit_service, "AuditLog", broken_audit_log)

    response = client.post("/api/v1/vehicles", json={"license_plate": "AUD-1"}, headers=acme["headers"])
    assert response.status_code == 201

    monkeypatch.undo()
    listed = client.get("/api/v1/vehicles", headers=acme["headers"]).json()["data"]
    assert [v["license_plate"] for v in listed] == ["AUD-1"]


def test_audit_rows_are_append_only(client, acme, db):
    entry = db.query(AuditLog).first()

    entry.action = "TAMPERED"
    with pytest.raises(AuditLogImmutableError):
        db.commit()
    db.rollback()

    db.delete(db.query(AuditLog).first())
    with pytest.raises(AuditLogImmutableError):
        db.commit()

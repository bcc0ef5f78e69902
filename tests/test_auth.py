"""Authentication flow tests."""
from datetime import datetime, timedelta

from safestart.core.security import decode_access_token, hash_reset_token
from safestart.models.user import User
from safestart.services.email import email_service

from tests.conftest import ACME_ADMIN, auth_headers, login

RESET_MESSAGE = "If an account with that email exists, a password reset link has been sent."


def test_bootstrap_creates_company_and_admin(client, acme):
    response = client.get("/api/v1/users/me", headers=acme["headers"])
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["role"] == "admin"
    assert body["data"]["company_id"] == acme["company_id"]


def test_bootstrap_only_once(client, acme):
    response = client.post("/api/v1/auth/bootstrap-admin", json={
        "company_name": "Second Co",
        "full_name": "Bob Boss",
        "email": "bob@globex.com",
        "password": "password123",
    })
    assert response.status_code == 409
    assert response.json()["success"] is False


def test_bootstrap_validation(client):
    response = client.post("/api/v1/auth/bootstrap-admin", json={
        "company_name": "A",
        "full_name": "Alice Admin",
        "email": "not-an-email",
        "password": "short",
    })
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    fields = {error["field"] for error in body["errors"]}
    assert {"company_name", "email", "password"} <= fields


def test_login_token_claims_match_user(client, acme):
    response = client.post("/api/v1/auth/login", json=ACME_ADMIN)
    assert response.status_code == 200
    data = response.json()["data"]
    claims = decode_access_token(data["access_token"])
    assert claims.user_id == acme["admin_id"]
    assert claims.tenant_id == acme["company_id"]
    assert claims.role == "admin"
    assert data["user"]["email"] == "a@acme.com"


def test_login_failures_are_indistinguishable(client, acme, make_user):
    user_id, _ = make_user(acme["headers"], "driver", "d@acme.com")
    client.patch(f"/api/v1/users/{user_id}", json={"is_active": False}, headers=acme["headers"])

    wrong_password = client.post("/api/v1/auth/login", json={"email": "a@acme.com", "password": "wrongpass"})
    inactive = client.post("/api/v1/auth/login", json={"email": "d@acme.com", "password": "password123"})
    unknown = client.post("/api/v1/auth/login", json={"email": "nobody@acme.com", "password": "password123"})

    assert wrong_password.status_code == inactive.status_code == unknown.status_code == 401
    assert wrong_password.json() == inactive.json() == unknown.json()
    assert wrong_password.json()["message"] == "Invalid credentials"


def test_login_records_last_login(client, acme, db):
    client.post("/api/v1/auth/login", json=ACME_ADMIN)
    user = db.query(User).filter(User.id == acme["admin_id"]).first()
    assert user.last_login_at is not None


def test_register_requires_admin(client, acme, make_user):
    _, driver_headers = make_user(acme["headers"], "driver", "d@acme.com")
    response = client.post("/api/v1/auth/register", json={
        "email": "x@acme.com",
        "password": "password123",
        "full_name": "Xavier",
    }, headers=driver_headers)
    assert response.status_code == 403


def test_register_without_token(client, acme):
    response = client.post("/api/v1/auth/register", json={
        "email": "x@acme.com",
        "password": "password123",
        "full_name": "Xavier",
    })
    assert response.status_code == 401


def test_register_stamps_admin_company(client, acme):
    response = client.post("/api/v1/auth/register", json={
        "email": "x@acme.com",
        "password": "password123",
        "full_name": "Xavier",
        "role": "mechanic",
    }, headers=acme["headers"])
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["company_id"] == acme["company_id"]
    assert data["role"] == "mechanic"


def test_register_rejects_foreign_company(client, acme, globex):
    response = client.post("/api/v1/auth/register", json={
        "email": "x@acme.com",
        "password": "password123",
        "full_name": "Xavier",
        "company_id": globex["company_id"],
    }, headers=acme["headers"])
    assert response.status_code == 403


def test_register_duplicate_email(client, acme, globex):
    response = client.post("/api/v1/auth/register", json={
        "email": "g@globex.com",
        "password": "password123",
        "full_name": "Copycat",
    }, headers=acme["headers"])
    assert response.status_code == 409


def test_refresh_issues_new_pair(client, acme):
    response = client.post("/api/v1/auth/refresh", json={"refresh_token": acme["refresh_token"]})
    assert response.status_code == 200
    data = response.json()["data"]
    assert decode_access_token(data["access_token"]).user_id == acme["admin_id"]
    assert data["refresh_token"]


def test_refresh_rejects_access_token(client, acme):
    access_token = acme["headers"]["Authorization"].split(" ", 1)[1]
    response = client.post("/api/v1/auth/refresh", json={"refresh_token": access_token})
    assert response.status_code == 401


def test_refresh_token_is_not_an_access_token(client, acme):
    response = client.get("/api/v1/users/me", headers=auth_headers(acme["refresh_token"]))
    assert response.status_code == 401


def test_access_guard_failures_share_one_message(client, acme, make_user):
    user_id, driver_headers = make_user(acme["headers"], "driver", "d@acme.com")
    client.patch(f"/api/v1/users/{user_id}", json={"is_active": False}, headers=acme["headers"])

    missing = client.get("/api/v1/users/me")
    malformed = client.get("/api/v1/users/me", headers=auth_headers("not-a-jwt"))
    inactive = client.get("/api/v1/users/me", headers=driver_headers)

    for response in (missing, malformed, inactive):
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Invalid or expired token"}


def test_forgot_password_does_not_enumerate(client, acme, monkeypatch):
    sent = []
    monkeypatch.setattr(
        email_service,
        "send_password_reset_email",
        lambda to_email, full_name, token: sent.append((to_email, token)) or True,
    )

    known = client.post("/api/v1/auth/forgot-password", json={"email": "a@acme.com"})
    unknown = client.post("/api/v1/auth/forgot-password", json={"email": "ghost@acme.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json() == {"success": True, "message": RESET_MESSAGE}
    assert [to for to, _ in sent] == ["a@acme.com"]


def test_reset_token_is_single_use(client, acme, monkeypatch):
    sent = []
    monkeypatch.setattr(
        email_service,
        "send_password_reset_email",
        lambda to_email, full_name, token: sent.append(token) or True,
    )
    client.post("/api/v1/auth/forgot-password", json={"email": "a@acme.com"})
    token = sent[0]

    first = client.post("/api/v1/auth/reset-password", json={"token": token, "password": "newsecret123"})
    assert first.status_code == 200

    second = client.post("/api/v1/auth/reset-password", json={"token": token, "password": "another123"})
    assert second.status_code == 400
    assert second.json()["message"] == "Invalid or expired reset token"

    login(client, "a@acme.com", "newsecret123")
    old = client.post("/api/v1/auth/login", json=ACME_ADMIN)
    assert old.status_code == 401


def test_reset_token_stored_hashed(client, acme, db, monkeypatch):
    sent = []
    monkeypatch.setattr(
        email_service,
        "send_password_reset_email",
        lambda to_email, full_name, token: sent.append(token) or True,
    )
    client.post("/api/v1/auth/forgot-password", json={"email": "a@acme.com"})

    user = db.query(User).filter(User.id == acme["admin_id"]).first()
    assert user.reset_token_hash == hash_reset_token(sent[0])
    assert user.reset_token_hash != sent[0]


def test_expired_reset_token(client, acme, db, monkeypatch):
    sent = []
    monkeypatch.setattr(
        email_service,
        "send_password_reset_email",
        lambda to_email, full_name, token: sent.append(token) or True,
    )
    client.post("/api/v1/auth/forgot-password", json={"email": "a@acme.com"})

    user = db.query(User).filter(User.id == acme["admin_id"]).first()
    user.reset_token_expires = datetime.utcnow() - timedelta(minutes=1)
    db.commit()

    response = client.post("/api/v1/auth/reset-password", json={"token": sent[0], "password": "newsecret123"})
    assert response.status_code == 400

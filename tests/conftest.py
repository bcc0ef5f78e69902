"""
Test configuration.

Environment is set before safestart is imported: settings are cached on
first use and the engine is created at import time.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SMTP_HOST"] = ""
os.environ["TWILIO_ACCOUNT_SID"] = ""
os.environ["JWT_ISSUER"] = "safestart-test"
os.environ["JWT_AUDIENCE"] = "safestart-test-clients"

import pytest
from fastapi.testclient import TestClient

import safestart.models  # noqa: F401  (register tables)
from safestart.database import Base, SessionLocal, engine
from safestart.main import app
from safestart.core.security import get_password_hash
from safestart.models.company import Company
from safestart.models.user import User, UserRole

ACME_ADMIN = {"email": "a@acme.com", "password": "secret123"}


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def login(client, email: str, password: str) -> dict:
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return auth_headers(response.json()["data"]["access_token"])


@pytest.fixture
def acme(client):
    """Bootstrapped first company with its admin."""
    response = client.post("/api/v1/auth/bootstrap-admin", json={
        "company_name": "Acme",
        "full_name": "Alice Admin",
        **ACME_ADMIN,
    })
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    return {
        "company_id": data["company"]["id"],
        "admin_id": data["user"]["id"],
        "headers": auth_headers(data["access_token"]),
        "refresh_token": data["refresh_token"],
    }


@pytest.fixture
def globex(client, db):
    """
    A second company. Bootstrap only runs once, so this one is seeded
    directly in the database.
    """
    company = Company(name="Globex")
    db.add(company)
    db.flush()
    admin = User(
        company_id=company.id,
        email="g@globex.com",
        hashed_password=get_password_hash("secret123"),
        full_name="Gina Globex",
        role=UserRole.ADMIN,
    )
    db.add(admin)
    db.commit()
    return {
        "company_id": company.id,
        "admin_id": admin.id,
        "headers": login(client, "g@globex.com", "secret123"),
    }


@pytest.fixture
def make_user(client):
    """Register a user in a company via its admin and return (user_id, headers)."""

    def _make_user(admin_headers: dict, role: str, email: str, phone: str = None):
        payload = {
            "email": email,
            "password": "password123",
            "full_name": f"{role.title()} User",
            "role": role,
        }
        if phone:
            payload["phone"] = phone
        response = client.post("/api/v1/auth/register", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]["id"], login(client, email, "password123")

    return _make_user


@pytest.fixture
def vehicle(client, acme):
    response = client.post(
        "/api/v1/vehicles",
        json={"license_plate": "ABC-1", "make": "Ford", "model": "Transit", "name": "Van 1"},
        headers=acme["headers"],
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def template(client, acme):
    response = client.post(
        "/api/v1/templates",
        json={
            "name": "Pre-trip",
            "items": [
                {"label": "Brakes OK?"},
                {"label": "Tyre pressure", "input_type": "number"},
                {"label": "Comments", "input_type": "text", "is_required": False},
            ],
        },
        headers=acme["headers"],
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]

"""In-app notification tests."""
import pytest


@pytest.fixture
def inbox(client, acme, make_user, vehicle):
    """Two issues reported by a driver leave two notifications for the admin."""
    _, driver_headers = make_user(acme["headers"], "driver", "d@acme.com")
    for description in ("Flat tyre", "Cracked mirror"):
        response = client.post(
            "/api/v1/issues",
            json={"vehicle_id": vehicle["id"], "description": description},
            headers=driver_headers,
        )
        assert response.status_code == 201
    return driver_headers


def test_unread_count_and_mark_read(client, acme, inbox):
    assert client.get("/api/v1/notifications/unread-count", headers=acme["headers"]).json()["data"] == {"count": 2}

    first = client.get("/api/v1/notifications", headers=acme["headers"]).json()["data"][0]
    response = client.patch(f"/api/v1/notifications/{first['id']}/read", headers=acme["headers"])
    assert response.status_code == 200
    assert response.json()["data"]["is_read"] is True
    assert response.json()["data"]["read_at"] is not None

    assert client.get("/api/v1/notifications/unread-count", headers=acme["headers"]).json()["data"] == {"count": 1}
    unread = client.get("/api/v1/notifications", params={"is_read": "false"}, headers=acme["headers"]).json()
    assert len(unread["data"]) == 1


def test_cannot_mark_someone_elses(client, acme, inbox):
    first = client.get("/api/v1/notifications", headers=acme["headers"]).json()["data"][0]

    response = client.patch(f"/api/v1/notifications/{first['id']}/read", headers=inbox)
    assert response.status_code == 404

    still_unread = client.get("/api/v1/notifications/unread-count", headers=acme["headers"]).json()["data"]
    assert still_unread == {"count": 2}


def test_mark_all_read(client, acme, inbox):
    response = client.patch("/api/v1/notifications/mark-all-read", headers=acme["headers"])
    assert response.json()["data"] == {"updated": 2}
    assert client.get("/api/v1/notifications/unread-count", headers=acme["headers"]).json()["data"] == {"count": 0}

    again = client.patch("/api/v1/notifications/mark-all-read", headers=acme["headers"])
    assert again.json()["data"] == {"updated": 0}


def test_notifications_are_per_user(client, acme, globex, inbox):
    assert client.get("/api/v1/notifications", headers=inbox).json()["data"] == []
    assert client.get("/api/v1/notifications", headers=globex["headers"]).json()["pagination"]["totalItems"] == 0

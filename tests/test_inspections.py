"""Inspection lifecycle, stats and export tests."""
import csv
import io

from safestart.utils.export import INSPECTION_CSV_HEADERS


def _create(client, headers, vehicle, template, **extra):
    payload = {"vehicle_id": vehicle["id"], "template_id": template["id"], **extra}
    return client.post("/api/v1/inspections", json=payload, headers=headers)


def test_create_pending(client, acme, vehicle, template):
    response = _create(client, acme["headers"], vehicle, template)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["status"] == "pending"
    assert data["inspector_id"] == acme["admin_id"]
    assert data["answers"] == []


def test_create_with_answers_starts_inspection(client, acme, vehicle, template):
    brakes = template["items"][0]["id"]
    response = _create(client, acme["headers"], vehicle, template, answers=[{"item_id": brakes, "value_bool": True}])
    data = response.json()["data"]
    assert response.status_code == 201
    assert data["status"] == "in_progress"
    assert data["started_at"] is not None
    assert [a["item_id"] for a in data["answers"]] == [brakes]


def test_answer_for_foreign_item_rejected(client, acme, vehicle, template):
    response = _create(client, acme["headers"], vehicle, template, answers=[{"item_id": "nope", "value_bool": True}])
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "answers[0].item_id"
    assert client.get("/api/v1/inspections", headers=acme["headers"]).json()["data"] == []


def test_inactive_vehicle_cannot_be_inspected(client, acme, vehicle, template):
    client.delete(f"/api/v1/vehicles/{vehicle['id']}", headers=acme["headers"])
    response = _create(client, acme["headers"], vehicle, template)
    assert response.status_code == 400


def test_submit_answers_upserts(client, acme, vehicle, template):
    inspection = _create(client, acme["headers"], vehicle, template).json()["data"]
    tyres = template["items"][1]["id"]
    url = f"/api/v1/inspections/{inspection['id']}/answers"

    first = client.post(url, json={"answers": [{"item_id": tyres, "value_number": 30}]}, headers=acme["headers"])
    assert first.json()["data"]["status"] == "in_progress"

    second = client.post(url, json={"answers": [{"item_id": tyres, "value_number": 32}]}, headers=acme["headers"])
    answers = second.json()["data"]["answers"]
    assert len(answers) == 1
    assert answers[0]["value_number"] == 32


def test_duplicate_items_in_one_submission_rejected(client, acme, vehicle, template):
    inspection = _create(client, acme["headers"], vehicle, template).json()["data"]
    brakes = template["items"][0]["id"]
    response = client.post(
        f"/api/v1/inspections/{inspection['id']}/answers",
        json={"answers": [{"item_id": brakes, "value_bool": True}, {"item_id": brakes, "value_bool": False}]},
        headers=acme["headers"],
    )
    assert response.status_code == 400


def test_duplicate_items_on_create_rejected(client, acme, vehicle, template):
    brakes = template["items"][0]["id"]
    answers = [{"item_id": brakes, "value_bool": True}, {"item_id": brakes, "value_bool": False}]
    response = _create(client, acme["headers"], vehicle, template, answers=answers)
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "answers"
    assert client.get("/api/v1/inspections", headers=acme["headers"]).json()["data"] == []


def test_completed_inspection_is_frozen(client, acme, vehicle, template):
    inspection = _create(client, acme["headers"], vehicle, template).json()["data"]
    url = f"/api/v1/inspections/{inspection['id']}"

    done = client.patch(url, json={"status": "completed", "result": "pass", "score": 95}, headers=acme["headers"])
    assert done.status_code == 200
    assert done.json()["data"]["completed_at"] is not None
    assert done.json()["data"]["started_at"] is not None

    again = client.patch(url, json={"notes": "late edit"}, headers=acme["headers"])
    assert again.status_code == 400
    assert again.json() == {"success": False, "message": "Cannot update completed inspection"}

    answers = client.post(
        f"{url}/answers",
        json={"answers": [{"item_id": template["items"][0]["id"], "value_bool": True}]},
        headers=acme["headers"],
    )
    assert answers.status_code == 400


def test_status_cannot_move_backwards(client, acme, vehicle, template):
    inspection = _create(client, acme["headers"], vehicle, template).json()["data"]
    url = f"/api/v1/inspections/{inspection['id']}"

    assert client.patch(url, json={"status": "in_progress"}, headers=acme["headers"]).status_code == 200
    response = client.patch(url, json={"status": "pending"}, headers=acme["headers"])
    assert response.status_code == 400


def test_score_range_validated(client, acme, vehicle, template):
    inspection = _create(client, acme["headers"], vehicle, template).json()["data"]
    response = client.patch(f"/api/v1/inspections/{inspection['id']}", json={"score": 101}, headers=acme["headers"])
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "score"


def test_assignment_requires_manager(client, acme, make_user, vehicle, template):
    driver_id, driver_headers = make_user(acme["headers"], "driver", "d@acme.com")
    _, other_headers = make_user(acme["headers"], "driver", "d2@acme.com")

    response = _create(client, other_headers, vehicle, template, inspector_id=driver_id)
    assert response.status_code == 403


def test_assignment_notifies_inspector(client, acme, make_user, vehicle, template):
    driver_id, driver_headers = make_user(acme["headers"], "driver", "d@acme.com")

    response = _create(client, acme["headers"], vehicle, template, inspector_id=driver_id)
    assert response.status_code == 201

    notes = client.get("/api/v1/notifications", headers=driver_headers).json()["data"]
    assert len(notes) == 1
    assert notes[0]["type"] == "inspection_assigned"
    assert notes[0]["data"]["inspection_id"] == response.json()["data"]["id"]


def test_other_driver_cannot_update(client, acme, make_user, vehicle, template):
    driver_id, _ = make_user(acme["headers"], "driver", "d@acme.com")
    _, other_headers = make_user(acme["headers"], "driver", "d2@acme.com")
    inspection = _create(client, acme["headers"], vehicle, template, inspector_id=driver_id).json()["data"]

    response = client.patch(f"/api/v1/inspections/{inspection['id']}", json={"notes": "x"}, headers=other_headers)
    assert response.status_code == 403


def test_cross_tenant_inspection(client, acme, globex, vehicle, template):
    inspection = _create(client, acme["headers"], vehicle, template).json()["data"]

    assert client.get(f"/api/v1/inspections/{inspection['id']}", headers=globex["headers"]).status_code == 404
    assert _create(client, globex["headers"], vehicle, template).status_code == 404


def test_filters_and_stats(client, acme, vehicle, template):
    first = _create(client, acme["headers"], vehicle, template).json()["data"]
    _create(client, acme["headers"], vehicle, template)
    client.patch(
        f"/api/v1/inspections/{first['id']}",
        json={"status": "completed", "result": "fail"},
        headers=acme["headers"],
    )

    completed = client.get("/api/v1/inspections", params={"status": "completed"}, headers=acme["headers"])
    assert [i["id"] for i in completed.json()["data"]] == [first["id"]]

    stats = client.get("/api/v1/inspections/stats", headers=acme["headers"]).json()["data"]
    assert stats["total"] == 2
    assert stats["by_status"] == {"pending": 1, "in_progress": 0, "completed": 1}
    assert stats["by_result"] == {"pass": 0, "fail": 1, "needs_attention": 0}


def test_date_filter_excludes_future(client, acme, vehicle, template):
    _create(client, acme["headers"], vehicle, template)
    response = client.get("/api/v1/inspections", params={"start_date": "2999-01-01"}, headers=acme["headers"])
    assert response.json()["data"] == []


def test_export_csv(client, acme, vehicle, template):
    inspection = _create(client, acme["headers"], vehicle, template, notes="Check mirrors").json()["data"]

    response = client.get("/api/v1/inspections/export/csv", headers=acme["headers"])
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]

    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0] == INSPECTION_CSV_HEADERS
    assert len(rows) == 2
    assert rows[1][0] == inspection["id"]
    assert rows[1][1] == "Ford Transit (ABC-1)"
    assert rows[1][2] == "Pre-trip"
    assert rows[1][3] == "Alice Admin"
    assert rows[1][4] == "pending"
    assert rows[1][7] == "Check mirrors"


def test_export_with_no_matches(client, acme):
    response = client.get("/api/v1/inspections/export/csv", headers=acme["headers"])
    assert response.status_code == 404
    assert response.json()["success"] is False

"""Checklist template and item tests."""


def _labels(template_data):
    return [item["label"] for item in template_data["items"]]


def test_items_keep_submitted_order(template):
    assert _labels(template) == ["Brakes OK?", "Tyre pressure", "Comments"]
    assert [item["sort_order"] for item in template["items"]] == [0, 1, 2]


def test_add_item_appends(client, acme, template):
    response = client.post(
        f"/api/v1/templates/{template['id']}/items",
        json={"label": "Lights"},
        headers=acme["headers"],
    )
    assert response.status_code == 201
    assert response.json()["data"]["sort_order"] == 3

    fetched = client.get(f"/api/v1/templates/{template['id']}", headers=acme["headers"]).json()["data"]
    assert _labels(fetched)[-1] == "Lights"


def test_delete_item_renumbers(client, acme, template):
    middle = template["items"][1]["id"]
    response = client.delete(f"/api/v1/templates/{template['id']}/items/{middle}", headers=acme["headers"])
    assert response.status_code == 200

    fetched = client.get(f"/api/v1/templates/{template['id']}", headers=acme["headers"]).json()["data"]
    assert _labels(fetched) == ["Brakes OK?", "Comments"]
    assert [item["sort_order"] for item in fetched["items"]] == [0, 1]


def test_answered_item_cannot_be_deleted(client, acme, vehicle, template):
    brakes = template["items"][0]["id"]
    inspection = client.post(
        "/api/v1/inspections",
        json={
            "vehicle_id": vehicle["id"],
            "template_id": template["id"],
            "answers": [{"item_id": brakes, "value_bool": True}],
        },
        headers=acme["headers"],
    ).json()["data"]
    url = f"/api/v1/inspections/{inspection['id']}"
    client.patch(url, json={"status": "completed", "result": "pass"}, headers=acme["headers"])

    response = client.delete(f"/api/v1/templates/{template['id']}/items/{brakes}", headers=acme["headers"])
    assert response.status_code == 409

    fetched = client.get(url, headers=acme["headers"]).json()["data"]
    assert [a["item_id"] for a in fetched["answers"]] == [brakes]
    assert len(client.get(f"/api/v1/templates/{template['id']}", headers=acme["headers"]).json()["data"]["items"]) == 3


def test_reorder_items(client, acme, template):
    ids = [item["id"] for item in template["items"]]
    response = client.post(
        f"/api/v1/templates/{template['id']}/items/reorder",
        json={"item_ids": list(reversed(ids))},
        headers=acme["headers"],
    )
    assert response.status_code == 200
    assert _labels(response.json()["data"]) == ["Comments", "Tyre pressure", "Brakes OK?"]


def test_reorder_requires_every_item(client, acme, template):
    ids = [item["id"] for item in template["items"]]
    for bad in (ids[:2], ids + [ids[0]], ids[:2] + ["not-an-item"]):
        response = client.post(
            f"/api/v1/templates/{template['id']}/items/reorder",
            json={"item_ids": bad},
            headers=acme["headers"],
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "item_ids"


def test_update_item(client, acme, template):
    item_id = template["items"][0]["id"]
    response = client.patch(
        f"/api/v1/templates/{template['id']}/items/{item_id}",
        json={"label": "Brakes working?", "is_required": False},
        headers=acme["headers"],
    )
    assert response.status_code == 200
    assert response.json()["data"]["label"] == "Brakes working?"
    assert response.json()["data"]["is_required"] is False


def test_unknown_item_not_found(client, acme, template):
    response = client.patch(
        f"/api/v1/templates/{template['id']}/items/missing",
        json={"label": "x"},
        headers=acme["headers"],
    )
    assert response.status_code == 404


def test_deleted_template_behaves_as_missing(client, acme, template):
    assert client.delete(f"/api/v1/templates/{template['id']}", headers=acme["headers"]).status_code == 200

    assert client.get(f"/api/v1/templates/{template['id']}", headers=acme["headers"]).status_code == 404
    assert client.get("/api/v1/templates", headers=acme["headers"]).json()["data"] == []
    added = client.post(
        f"/api/v1/templates/{template['id']}/items", json={"label": "Late"}, headers=acme["headers"]
    )
    assert added.status_code == 404


def test_cross_tenant_template_not_found(client, acme, globex, template):
    assert client.get(f"/api/v1/templates/{template['id']}", headers=globex["headers"]).status_code == 404
    response = client.patch(f"/api/v1/templates/{template['id']}", json={"name": "Mine"}, headers=globex["headers"])
    assert response.status_code == 404


def test_driver_reads_but_cannot_write(client, acme, make_user, template):
    _, driver_headers = make_user(acme["headers"], "driver", "d@acme.com")

    assert client.get(f"/api/v1/templates/{template['id']}", headers=driver_headers).status_code == 200
    assert client.post("/api/v1/templates", json={"name": "Mine"}, headers=driver_headers).status_code == 403
    response = client.post(
        f"/api/v1/templates/{template['id']}/items", json={"label": "x"}, headers=driver_headers
    )
    assert response.status_code == 403

import json


def _create(client, **fields):
    body = {"first_name": "", "last_name": "", "email": "", "mobile": ""}
    body.update(fields)
    return client.post("/api/contacts", json=body)


def test_health_version_and_ping(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json().get("status") == "ok"

    v = client.get("/version")
    assert v.status_code == 200
    assert v.json().get("app") == "contactbook-api"

    p = client.get("/api/db/ping")
    assert p.status_code == 200
    assert p.json() == {"ok": True}


def test_contact_crud(client):
    res = _create(client, first_name="Ada", last_name="Lovelace", email="ada@example.com", mobile="+44123")
    assert res.status_code == 201
    cid = res.json()["id"]

    got = client.get(f"/api/contacts/{cid}")
    assert got.status_code == 200
    assert got.json() == {
        "id": cid,
        "first_name": "Ada",
        "last_name": "Lovelace",
        "email": "ada@example.com",
        "mobile": "+44123",
    }

    upd = client.put(
        f"/api/contacts/{cid}",
        json={"first_name": "Augusta Ada", "last_name": "Lovelace", "email": "", "mobile": ""},
    )
    assert upd.status_code == 200
    assert client.get(f"/api/contacts/{cid}").json()["first_name"] == "Augusta Ada"

    assert client.get("/api/contacts/count").json() == {"count": 1}
    assert client.delete(f"/api/contacts/{cid}").status_code == 200
    assert client.delete(f"/api/contacts/{cid}").status_code == 404
    assert client.get(f"/api/contacts/{cid}").status_code == 404
    assert client.get("/api/contacts/count").json() == {"count": 0}


def test_validation_and_not_found_statuses(client):
    r = _create(client, email="ada@example.com")
    assert r.status_code == 400
    assert "first name or last name" in r.json()["detail"]

    r = _create(client, first_name="Ada", email="not-an-email")
    assert r.status_code == 400

    r = client.put("/api/contacts/999999", json={"first_name": "X"})
    assert r.status_code == 404


def test_list_search_and_sort(client):
    for first, last in [("Grace", "Hopper"), ("Ada", "Lovelace"), ("Alan", "Turing")]:
        assert _create(client, first_name=first, last_name=last).status_code == 201

    items = client.get("/api/contacts").json()["items"]
    assert [c["last_name"] for c in items] == ["Hopper", "Lovelace", "Turing"]

    found = client.get("/api/contacts", params={"q": "LOVE"}).json()
    assert found["total"] == 1
    assert found["items"][0]["first_name"] == "Ada"

    desc = client.get("/api/contacts", params={"sort": "first_name", "order": "desc"}).json()["items"]
    assert [c["first_name"] for c in desc] == ["Grace", "Alan", "Ada"]

    hostile = client.get("/api/contacts", params={"sort": "id; DROP TABLE contacts"}).json()["items"]
    assert [c["last_name"] for c in hostile] == ["Hopper", "Lovelace", "Turing"]

    assert client.get("/api/contacts", params={"order": "sideways"}).status_code == 422


def test_bulk_import(client):
    res = client.post(
        "/api/contacts/import",
        json={"items": [
            {"first_name": "Ada", "last_name": "Lovelace"},
            {"first_name": "", "last_name": "", "email": "dropped@example.com"},
            {"first_name": "Grace", "last_name": "Hopper"},
        ]},
    )
    assert res.status_code == 200
    assert res.json() == {"message": "ok", "imported": 2, "skipped": 1}
    assert client.get("/api/contacts/count").json() == {"count": 2}


def test_bulk_import_rolls_back(client, reject_email_trigger):
    res = client.post(
        "/api/contacts/import",
        json={"items": [
            {"first_name": "Ada", "last_name": "Lovelace"},
            {"first_name": "Bad", "last_name": "Row", "email": reject_email_trigger},
        ]},
    )
    assert res.status_code == 409
    assert client.get("/api/contacts/count").json() == {"count": 0}


def test_wipe_requires_confirm(client):
    _create(client, first_name="Ada")
    assert client.delete("/api/contacts").status_code == 400
    assert client.get("/api/contacts/count").json() == {"count": 1}
    assert client.delete("/api/contacts", params={"confirm": "true"}).status_code == 200
    assert client.get("/api/contacts/count").json() == {"count": 0}


def test_operations_are_audited(client):
    cid = _create(client, first_name="Ada", last_name="Lovelace").json()["id"]
    client.delete(f"/api/contacts/{cid}")
    client.delete(f"/api/contacts/{cid}")

    logs = client.get("/api/logs/search", params={"size": 50}).json()
    actions = [(it["action"], it["result"]) for it in logs["items"]]
    assert ("CREATE_CONTACT", "OK") in actions
    assert ("DELETE_CONTACT", "OK") in actions
    assert ("DELETE_CONTACT", "ERROR") in actions

    created = client.get("/api/logs/search", params={"action": "CREATE_CONTACT"}).json()
    assert created["total"] == 1
    assert created["items"][0]["contact_id"] == cid
    assert "Lovelace" in created["items"][0]["after_json"]


def test_audit_records_payload_and_snapshots(client):
    cid = _create(client, first_name="Ada", last_name="Lovelace").json()["id"]
    client.put(f"/api/contacts/{cid}", json={
        "first_name": "Ada", "last_name": "Byron", "email": "", "mobile": "",
    })

    logs = client.get("/api/logs/search", params={"contact_id": cid}).json()
    assert [it["action"] for it in logs["items"]] == ["UPDATE_CONTACT", "CREATE_CONTACT"]
    updated, created = logs["items"]
    assert created["before_json"] is None
    assert json.loads(created["payload_json"])["last_name"] == "Lovelace"
    assert json.loads(updated["before_json"])["last_name"] == "Lovelace"
    assert json.loads(updated["after_json"]) == {
        "id": cid, "first_name": "Ada", "last_name": "Byron", "email": "", "mobile": "",
    }

    hits = client.get("/api/logs/search", params={"query": "Byron"}).json()
    assert hits["total"] == 1


def test_unavailable_store_is_503(client):
    from contactbook.api import app

    svc = app.state.contacts
    app.state.contacts = None
    try:
        assert client.get("/api/contacts").status_code == 503
    finally:
        app.state.contacts = svc

    # a lost connection is terminal for this process
    svc.db.close()
    assert client.get("/api/contacts/count").status_code == 503
    assert client.get("/api/db/ping").json() == {"ok": False}

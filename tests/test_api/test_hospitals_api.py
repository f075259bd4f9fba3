"""API tests for hospital management."""


def test_any_session_lists_hospitals(client, org, login):
    login(org["user_h2"])

    resp = client.get("/api/hospitals")

    assert resp.status_code == 200
    assert [h["id"] for h in resp.json()] == ["H1", "H2"]


def test_super_admin_creates_hospital_with_id_from_brand(client, org, login):
    login(org["root"])

    resp = client.post("/api/hospitals", json={"brand": "RSIJ Sukapura", "name": "RS Islam Jakarta Sukapura"})

    assert resp.status_code == 201
    assert resp.json()["id"] == "RSIJSUKAPURA"
    assert resp.json()["is_active"] is True

    again = client.post("/api/hospitals", json={"brand": "rsij-sukapura", "name": "Duplicate"})
    assert again.status_code == 409


def test_admin_cannot_create_or_delete_hospitals(client, org, login):
    login(org["admin_h1"])

    assert client.post("/api/hospitals", json={"brand": "X", "name": "X"}).status_code == 403
    assert client.delete("/api/hospitals/H1").status_code == 403


def test_brand_without_alphanumerics_is_rejected(client, org, login):
    login(org["root"])
    assert client.post("/api/hospitals", json={"brand": "---", "name": "X"}).status_code == 400


def test_admin_updates_only_managed_hospital(client, org, login):
    login(org["admin_h1"])

    ok = client.patch("/api/hospitals/H1", json={"address": "Jl. Sukapura"})
    hidden = client.patch("/api/hospitals/H2", json={"address": "Elsewhere"})

    assert ok.status_code == 200
    assert ok.json()["address"] == "Jl. Sukapura"
    assert hidden.status_code == 404


def test_update_rejects_null_name(client, org, login):
    login(org["root"])
    assert client.patch("/api/hospitals/H1", json={"name": None}).status_code == 400


def test_delete_refused_while_employees_assigned(client, org, login, make_hospital):
    make_hospital("H9")
    login(org["root"])

    assert client.delete("/api/hospitals/H1").status_code == 409
    assert client.delete("/api/hospitals/H9").status_code == 200
    assert client.delete("/api/hospitals/H9").status_code == 404

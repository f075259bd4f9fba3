"""API tests for tadarus sessions."""


def _session_body(**overrides) -> dict:
    body = {
        "title": "Tadarus Subuh",
        "date": "2024-03-14",
        "start_time": "05:00",
        "end_time": "06:00",
        "participant_ids": ["user1"],
    }
    body.update(overrides)
    return body


def test_admin_creates_session_led_by_themselves(client, org, login):
    login(org["admin_h1"])

    resp = client.post("/api/tadarus/sessions", json=_session_body())

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["mentor_id"] == "admin1"
    assert data["status"] == "open"
    assert data["present_mentee_ids"] == []


def test_users_cannot_create_sessions(client, org, login):
    login(org["user_h1"])
    assert client.post("/api/tadarus/sessions", json=_session_body()).status_code == 403


def test_admin_assigns_a_mentor_they_may_act_for(client, org, login):
    login(org["admin_h1"])

    assert client.post("/api/tadarus/sessions", json=_session_body(mentor_id="user1")).status_code == 200
    assert client.post("/api/tadarus/sessions", json=_session_body(mentor_id="user2")).status_code == 404


def test_mentor_records_presence_and_report_picks_it_up(client, org, login):
    login(org["root"])
    session_id = client.post("/api/tadarus/sessions", json=_session_body(mentor_id="user1")).json()["data"]["id"]

    login(org["user_h1"])
    resp = client.patch(
        "/api/tadarus/sessions",
        json={"id": session_id, "present_mentee_ids": ["user1"], "status": "closed"},
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "closed"

    activities = client.get("/api/monthly-activities", params={"employeeId": "user1"}).json()["activities"]
    assert activities == {"2024-03": {"14": {"tadarus": True}}}


def test_only_the_mentor_or_super_admin_updates(client, org, login):
    login(org["admin_h1"])
    session_id = client.post("/api/tadarus/sessions", json=_session_body()).json()["data"]["id"]

    login(org["user_h2"])
    assert client.patch("/api/tadarus/sessions", json={"id": session_id, "status": "closed"}).status_code == 403
    login(org["root"])
    assert client.patch("/api/tadarus/sessions", json={"id": session_id, "status": "closed"}).status_code == 200
    assert client.patch("/api/tadarus/sessions", json={"id": session_id, "status": None}).status_code == 400
    assert client.patch("/api/tadarus/sessions", json={"id": "missing", "status": "closed"}).status_code == 404


def test_staff_list_only_their_circles(client, org, login):
    login(org["admin_h1"])
    client.post("/api/tadarus/sessions", json=_session_body())
    client.post("/api/tadarus/sessions", json=_session_body(participant_ids=["user2"], date="2024-03-15"))

    assert len(client.get("/api/tadarus/sessions").json()) == 2

    login(org["user_h1"])
    assert [s["date"] for s in client.get("/api/tadarus/sessions").json()] == ["2024-03-14"]

"""API tests for login, logout, session refresh, registration and password change."""

import time

from sqlalchemy import func, select

from mutabaah.models.security import Employee, Identity


def _session_cookies(response) -> list[str]:
    return [h for h in response.headers.get_list("set-cookie") if h.startswith("session=")]


def _count(db, model) -> int:
    db.expire_all()
    return db.scalar(select(func.count()).select_from(model))


def test_login_with_nip_sets_session_cookie(client, org, default_password):
    resp = client.post("/api/auth/login", json={"identifier": "user1", "password": default_password})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["employee"]["id"] == "user1"
    assert "password_hash" not in body["employee"]

    [cookie] = _session_cookies(resp)
    assert "httponly" in cookie.lower()
    assert "samesite=lax" in cookie.lower()


def test_login_with_email_is_case_insensitive(client, org, default_password):
    resp = client.post("/api/auth/login", json={"identifier": " USER1@example.com ", "password": default_password})
    assert resp.status_code == 200
    assert resp.json()["employee"]["id"] == "user1"


def test_login_inactive_account_is_forbidden_without_cookie(client, make_employee, default_password):
    make_employee("sleepy", is_active=False)

    resp = client.post("/api/auth/login", json={"identifier": "sleepy", "password": default_password})

    assert resp.status_code == 403
    assert "error" in resp.json()
    assert _session_cookies(resp) == []


def test_login_wrong_password_and_unknown_user_look_the_same(client, org):
    wrong = client.post("/api/auth/login", json={"identifier": "user1", "password": "nope"})
    unknown = client.post("/api/auth/login", json={"identifier": "ghost", "password": "nope"})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json() == {"error": "Invalid NIP/email or password"}
    assert _session_cookies(wrong) == []


def test_login_missing_fields_is_400(client, org):
    resp = client.post("/api/auth/login", json={"identifier": "user1"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "validation_error"


def test_me_returns_current_employee(client, org, login):
    login(org["admin_h1"])

    resp = client.get("/api/auth/me")

    assert resp.status_code == 200
    assert resp.json()["employee"]["id"] == "admin1"
    assert resp.json()["employee"]["managed_hospital_ids"] == ["H1"]


def test_logout_clears_cookie_once(client, org, login):
    login(org["user_h1"])
    resp = client.post("/api/auth/logout")

    assert resp.status_code == 200
    [cookie] = _session_cookies(resp)
    assert "max-age=0" in cookie.lower()


def test_logout_without_session_is_rejected_by_gate(client):
    assert client.post("/api/auth/logout").status_code == 401


def test_refresh_reissues_cookie(client, org, default_password):
    client.post("/api/auth/login", json={"identifier": "user1", "password": default_password})

    before = int(time.time())
    resp = client.post("/api/auth/refresh")

    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert resp.json()["expiresAt"] >= before + client.app.state.token_codec.ttl_seconds
    assert len(_session_cookies(resp)) == 1


def test_refresh_without_session_is_401(client):
    resp = client.post("/api/auth/refresh")
    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}


def test_verify_without_session_is_401(client):
    assert client.get("/api/auth/verify").status_code == 401


def test_verify_with_session(client, org, login):
    login(org["user_h2"])

    resp = client.get("/api/auth/verify")

    assert resp.status_code == 200
    assert resp.json()["valid"] is True
    assert resp.json()["employee"]["id"] == "user2"


def test_verify_rejects_deactivated_account_with_live_token(client, org, login, app_db):
    login(org["user_h1"])
    app_db.get(Employee, "user1").is_active = False
    app_db.commit()

    assert client.get("/api/auth/verify").status_code == 403


def test_tampered_cookie_is_treated_as_no_session(client, org, login):
    token = login(org["user_h1"])
    client.cookies.set("session", token[:-2] + ("AA" if not token.endswith("AA") else "BB"))

    assert client.get("/api/auth/me").status_code == 401


def test_register_creates_pending_account(client, app_db):
    resp = client.post(
        "/api/auth/register",
        json={"email": "Fresh@Example.com", "password": "secret1", "name": "Fresh Face"},
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["user"]["email"] == "fresh@example.com"
    assert body["redirect"] == "/login"
    assert _count(app_db, Identity) == 1

    attempt = client.post("/api/auth/login", json={"identifier": "fresh@example.com", "password": "secret1"})
    assert attempt.status_code == 403


def test_register_duplicate_email_conflicts_without_orphans(client, org, app_db):
    employees_before = _count(app_db, Employee)

    resp = client.post(
        "/api/auth/register",
        json={"email": "user1@example.com", "password": "secret1", "name": "Copycat"},
    )

    assert resp.status_code == 409
    assert "error" in resp.json()
    assert _count(app_db, Identity) == 0
    assert _count(app_db, Employee) == employees_before


def test_register_twice_conflicts(client, app_db):
    payload = {"email": "twice@example.com", "password": "secret1", "name": "Twice"}
    assert client.post("/api/auth/register", json=payload).status_code == 201
    assert client.post("/api/auth/register", json=payload).status_code == 409
    assert _count(app_db, Identity) == 1


def test_register_rejects_bad_email_and_short_password(client):
    bad_email = client.post("/api/auth/register", json={"email": "nope", "password": "secret1", "name": "X"})
    short = client.post("/api/auth/register", json={"email": "ok@example.com", "password": "123", "name": "X"})

    assert bad_email.status_code == 400
    assert short.status_code == 400


def test_change_password(client, org, login, default_password):
    login(org["user_h1"])

    resp = client.post(
        "/api/auth/change-password",
        json={"oldPassword": default_password, "newPassword": "brand-new-pass"},
    )
    assert resp.status_code == 200

    client.cookies.clear()
    old = client.post("/api/auth/login", json={"identifier": "user1", "password": default_password})
    new = client.post("/api/auth/login", json={"identifier": "user1", "password": "brand-new-pass"})
    assert old.status_code == 401
    assert new.status_code == 200
    assert new.json()["employee"]["must_change_password"] is False


def test_change_password_wrong_old_password(client, org, login):
    login(org["user_h1"])

    resp = client.post("/api/auth/change-password", json={"oldPassword": "wrong", "newPassword": "brand-new-pass"})

    assert resp.status_code == 400
    assert resp.json()["error"] == "Old password is incorrect"


def test_change_password_must_differ(client, org, login, default_password):
    login(org["user_h1"])

    resp = client.post(
        "/api/auth/change-password",
        json={"oldPassword": default_password, "newPassword": default_password},
    )
    assert resp.status_code == 400

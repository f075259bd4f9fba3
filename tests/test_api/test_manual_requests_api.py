"""API tests for missed-prayer and tadarus catch-up requests."""

import pytest
from sqlalchemy import select

from mutabaah.models.activity import AttendanceRecord
from mutabaah.models.mentoring import MonthlyReport


@pytest.fixture
def mentee(org, make_employee):
    """A user in H1 mentored by user1."""
    return make_employee("mentee", hospital_id="H1", mentor_id="user1")


def _file_prayer(client, **overrides):
    body = {"date": "2024-03-11", "prayer_id": "subuh", "reason": "Jaga malam"}
    body.update(overrides)
    return client.post("/api/manual-requests/prayer", json=body)


def test_mentee_files_with_assigned_mentor(client, mentee, login):
    login(mentee)

    resp = _file_prayer(client)

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["mentee_id"] == "mentee"
    assert data["mentor_id"] == "user1"
    assert data["status"] == "pending"
    assert data["prayer_name"] == "Subuh"


def test_request_without_a_mentor_is_rejected(client, org, login):
    login(org["user_h2"])

    resp = _file_prayer(client)

    assert resp.status_code == 400
    assert resp.json()["error"] == "No mentor assigned"


def test_request_body_is_validated(client, mentee, login):
    login(mentee)

    assert _file_prayer(client, prayer_id="dhuha").status_code == 400
    assert _file_prayer(client, date="11-03-2024").status_code == 400
    assert _file_prayer(client, mentee_id="someone-else").status_code == 400


def test_mentor_approval_updates_report_and_attendance(client, mentee, org, login, app_db):
    login(mentee)
    request_id = _file_prayer(client).json()["data"]["id"]

    login(org["user_h1"])
    resp = client.patch("/api/manual-requests/prayer", json={"id": request_id, "status": "approved"})

    assert resp.status_code == 200
    assert resp.json()["data"]["reviewed_by"] == "user1"

    app_db.expire_all()
    record = app_db.scalars(select(AttendanceRecord).where(AttendanceRecord.employee_id == "mentee")).one()
    assert record.entity_id == "subuh-2024-03-11"
    assert record.status == "hadir"
    report = app_db.get(MonthlyReport, "mentee")
    assert [e["date"] for e in report.reports["2024-03"]["subuh-default"]["entries"]] == ["2024-03-11"]

    login(mentee)
    activities = client.get("/api/monthly-activities", params={"employeeId": "mentee"}).json()["activities"]
    assert activities["2024-03"]["11"] == {"shalat_berjamaah": True, "subuh-default": True}


def test_request_is_reviewed_only_once(client, mentee, org, login):
    login(mentee)
    request_id = _file_prayer(client).json()["data"]["id"]

    login(org["user_h1"])
    assert client.patch("/api/manual-requests/prayer", json={"id": request_id, "status": "rejected"}).status_code == 200
    resp = client.patch("/api/manual-requests/prayer", json={"id": request_id, "status": "approved"})

    assert resp.status_code == 409


def test_mentee_and_strangers_cannot_review(client, mentee, org, login):
    login(mentee)
    request_id = _file_prayer(client).json()["data"]["id"]

    assert client.patch("/api/manual-requests/prayer", json={"id": request_id, "status": "approved"}).status_code == 403
    login(org["user_h2"])
    assert client.patch("/api/manual-requests/prayer", json={"id": request_id, "status": "approved"}).status_code == 403
    login(org["admin_h1"])
    assert client.patch("/api/manual-requests/prayer", json={"id": request_id, "status": "approved"}).status_code == 200


def test_unknown_request_is_404(client, org, login):
    login(org["root"])
    assert client.patch("/api/manual-requests/tadarus", json={"id": "nope", "status": "approved"}).status_code == 404


def test_listing_is_limited_to_involved_rows(client, mentee, org, login):
    login(mentee)
    _file_prayer(client)

    login(org["user_h1"])
    as_mentor = client.get("/api/manual-requests/prayer", params={"mentorId": "user1"}).json()["data"]
    assert [r["mentee_id"] for r in as_mentor] == ["mentee"]

    login(org["user_h2"])
    assert client.get("/api/manual-requests/prayer", params={"menteeId": "mentee"}).json()["data"] == []

    login(org["admin_h1"])
    assert len(client.get("/api/manual-requests/prayer", params={"menteeIds": "mentee,user2"}).json()["data"]) == 1


def test_tadarus_approval_marks_the_mapped_activity(client, mentee, org, login):
    login(mentee)
    filed = client.post(
        "/api/manual-requests/tadarus",
        json={"date": "2024-03-12", "category": "Kajian Selasa", "notes": "Masjid RS"},
    )
    assert filed.status_code == 200
    request_id = filed.json()["data"]["id"]

    login(org["user_h1"])
    reviewed = client.patch(
        "/api/manual-requests/tadarus",
        json={"id": request_id, "status": "approved", "mentor_notes": "OK"},
    )
    assert reviewed.json()["data"]["mentor_notes"] == "OK"

    login(mentee)
    activities = client.get(
        "/api/monthly-activities", params={"employeeId": "mentee", "month": 3, "year": 2024}
    ).json()["activities"]
    assert activities == {"2024-03": {"12": {"kajian_selasa": True}}}

"""Tests for the merged monthly activity map."""

from __future__ import annotations

import pytest

from mutabaah.errors import ValidationError
from mutabaah.models.activity import Activity, AttendanceRecord, TeamAttendanceSession
from mutabaah.models.mentoring import MissedPrayerRequest, MonthlyReport, TadarusRequest, TadarusSession
from mutabaah.models.security import Employee
from mutabaah.services.monthly_report import (
    activity_for_type,
    add_report_entry,
    attendance_date,
    build_monthly_activities,
    month_range,
)

# 2024-03-10 20:00 UTC, i.e. 2024-03-11 03:00 WIB.
LATE_EVENING_UTC_MS = 1_710_100_800_000


def _employee(db, employee_id: str = "e1") -> None:
    db.add(Employee(id=employee_id, email=f"{employee_id}@example.com", name=employee_id))
    db.flush()


def _attendance(db, entity_id: str, status: str = "hadir", timestamp: int = LATE_EVENING_UTC_MS) -> None:
    db.add(AttendanceRecord(employee_id="e1", entity_id=entity_id, status=status, timestamp=timestamp))


def _request_fields(**overrides) -> dict:
    fields = dict(mentee_id="e1", mentee_name="E1", mentor_id="m1", requested_at=1, status="approved")
    fields.update(overrides)
    return fields


def test_month_range():
    assert month_range(None, None) is None
    assert month_range(2, 2024) == ("2024-02-01", "2024-02-29")
    assert month_range(12, 2023) == ("2023-12-01", "2023-12-31")
    with pytest.raises(ValidationError):
        month_range(3, None)
    with pytest.raises(ValidationError):
        month_range(13, 2024)


def test_activity_types_are_matched_case_insensitively():
    assert activity_for_type("KIE") == "tepat_waktu_kie"
    assert activity_for_type(" Doa Bersama ") == "doa_bersama"
    assert activity_for_type("BBQ") == "tadarus"
    assert activity_for_type("Pengajian Persyarikatan") == "persyarikatan"
    assert activity_for_type("Rapat") is None
    assert activity_for_type(None) is None


def test_attendance_date_prefers_the_dated_entity_id():
    dated = AttendanceRecord(employee_id="e1", entity_id="subuh-2024-03-05", status="hadir", timestamp=LATE_EVENING_UTC_MS)
    undated = AttendanceRecord(employee_id="e1", entity_id="x", status="hadir", timestamp=LATE_EVENING_UTC_MS)

    assert attendance_date(dated, 7 * 60) == "2024-03-05"
    assert attendance_date(undated, 7 * 60) == "2024-03-11"
    assert attendance_date(undated, 0) == "2024-03-10"


def test_every_source_is_merged(db_session):
    _employee(db_session)
    db_session.add_all(
        [
            Activity(
                id="act-1", name="Kajian", date="2024-03-12", start_time="19:00", end_time="20:00",
                created_by="adm", activity_type="Kajian Selasa",
            ),
            TeamAttendanceSession(
                id="ses-1", creator_id="adm", creator_name="Adm", type="KIE", date="2024-03-13",
                start_time="07:00", end_time="08:00", created_at=1,
            ),
            TadarusSession(
                title="Tadarus", date="2024-03-14", start_time="05:00", end_time="06:00",
                mentor_id="m1", present_mentee_ids=["e1"], created_at=1,
            ),
            TadarusSession(
                title="Absent", date="2024-03-15", start_time="05:00", end_time="06:00",
                mentor_id="m1", participant_ids=["e1"], present_mentee_ids=[], created_at=1,
            ),
            TadarusRequest(date="2024-03-16", category="Doa Bersama", **_request_fields()),
            TadarusRequest(date="2024-03-17", category="UMUM", **_request_fields(status="pending")),
            MissedPrayerRequest(date="2024-03-18", prayer_id="ashar", prayer_name="Ashar", reason="r", **_request_fields()),
            MonthlyReport(
                employee_id="e1",
                reports={"2024-03": {"baca_alquran_buku": {"count": 1, "entries": [{"date": "2024-03-19"}]}}},
            ),
        ]
    )
    _attendance(db_session, "subuh-2024-03-11")
    _attendance(db_session, "dzuhur-2024-03-20", status="tidak-hadir")
    _attendance(db_session, "act-1")
    _attendance(db_session, "ses-1")
    db_session.commit()

    march = build_monthly_activities(db_session, "e1")["2024-03"]

    assert march == {
        "11": {"shalat_berjamaah": True},
        "12": {"kajian_selasa": True},
        "13": {"tepat_waktu_kie": True},
        "14": {"tadarus": True},
        "16": {"doa_bersama": True},
        "18": {"ashar-default": True},
        "19": {"baca_alquran_buku": True},
    }


def test_month_filter_drops_other_months(db_session):
    _employee(db_session)
    _attendance(db_session, "subuh-2024-02-29")
    _attendance(db_session, "subuh-2024-03-01")
    db_session.add(
        MonthlyReport(employee_id="e1", reports={"2024-04": {"tadarus": {"entries": [{"date": "2024-04-02"}]}}})
    )
    db_session.commit()

    result = build_monthly_activities(db_session, "e1", month_range(3, 2024))

    assert result == {"2024-03": {"01": {"shalat_berjamaah": True}}}


def test_other_employees_data_is_ignored(db_session):
    _employee(db_session)
    _employee(db_session, "e2")
    db_session.add(AttendanceRecord(employee_id="e2", entity_id="subuh-2024-03-01", status="hadir", timestamp=1))
    db_session.add(
        TadarusSession(
            title="T", date="2024-03-02", start_time="05:00", end_time="06:00",
            mentor_id="m1", present_mentee_ids=["e2"], created_at=1,
        )
    )
    db_session.commit()

    assert build_monthly_activities(db_session, "e1") == {}


def test_add_report_entry_skips_duplicate_dates(db_session):
    assert add_report_entry(db_session, "e1", "2024-03-05", "tadarus", "first", 10) is True
    db_session.commit()
    assert add_report_entry(db_session, "e1", "2024-03-05", "tadarus", "again", 20) is False
    assert add_report_entry(db_session, "e1", "2024-03-06", "tadarus", "second", 30) is True
    db_session.commit()

    db_session.expire_all()
    progress = db_session.get(MonthlyReport, "e1").reports["2024-03"]["tadarus"]
    assert progress["count"] == 2
    assert [e["date"] for e in progress["entries"]] == ["2024-03-05", "2024-03-06"]

"""
Monthly mutabaah report: every source of an employee's daily activities merged
into one ``{"YYYY-MM": {"DD": {activity_id: True}}}`` map.

Sources:
- attendance records marked ``hadir``: congregational prayer, or the scheduled
  activity / team session the record points at
- tadarus sessions the employee was present at
- approved tadarus and missed-prayer requests
- manual entries in ``employee_monthly_reports``

Nothing is cached; the map is rebuilt on every call.
"""

from __future__ import annotations

import calendar
import copy
import re
from collections import defaultdict
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from mutabaah.errors import ValidationError
from mutabaah.models.activity import Activity, AttendanceRecord, TeamAttendanceSession
from mutabaah.models.mentoring import MissedPrayerRequest, MonthlyReport, TadarusRequest, TadarusSession

PRAYER_ACTIVITY = "shalat_berjamaah"
TADARUS_ACTIVITY = "tadarus"

# Session / activity type (lower-cased) -> report activity id.
_TYPE_ACTIVITIES = {
    "kie": "tepat_waktu_kie",
    "doa bersama": "doa_bersama",
    "bbq": TADARUS_ACTIVITY,
    "umum": TADARUS_ACTIVITY,
    "tadarus": TADARUS_ACTIVITY,
    "kajian selasa": "kajian_selasa",
    "pengajian persyarikatan": "persyarikatan",
    "persyarikatan": "persyarikatan",
    "membaca al-quran dan buku": "baca_alquran_buku",
    "baca alquran buku": "baca_alquran_buku",
}

_TRAILING_DATE = re.compile(r"(\d{4}-\d{2}-\d{2})$")

ActivityMap = dict[str, dict[str, dict[str, bool]]]
DateRange = tuple[str, str]


def activity_for_type(type_name: str | None) -> str | None:
    if not type_name:
        return None
    return _TYPE_ACTIVITIES.get(type_name.strip().lower())


def prayer_activity(prayer_id: str) -> str:
    return f"{prayer_id}-default"


def month_range(month: int | None, year: int | None) -> DateRange | None:
    """First and last day of the month as ``YYYY-MM-DD``; None when no month was asked for."""
    if month is None and year is None:
        return None
    if month is None or year is None:
        raise ValidationError("month and year must be given together")
    if not 1 <= month <= 12 or not 1900 <= year <= 9999:
        raise ValidationError("Invalid or missing fields: month, year")
    last_day = calendar.monthrange(year, month)[1]
    return f"{year:04d}-{month:02d}-01", f"{year:04d}-{month:02d}-{last_day:02d}"


def attendance_date(record: AttendanceRecord, utc_offset_minutes: int) -> str:
    """Calendar day of a record: from a dated entity id (``subuh-2024-03-11``), else from its timestamp."""
    match = _TRAILING_DATE.search(record.entity_id)
    if match:
        return match.group(1)
    tz = timezone(timedelta(minutes=utc_offset_minutes))
    return datetime.fromtimestamp(record.timestamp / 1000, tz).strftime("%Y-%m-%d")


class _Collector:
    def __init__(self, date_range: DateRange | None) -> None:
        self._range = date_range
        self._days: ActivityMap = defaultdict(lambda: defaultdict(dict))

    def mark(self, date: str, activity_id: str | None) -> None:
        if not activity_id or len(date) < 10:
            return
        if self._range and not (self._range[0] <= date[:10] <= self._range[1]):
            return
        self._days[date[:7]][date[8:10]][activity_id] = True

    def result(self) -> ActivityMap:
        return {month: {day: dict(acts) for day, acts in days.items()} for month, days in self._days.items()}


def build_monthly_activities(
    db: Session,
    employee_id: str,
    date_range: DateRange | None = None,
    utc_offset_minutes: int = 7 * 60,
) -> ActivityMap:
    out = _Collector(date_range)

    _merge_attendance(db, out, employee_id, utc_offset_minutes)
    _merge_manual_reports(db, out, employee_id)

    for session in db.scalars(select(TadarusSession).where(_in_range(TadarusSession.date, date_range))):
        if employee_id in (session.present_mentee_ids or []):
            out.mark(session.date, TADARUS_ACTIVITY)

    tadarus_requests = select(TadarusRequest).where(
        TadarusRequest.mentee_id == employee_id,
        TadarusRequest.status == "approved",
        _in_range(TadarusRequest.date, date_range),
    )
    for req in db.scalars(tadarus_requests):
        out.mark(req.date, activity_for_type(req.category) or TADARUS_ACTIVITY)

    prayer_requests = select(MissedPrayerRequest).where(
        MissedPrayerRequest.mentee_id == employee_id,
        MissedPrayerRequest.status == "approved",
        _in_range(MissedPrayerRequest.date, date_range),
    )
    for req in db.scalars(prayer_requests):
        out.mark(req.date, prayer_activity(req.prayer_id))

    return out.result()


def _in_range(column, date_range: DateRange | None):
    if date_range is None:
        return column.is_not(None)
    return column.between(date_range[0], date_range[1])


def _merge_attendance(db: Session, out: _Collector, employee_id: str, utc_offset_minutes: int) -> None:
    records = list(
        db.scalars(
            select(AttendanceRecord).where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.status == "hadir",
            )
        )
    )
    if not records:
        return

    entity_ids = {r.entity_id for r in records}
    activities = {
        a.id: a for a in db.scalars(select(Activity).where(Activity.id.in_(entity_ids)))
    }
    sessions = {
        s.id: s for s in db.scalars(select(TeamAttendanceSession).where(TeamAttendanceSession.id.in_(entity_ids)))
    }

    for record in records:
        if record.entity_id in activities:
            activity = activities[record.entity_id]
            out.mark(activity.date, activity_for_type(activity.activity_type))
        elif record.entity_id in sessions:
            session = sessions[record.entity_id]
            out.mark(session.date, activity_for_type(session.type))
        else:
            out.mark(attendance_date(record, utc_offset_minutes), PRAYER_ACTIVITY)


def _merge_manual_reports(db: Session, out: _Collector, employee_id: str) -> None:
    report = db.get(MonthlyReport, employee_id)
    if report is None:
        return
    for month_data in (report.reports or {}).values():
        for activity_id, progress in (month_data or {}).items():
            for entry in (progress or {}).get("entries") or []:
                if entry.get("date"):
                    out.mark(entry["date"], activity_id)


def add_report_entry(db: Session, employee_id: str, date: str, activity_id: str, note: str, now_ms: int) -> bool:
    """
    Append a dated entry to the employee's manual report. Does not commit.

    Returns False when the activity already has an entry for that date.
    """
    report = db.get(MonthlyReport, employee_id)
    if report is None:
        report = MonthlyReport(employee_id=employee_id, reports={})
        db.add(report)

    # JSON columns are not mutation-tracked; work on a copy and reassign.
    reports = copy.deepcopy(report.reports or {})
    progress = reports.setdefault(date[:7], {}).setdefault(activity_id, {"count": 0, "entries": []})
    entries = progress.setdefault("entries", [])
    if any(e.get("date") == date for e in entries):
        return False

    entries.append({"date": date, "completedAt": now_ms, "note": note})
    progress["count"] = len(entries)
    progress["completedAt"] = now_ms
    report.reports = reports
    report.updated_at = now_ms
    return True

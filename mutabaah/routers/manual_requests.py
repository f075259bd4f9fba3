"""
Catch-up requests a mentee files with their mentor: a missed congregational
prayer, or a tadarus / kajian attended outside a recorded session.

Approval adds the day to the mentee's monthly report; an approved prayer also
becomes a ``hadir`` attendance record for that prayer slot.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from mutabaah.db.session import get_service_db
from mutabaah.errors import AuthorizationDenied, Conflict, NotFound, ValidationError
from mutabaah.models.activity import AttendanceRecord
from mutabaah.models.mentoring import MissedPrayerRequest, TadarusRequest
from mutabaah.models.security import Employee
from mutabaah.schemas.mentoring import (
    PrayerRequestCreate,
    PrayerRequestOut,
    RequestReview,
    TadarusRequestCreate,
    TadarusRequestOut,
)
from mutabaah.security.context import Actor
from mutabaah.security.dependencies import get_actor
from mutabaah.security.policy import Role, can_review_request
from mutabaah.services.employees import as_target, get_employee
from mutabaah.services.monthly_report import TADARUS_ACTIVITY, activity_for_type, add_report_entry, prayer_activity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/manual-requests", tags=["manual-requests"])

ManualRequest = TadarusRequest | MissedPrayerRequest


def _now_ms() -> int:
    return int(time.time() * 1000)


def _visible(stmt, model: type[ManualRequest], actor: Actor):
    """Own requests and the ones filed with the actor; admins also see their hospitals' mentees."""
    if actor.role is Role.SUPER_ADMIN:
        return stmt
    own = or_(model.mentee_id == actor.id, model.mentor_id == actor.id)
    if actor.role is Role.ADMIN:
        in_scope = select(Employee.id).where(Employee.hospital_id.in_(sorted(actor.managed_hospital_ids)))
        return stmt.where(or_(own, model.mentee_id.in_(in_scope)))
    return stmt.where(own)


def _list(
    db: Session,
    model: type[ManualRequest],
    actor: Actor,
    mentee_id: str | None,
    mentee_ids: str | None,
    mentor_id: str | None,
    status: str | None,
) -> list:
    stmt = _visible(select(model), model, actor).order_by(model.requested_at.desc())
    ids = [i.strip() for i in (mentee_ids or "").split(",") if i.strip()]
    if ids:
        stmt = stmt.where(model.mentee_id.in_(ids))
    elif mentee_id:
        stmt = stmt.where(model.mentee_id == mentee_id)
    elif mentor_id:
        stmt = stmt.where(model.mentor_id == mentor_id)
    if status:
        stmt = stmt.where(model.status == status)
    return list(db.scalars(stmt).all())


def _requester(db: Session, actor: Actor, mentor_id: str | None) -> tuple[Employee, str]:
    mentee = get_employee(db, actor.id)
    if mentee is None:
        raise NotFound("Employee not found")
    mentor_id = mentor_id or mentee.mentor_id
    if not mentor_id:
        raise ValidationError("No mentor assigned")
    if mentor_id == actor.id:
        raise ValidationError("You cannot file a request with yourself")
    if get_employee(db, mentor_id) is None:
        raise NotFound("Mentor not found")
    return mentee, mentor_id


def _review(db: Session, model: type[ManualRequest], actor: Actor, payload: RequestReview) -> ManualRequest:
    row = db.get(model, payload.id)
    if row is None:
        raise NotFound("Request not found")
    mentee = get_employee(db, row.mentee_id)
    if mentee is None:
        raise NotFound("Employee not found")
    if not can_review_request(actor, as_target(mentee), row.mentor_id):
        raise AuthorizationDenied("Only the mentee's mentor can review this request")
    if row.status != "pending":
        raise Conflict("Request has already been reviewed")

    row.status = payload.status
    row.mentor_notes = payload.mentor_notes
    row.reviewed_at = _now_ms()
    row.reviewed_by = actor.id
    return row


# ---------------------------------------------------------------------------
# Missed prayers
# ---------------------------------------------------------------------------


@router.get("/prayer")
def list_prayer_requests(
    mentee_id: str | None = Query(default=None, alias="menteeId"),
    mentee_ids: str | None = Query(default=None, alias="menteeIds"),
    mentor_id: str | None = Query(default=None, alias="mentorId"),
    status: str | None = Query(default=None),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> dict:
    rows = _list(db, MissedPrayerRequest, actor, mentee_id, mentee_ids, mentor_id, status)
    return {"success": True, "data": [PrayerRequestOut.model_validate(r) for r in rows]}


@router.post("/prayer")
def create_prayer_request(
    payload: PrayerRequestCreate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> dict:
    mentee, mentor_id = _requester(db, actor, payload.mentor_id)
    row = MissedPrayerRequest(
        mentee_id=mentee.id,
        mentee_name=mentee.name,
        mentor_id=mentor_id,
        date=payload.date,
        prayer_id=payload.prayer_id,
        prayer_name=payload.prayer_name or payload.prayer_id.capitalize(),
        reason=payload.reason,
        requested_at=_now_ms(),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return {"success": True, "data": PrayerRequestOut.model_validate(row)}


@router.patch("/prayer")
def review_prayer_request(
    payload: RequestReview,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> dict:
    row = _review(db, MissedPrayerRequest, actor, payload)
    if row.status == "approved":
        add_report_entry(
            db,
            row.mentee_id,
            row.date,
            prayer_activity(row.prayer_id),
            f"Approved missed prayer request {row.id}",
            row.reviewed_at,
        )
        _mark_prayer_attended(db, row)
    db.commit()
    db.refresh(row)

    logger.info("Prayer request reviewed id=%s status=%s actor=%s", row.id, row.status, actor.id)
    return {"success": True, "data": PrayerRequestOut.model_validate(row)}


def _mark_prayer_attended(db: Session, row: MissedPrayerRequest) -> None:
    entity_id = f"{row.prayer_id}-{row.date}"
    # Noon UTC falls on the same calendar day in every Indonesian time zone.
    noon = datetime.strptime(row.date, "%Y-%m-%d").replace(hour=12, tzinfo=timezone.utc)
    record = db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.employee_id == row.mentee_id,
            AttendanceRecord.entity_id == entity_id,
        )
    ).scalar_one_or_none()
    if record is None:
        record = AttendanceRecord(employee_id=row.mentee_id, entity_id=entity_id)
        db.add(record)
    record.status = "hadir"
    record.reason = f"Approved manual request: {row.reason}"
    record.timestamp = int(noon.timestamp() * 1000)
    record.is_late_entry = False


# ---------------------------------------------------------------------------
# Tadarus and other gatherings
# ---------------------------------------------------------------------------


@router.get("/tadarus")
def list_tadarus_requests(
    mentee_id: str | None = Query(default=None, alias="menteeId"),
    mentee_ids: str | None = Query(default=None, alias="menteeIds"),
    mentor_id: str | None = Query(default=None, alias="mentorId"),
    status: str | None = Query(default=None),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> dict:
    rows = _list(db, TadarusRequest, actor, mentee_id, mentee_ids, mentor_id, status)
    return {"success": True, "data": [TadarusRequestOut.model_validate(r) for r in rows]}


@router.post("/tadarus")
def create_tadarus_request(
    payload: TadarusRequestCreate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> dict:
    mentee, mentor_id = _requester(db, actor, payload.mentor_id)
    row = TadarusRequest(
        mentee_id=mentee.id,
        mentee_name=mentee.name,
        mentor_id=mentor_id,
        date=payload.date,
        category=payload.category,
        notes=payload.notes,
        requested_at=_now_ms(),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return {"success": True, "data": TadarusRequestOut.model_validate(row)}


@router.patch("/tadarus")
def review_tadarus_request(
    payload: RequestReview,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> dict:
    row = _review(db, TadarusRequest, actor, payload)
    if row.status == "approved":
        activity_id = activity_for_type(row.category) or TADARUS_ACTIVITY
        add_report_entry(db, row.mentee_id, row.date, activity_id, f"Approved tadarus request {row.id}", row.reviewed_at)
    db.commit()
    db.refresh(row)

    logger.info("Tadarus request reviewed id=%s status=%s actor=%s", row.id, row.status, actor.id)
    return {"success": True, "data": TadarusRequestOut.model_validate(row)}

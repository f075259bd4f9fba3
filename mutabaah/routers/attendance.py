from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, Query
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mutabaah.db.session import get_service_db
from mutabaah.models.activity import AttendanceRecord
from mutabaah.schemas.activities import AttendanceBatch, AttendanceEntry, AttendanceOut, AttendanceSubmit
from mutabaah.security.context import Actor
from mutabaah.security.dependencies import get_actor
from mutabaah.services.employees import authorize_for_employee

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/attendance", tags=["attendance"])


def _upsert(db: Session, employee_id: str, entry: AttendanceEntry) -> AttendanceRecord:
    values = entry.model_dump(exclude={"employee_id"})
    if values.get("timestamp") is None:
        values["timestamp"] = int(time.time() * 1000)

    record = db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.entity_id == entry.entity_id,
        )
    ).scalar_one_or_none()
    if record is None:
        record = AttendanceRecord(employee_id=employee_id, **values)
        db.add(record)
    else:
        for field, value in values.items():
            setattr(record, field, value)
    db.flush()
    return record


def _upsert_all(db: Session, employee_id: str, entries: list[AttendanceEntry]) -> list[AttendanceRecord]:
    """
    Write every entry and commit.

    A concurrent insert of the same (employee, entity) pair surfaces as a unique
    violation; the batch is retried once, and the retry updates that row.
    """
    for attempt in range(2):
        try:
            records = [_upsert(db, employee_id, entry) for entry in entries]
            db.commit()
            return records
        except IntegrityError:
            db.rollback()
            if attempt:
                raise
            logger.info("Attendance upsert raced; retrying employee=%s", employee_id)
    return []


@router.post("/submit")
def submit_attendance(
    payload: AttendanceSubmit,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> dict:
    authorize_for_employee(db, actor, payload.employee_id)
    (record,) = _upsert_all(db, payload.employee_id, [payload])
    return {"success": True, "data": AttendanceOut.model_validate(record)}


@router.delete("/submit")
def delete_attendance(
    employee_id: str = Query(alias="employeeId", min_length=1),
    entity_id: str = Query(alias="entityId", min_length=1),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> dict:
    authorize_for_employee(db, actor, employee_id)
    db.execute(
        delete(AttendanceRecord).where(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.entity_id == entity_id,
        )
    )
    db.commit()
    return {"success": True}


@router.post("/batch")
def submit_batch(
    payload: AttendanceBatch,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> dict:
    authorize_for_employee(db, actor, payload.employee_id)

    # Last entry wins when the same entity appears twice in one batch.
    by_entity = {entry.entity_id: entry for entry in payload.records}
    records = _upsert_all(db, payload.employee_id, list(by_entity.values()))
    return {"success": True, "data": [AttendanceOut.model_validate(r) for r in records]}


@router.get("", response_model=list[AttendanceOut])
def list_attendance(
    employee_id: str | None = Query(default=None, alias="employeeId"),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> list[AttendanceRecord]:
    target_id = employee_id or actor.id
    authorize_for_employee(db, actor, target_id)
    stmt = (
        select(AttendanceRecord)
        .where(AttendanceRecord.employee_id == target_id)
        .order_by(AttendanceRecord.timestamp.desc())
    )
    return list(db.scalars(stmt).all())

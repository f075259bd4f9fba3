from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mutabaah.db.session import get_service_db
from mutabaah.errors import ValidationError
from mutabaah.models.mentoring import MonthActivation
from mutabaah.schemas.mentoring import ActivateMonthIn, MonthlyActivities
from mutabaah.security.context import Actor
from mutabaah.security.dependencies import get_actor
from mutabaah.services.employees import authorize_for_employee, authorize_report_view
from mutabaah.services.monthly_report import build_monthly_activities, month_range
from mutabaah.settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["monthly-activities"])


@router.get("/monthly-activities", response_model=MonthlyActivities)
def get_monthly_activities(
    employee_id: str | None = Query(default=None, alias="employeeId"),
    month: int | None = Query(default=None),
    year: int | None = Query(default=None),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> MonthlyActivities:
    if not employee_id:
        raise ValidationError("employeeId is required")
    date_range = month_range(month, year)

    authorize_report_view(db, actor, employee_id)

    activities = build_monthly_activities(
        db,
        employee_id,
        date_range,
        utc_offset_minutes=get_settings().report_utc_offset_minutes,
    )
    return MonthlyActivities(activities=activities)


def _activated_months(db: Session, employee_id: str) -> list[str]:
    stmt = select(MonthActivation.month_key).where(MonthActivation.employee_id == employee_id)
    return sorted(db.scalars(stmt).all())


@router.get("/activated-months")
def get_activated_months(
    employee_id: str | None = Query(default=None, alias="employeeId"),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> dict:
    if not employee_id:
        raise ValidationError("employeeId is required")
    authorize_report_view(db, actor, employee_id)
    return {"activatedMonths": _activated_months(db, employee_id)}


@router.post("/activated-months")
def activate_month(
    payload: ActivateMonthIn,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> dict:
    authorize_for_employee(db, actor, payload.employee_id)

    exists = db.execute(
        select(MonthActivation.id).where(
            MonthActivation.employee_id == payload.employee_id,
            MonthActivation.month_key == payload.month_key,
        )
    ).first()
    if exists is None:
        db.add(MonthActivation(employee_id=payload.employee_id, month_key=payload.month_key))
        try:
            db.commit()
        except IntegrityError:
            # Activated concurrently; the row is there either way.
            db.rollback()
        else:
            logger.info("Month activated employee=%s month=%s actor=%s", payload.employee_id, payload.month_key, actor.id)

    return {"success": True, "activatedMonths": _activated_months(db, payload.employee_id)}

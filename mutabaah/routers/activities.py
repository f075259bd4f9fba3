from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from mutabaah.db.session import get_service_db
from mutabaah.errors import AuthorizationDenied, NotFound
from mutabaah.models.activity import Activity
from mutabaah.schemas.activities import ActivityCreate, ActivityOut, ActivityUpdate, DATE_PATTERN
from mutabaah.security.context import Actor
from mutabaah.security.dependencies import get_actor, require_admin
from mutabaah.security.policy import Target, can_act_on_owned_resource

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/activities", tags=["activities"])


def _owned_activity(db: Session, actor: Actor, activity_id: str, verb: str) -> Activity:
    activity = db.get(Activity, activity_id)
    if activity is None:
        raise NotFound("Activity not found")
    if not can_act_on_owned_resource(actor, Target(id=activity.id, created_by=activity.created_by)):
        logger.info("Activity %s denied actor=%s activity=%s", verb, actor.id, activity_id)
        raise AuthorizationDenied(f"You do not have permission to {verb} this activity")
    return activity


@router.get("", response_model=list[ActivityOut])
def list_activities(
    date: str | None = Query(default=None, pattern=DATE_PATTERN),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> list[Activity]:
    stmt = select(Activity).order_by(Activity.date.desc(), Activity.start_time)
    if date:
        stmt = stmt.where(Activity.date == date)
    return list(db.scalars(stmt).all())


@router.post("")
def create_activity(
    payload: ActivityCreate,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_service_db),
) -> dict:
    activity = Activity(**payload.model_dump(), created_by=actor.nip or actor.id, created_by_name=actor.name)
    db.add(activity)
    db.commit()
    db.refresh(activity)
    return {"success": True, "data": ActivityOut.model_validate(activity)}


@router.patch("")
def update_activity(
    payload: ActivityUpdate,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_service_db),
) -> dict:
    activity = _owned_activity(db, actor, payload.id, "update")
    for field, value in payload.model_dump(exclude_unset=True, exclude={"id"}).items():
        setattr(activity, field, value)
    db.commit()
    db.refresh(activity)
    return {"success": True, "data": ActivityOut.model_validate(activity)}


@router.delete("")
def delete_activity(
    id: str = Query(min_length=1),
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_service_db),
) -> dict:
    activity = _owned_activity(db, actor, id, "delete")
    db.delete(activity)
    db.commit()
    logger.info("Activity deleted actor=%s activity=%s", actor.id, id)
    return {"success": True}

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from mutabaah.db.session import get_service_db
from mutabaah.errors import AuthorizationDenied, NotFound
from mutabaah.models.mentoring import TadarusSession
from mutabaah.schemas.mentoring import TadarusSessionCreate, TadarusSessionOut, TadarusSessionUpdate
from mutabaah.security.context import Actor
from mutabaah.security.dependencies import get_actor, require_admin
from mutabaah.security.policy import Target, can_act_for_employee, can_act_on_owned_resource, is_admin
from mutabaah.services.employees import as_target, get_employee

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tadarus/sessions", tags=["tadarus"])


@router.get("", response_model=list[TadarusSessionOut])
def list_sessions(
    mentor_id: str | None = Query(default=None, alias="mentorId"),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> list[TadarusSession]:
    stmt = select(TadarusSession).order_by(TadarusSession.date.desc(), TadarusSession.start_time)
    if mentor_id:
        stmt = stmt.where(TadarusSession.mentor_id == mentor_id)

    rows = db.scalars(stmt).all()
    if is_admin(actor):
        return list(rows)
    # Staff see the circles they lead or were invited to.
    return [r for r in rows if r.mentor_id == actor.id or actor.id in (r.participant_ids or [])]


@router.post("")
def create_session(
    payload: TadarusSessionCreate,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_service_db),
) -> dict:
    mentor_id = payload.mentor_id or actor.id
    if mentor_id != actor.id:
        mentor = get_employee(db, mentor_id)
        if mentor is None or not can_act_for_employee(actor, as_target(mentor)):
            raise NotFound("Mentor not found")

    row = TadarusSession(
        **payload.model_dump(exclude={"mentor_id"}),
        mentor_id=mentor_id,
        created_at=int(time.time() * 1000),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Tadarus session created id=%s mentor=%s actor=%s", row.id, mentor_id, actor.id)
    return {"success": True, "data": TadarusSessionOut.model_validate(row)}


@router.patch("")
def update_session(
    payload: TadarusSessionUpdate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> dict:
    row = db.get(TadarusSession, payload.id)
    if row is None:
        raise NotFound("Session not found")
    if not can_act_on_owned_resource(actor, Target(id=row.id, created_by=row.mentor_id)):
        raise AuthorizationDenied("Only the session's mentor can update it")

    for field, value in payload.model_dump(exclude_unset=True, exclude={"id"}).items():
        setattr(row, field, value)
    db.commit()
    db.refresh(row)
    return {"success": True, "data": TadarusSessionOut.model_validate(row)}

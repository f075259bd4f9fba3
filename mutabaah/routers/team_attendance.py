from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from mutabaah.db.session import get_service_db
from mutabaah.errors import AuthorizationDenied, NotFound
from mutabaah.models.activity import TeamAttendanceSession
from mutabaah.schemas.activities import TeamSessionCreate, TeamSessionOut, TeamSessionUpdate
from mutabaah.security.context import Actor
from mutabaah.security.dependencies import get_actor, require_admin
from mutabaah.security.policy import Target, can_act_on_owned_resource

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/team-attendance/sessions", tags=["team-attendance"])


def _now_ms() -> int:
    return int(time.time() * 1000)


def _owned_session(db: Session, actor: Actor, session_id: str, verb: str) -> TeamAttendanceSession:
    row = db.get(TeamAttendanceSession, session_id)
    if row is None:
        raise NotFound("Session not found")
    if not can_act_on_owned_resource(actor, Target(id=row.id, created_by=row.creator_id)):
        raise AuthorizationDenied(f"You do not have permission to {verb} this session")
    return row


@router.get("", response_model=list[TeamSessionOut])
def list_sessions(actor: Actor = Depends(get_actor), db: Session = Depends(get_service_db)) -> list[TeamAttendanceSession]:
    stmt = select(TeamAttendanceSession).order_by(TeamAttendanceSession.date.desc(), TeamAttendanceSession.start_time)
    return list(db.scalars(stmt).all())


@router.post("")
def create_session(
    payload: TeamSessionCreate,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_service_db),
) -> dict:
    row = TeamAttendanceSession(
        **payload.model_dump(),
        creator_id=actor.nip or actor.id,
        creator_name=actor.name,
        created_at=_now_ms(),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return {"success": True, "data": TeamSessionOut.model_validate(row)}


@router.patch("")
def update_session(
    payload: TeamSessionUpdate,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_service_db),
) -> dict:
    row = _owned_session(db, actor, payload.id, "update")
    for field, value in payload.model_dump(exclude_unset=True, exclude={"id"}).items():
        setattr(row, field, value)
    row.updated_at = _now_ms()
    db.commit()
    db.refresh(row)
    return {"success": True, "data": TeamSessionOut.model_validate(row)}


@router.delete("")
def delete_session(
    id: str = Query(min_length=1),
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_service_db),
) -> dict:
    row = _owned_session(db, actor, id, "delete")
    db.delete(row)
    db.commit()
    logger.info("Team session deleted actor=%s session=%s", actor.id, id)
    return {"success": True}

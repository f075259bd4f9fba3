from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from mutabaah.db.session import get_service_db
from mutabaah.errors import AuthorizationDenied, NotFound
from mutabaah.models.security import Employee
from mutabaah.schemas.mentoring import ManageTeamIn
from mutabaah.security.context import Actor
from mutabaah.security.dependencies import get_actor
from mutabaah.security.policy import can_manage_team_member
from mutabaah.services.employees import as_target, get_employee

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/supervision", tags=["supervision"])

RELATION_COLUMNS = {
    "supervisor": "supervisor_id",
    "kaunit": "ka_unit_id",
    "manager": "manager_id",
    "mentor": "mentor_id",
    "dirut": "dirut_id",
}


@router.post("/manage-team")
def manage_team(
    payload: ManageTeamIn,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> dict:
    """Add employees to, or remove them from, a supervisor's team."""
    column = RELATION_COLUMNS[payload.role]

    if get_employee(db, payload.supervisor_id) is None:
        raise NotFound("Supervisor not found")
    actor_row = get_employee(db, actor.id)
    actor_hospital_id = actor_row.hospital_id if actor_row is not None else None

    ids = sorted(set(payload.employee_ids))
    members = list(db.scalars(select(Employee).where(Employee.id.in_(ids))).all())
    missing = set(ids) - {m.id for m in members}
    if missing:
        raise NotFound(f"Employee not found: {', '.join(sorted(missing))}")

    for member in members:
        if not can_manage_team_member(actor, as_target(member), payload.role, payload.supervisor_id, actor_hospital_id):
            raise AuthorizationDenied(f"You cannot manage the team assignment of {member.id}")

    changed = 0
    for member in members:
        if payload.action == "add":
            setattr(member, column, payload.supervisor_id)
            changed += 1
        elif getattr(member, column) == payload.supervisor_id:
            # Only detach members that actually report to this supervisor.
            setattr(member, column, None)
            changed += 1
    db.commit()

    logger.info(
        "Team %s actor=%s supervisor=%s relation=%s employees=%s",
        payload.action,
        actor.id,
        payload.supervisor_id,
        payload.role,
        ids,
    )
    verb = "added" if payload.action == "add" else "removed"
    return {"success": True, "message": f"Team members {verb} successfully", "updated": changed}

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import delete, or_, select, update
from sqlalchemy.orm import Session

from mutabaah.db.session import get_db, get_service_db
from mutabaah.errors import ValidationError
from mutabaah.models.messaging import Notification
from mutabaah.models.security import Employee
from mutabaah.schemas.messaging import NotificationAction, NotificationOut
from mutabaah.security.context import Actor
from mutabaah.security.dependencies import get_actor
from mutabaah.security.policy import Role
from mutabaah.services.employees import authorize_for_employee

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


def _restrict_to_actor(stmt, actor: Actor):
    """
    Limit a bulk UPDATE/DELETE to rows the actor may touch.

    Users: their own rows. Admins: their own rows plus users in their
    hospitals. Super admins: everything.
    """
    if actor.role is Role.SUPER_ADMIN:
        return stmt
    if actor.role is Role.ADMIN:
        in_scope = select(Employee.id).where(
            Employee.hospital_id.in_(sorted(actor.managed_hospital_ids)),
            Employee.role == Role.USER.value,
        )
        return stmt.where(or_(Notification.user_id == actor.id, Notification.user_id.in_(in_scope)))
    return stmt.where(Notification.user_id == actor.id)


@router.get("", response_model=list[NotificationOut])
def list_notifications(
    limit: int = Query(default=50, ge=1, le=500),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
) -> list[Notification]:
    stmt = (
        select(Notification)
        .where(Notification.user_id == actor.id)
        .order_by(Notification.timestamp.desc())
        .limit(limit)
    )
    return list(db.scalars(stmt).all())


@router.delete("")
def delete_notifications(
    user_id: str | None = Query(default=None, alias="userId"),
    ids: str | None = Query(default=None),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> dict:
    if ids:
        notification_ids = [i.strip() for i in ids.split(",") if i.strip()]
        if not notification_ids:
            raise ValidationError("Invalid or missing fields: ids")
        stmt = _restrict_to_actor(delete(Notification).where(Notification.id.in_(notification_ids)), actor)
        result = db.execute(stmt)
        db.commit()
        return {"success": True, "message": "Notifications deleted", "deleted": result.rowcount}

    if user_id:
        authorize_for_employee(db, actor, user_id)
        result = db.execute(delete(Notification).where(Notification.user_id == user_id))
        db.commit()
        return {"success": True, "message": "All notifications cleared", "deleted": result.rowcount}

    raise ValidationError("Invalid or missing fields: userId or ids")


@router.post("")
def notification_action(
    payload: NotificationAction,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> dict:
    if payload.action == "mark_read":
        stmt = update(Notification).where(Notification.id == payload.notification_id).values(is_read=True)
        result = db.execute(_restrict_to_actor(stmt, actor))
        db.commit()
        return {"success": True, "updated": result.rowcount}

    authorize_for_employee(db, actor, payload.user_id)
    result = db.execute(update(Notification).where(Notification.user_id == payload.user_id).values(is_read=True))
    db.commit()
    return {"success": True, "updated": result.rowcount}

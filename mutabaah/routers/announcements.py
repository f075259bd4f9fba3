from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from mutabaah.db.session import get_service_db
from mutabaah.errors import AuthorizationDenied, NotFound, ValidationError
from mutabaah.models.messaging import Announcement
from mutabaah.models.security import Hospital
from mutabaah.schemas.messaging import AnnouncementCreate, AnnouncementOut, AnnouncementScope, AnnouncementUpdate
from mutabaah.security.context import Actor
from mutabaah.security.dependencies import get_actor, require_admin
from mutabaah.security.policy import Role, Target, can_act_on_owned_resource
from mutabaah.services.employees import get_employee

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/announcements", tags=["announcements"])


def is_visible(announcement: Announcement, actor: Actor, hospital_id: str | None) -> bool:
    """
    Untargeted announcements reach everyone; targeted ones reach employees of
    those hospitals and admins managing any of them.
    """
    if actor.role is Role.SUPER_ADMIN or announcement.author_id == actor.id:
        return True
    targets = set(announcement.target_hospital_ids or ())
    if not targets:
        return True
    if hospital_id is not None and hospital_id in targets:
        return True
    return actor.role is Role.ADMIN and bool(targets & actor.managed_hospital_ids)


def _resolve_targets(db: Session, actor: Actor, requested: list[str] | None) -> tuple[list[str], list[str]]:
    """Return (ids, names). Admins are confined to, and default to, their managed hospitals."""
    if actor.role is Role.SUPER_ADMIN:
        ids = sorted(set(requested or ()))
    else:
        ids = sorted(set(requested)) if requested else sorted(actor.managed_hospital_ids)
        if not ids:
            raise AuthorizationDenied("You do not manage any hospital")
        outside = [h for h in ids if h not in actor.managed_hospital_ids]
        if outside:
            raise AuthorizationDenied("Target hospitals are outside your scope")

    if not ids:
        return [], []
    hospitals = {h.id: h.name for h in db.scalars(select(Hospital).where(Hospital.id.in_(ids))).all()}
    unknown = [h for h in ids if h not in hospitals]
    if unknown:
        raise ValidationError(f"Unknown hospitals: {', '.join(unknown)}")
    return ids, [hospitals[h] for h in ids]


def _owned_announcement(db: Session, actor: Actor, announcement_id: str, verb: str) -> Announcement:
    announcement = db.get(Announcement, announcement_id)
    if announcement is None:
        raise NotFound("Announcement not found")
    if not can_act_on_owned_resource(actor, Target(id=announcement.id, created_by=announcement.author_id)):
        raise AuthorizationDenied(f"You do not have permission to {verb} this announcement")
    return announcement


@router.get("", response_model=list[AnnouncementOut])
def list_announcements(
    scope: AnnouncementScope | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> list[Announcement]:
    me = get_employee(db, actor.id)
    hospital_id = me.hospital_id if me is not None else None

    stmt = select(Announcement).order_by(Announcement.timestamp.desc())
    if scope:
        stmt = stmt.where(Announcement.scope == scope)

    visible = [a for a in db.scalars(stmt).all() if is_visible(a, actor, hospital_id)]
    return visible[:limit]


@router.post("")
def create_announcement(
    payload: AnnouncementCreate,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_service_db),
) -> dict:
    ids, names = _resolve_targets(db, actor, payload.target_hospital_ids)
    announcement = Announcement(
        **payload.model_dump(exclude={"target_hospital_ids"}),
        author_id=actor.id,
        author_name=actor.name,
        timestamp=int(time.time() * 1000),
        target_hospital_ids=ids,
        target_hospital_names=names,
    )
    db.add(announcement)
    db.commit()
    db.refresh(announcement)
    logger.info("Announcement created actor=%s id=%s targets=%s", actor.id, announcement.id, ids)
    return {"success": True, "data": AnnouncementOut.model_validate(announcement)}


@router.patch("/{announcement_id}")
def update_announcement(
    announcement_id: str,
    payload: AnnouncementUpdate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> dict:
    announcement = _owned_announcement(db, actor, announcement_id, "update")
    updates = payload.model_dump(exclude_unset=True)

    for field in ("title", "content", "scope"):
        if field in updates and updates[field] is None:
            raise ValidationError(f"Invalid or missing fields: {field}")

    if "target_hospital_ids" in updates:
        ids, names = _resolve_targets(db, actor, updates.pop("target_hospital_ids"))
        announcement.target_hospital_ids = ids
        announcement.target_hospital_names = names
    for field, value in updates.items():
        setattr(announcement, field, value)
    db.commit()
    db.refresh(announcement)
    return {"success": True, "data": AnnouncementOut.model_validate(announcement)}


@router.delete("/{announcement_id}")
def delete_announcement(
    announcement_id: str,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> dict:
    announcement = _owned_announcement(db, actor, announcement_id, "delete")
    db.delete(announcement)
    db.commit()
    return {"success": True}

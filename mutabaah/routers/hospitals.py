from __future__ import annotations

import logging
import re

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from mutabaah.db.session import get_service_db
from mutabaah.errors import AuthorizationDenied, Conflict, NotFound, ValidationError
from mutabaah.models.security import Employee, Hospital
from mutabaah.schemas.employees import HospitalCreate, HospitalOut, HospitalUpdate
from mutabaah.security.context import Actor
from mutabaah.security.dependencies import get_actor, require_admin
from mutabaah.security.policy import is_in_scope, is_super_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/hospitals", tags=["hospitals"])


def hospital_id_from_brand(brand: str) -> str:
    """'RSIJ Sukapura' -> 'RSIJSUKAPURA'."""
    return re.sub(r"[^A-Za-z0-9]", "", brand).upper()


def _require_super_admin(actor: Actor) -> None:
    if not is_super_admin(actor):
        raise AuthorizationDenied("Super admin required")


@router.get("", response_model=list[HospitalOut])
def list_hospitals(actor: Actor = Depends(get_actor), db: Session = Depends(get_service_db)) -> list[Hospital]:
    return list(db.scalars(select(Hospital).order_by(Hospital.name)).all())


@router.post("", response_model=HospitalOut, status_code=status.HTTP_201_CREATED)
def create_hospital(
    payload: HospitalCreate,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_service_db),
) -> Hospital:
    _require_super_admin(actor)

    hospital_id = hospital_id_from_brand(payload.brand)
    if not hospital_id:
        raise ValidationError("Invalid or missing fields: brand")
    if db.get(Hospital, hospital_id) is not None:
        raise Conflict(f"Hospital {hospital_id} already exists")

    hospital = Hospital(id=hospital_id, **payload.model_dump())
    db.add(hospital)
    db.commit()
    db.refresh(hospital)
    logger.info("Hospital created actor=%s id=%s", actor.id, hospital.id)
    return hospital


@router.patch("/{hospital_id}", response_model=HospitalOut)
def update_hospital(
    hospital_id: str,
    payload: HospitalUpdate,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_service_db),
) -> Hospital:
    hospital = db.get(Hospital, hospital_id)
    if hospital is None or not is_in_scope(actor, hospital_id):
        raise NotFound("Hospital not found")

    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field in ("brand", "name", "is_active"):
            raise ValidationError(f"Invalid or missing fields: {field}")
        setattr(hospital, field, value)
    db.commit()
    db.refresh(hospital)
    return hospital


@router.delete("/{hospital_id}")
def delete_hospital(
    hospital_id: str,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_service_db),
) -> dict:
    _require_super_admin(actor)

    hospital = db.get(Hospital, hospital_id)
    if hospital is None:
        raise NotFound("Hospital not found")

    in_use = db.execute(select(Employee.id).where(Employee.hospital_id == hospital_id).limit(1)).first()
    if in_use is not None:
        raise Conflict("Hospital still has employees")

    db.delete(hospital)
    db.commit()
    logger.info("Hospital deleted actor=%s id=%s", actor.id, hospital_id)
    return {"success": True}

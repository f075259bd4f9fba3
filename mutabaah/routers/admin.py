from __future__ import annotations

import logging
import secrets

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from mutabaah.db.session import get_service_db
from mutabaah.errors import AuthorizationDenied, ValidationError
from mutabaah.models.security import Hospital
from mutabaah.schemas.employees import AdminEmployeeCreate, EmployeeOut
from mutabaah.security.context import Actor
from mutabaah.security.dependencies import require_admin
from mutabaah.security.policy import assignable_roles, can_assign_hospital_scope, is_in_scope, is_super_admin
from mutabaah.services.registration import create_account

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/employees", status_code=status.HTTP_201_CREATED)
def create_employee(
    payload: AdminEmployeeCreate,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_service_db),
) -> dict:
    """
    Provision an employee account (identity + profile).

    Admins can only create ``user`` accounts in hospitals they manage. When no
    password is supplied a temporary one is generated, returned once, and the
    employee must change it at first login.
    """

    if payload.role not in assignable_roles(actor):
        raise AuthorizationDenied(f"You cannot create accounts with role {payload.role.value}")

    if payload.managed_hospital_ids and not can_assign_hospital_scope(actor):
        raise AuthorizationDenied("Only super admins can assign managed hospitals")

    if not is_super_admin(actor) and not is_in_scope(actor, payload.hospital_id):
        raise AuthorizationDenied("Hospital is outside your scope")

    if payload.hospital_id is not None and db.get(Hospital, payload.hospital_id) is None:
        raise ValidationError("Unknown hospital")

    temporary_password = None
    password = payload.password
    if not password:
        temporary_password = secrets.token_urlsafe(9)
        password = temporary_password

    employee = create_account(
        db,
        email=payload.email,
        password=password,
        employee_id=payload.id,
        metadata={"name": payload.name, "created_by": actor.id},
        profile={
            "name": payload.name,
            "role": payload.role.value,
            "is_active": True,
            "hospital_id": payload.hospital_id,
            "managed_hospital_ids": list(payload.managed_hospital_ids),
            "unit": payload.unit,
            "bagian": payload.bagian,
            "profession_category": payload.profession_category,
            "profession": payload.profession,
            "gender": payload.gender,
            "must_change_password": True,
            "email_verified": True,
        },
    )

    logger.info("Employee provisioned actor=%s target=%s role=%s", actor.id, employee.id, employee.role)
    return {
        "success": True,
        "data": EmployeeOut.model_validate(employee),
        "temporaryPassword": temporary_password,
    }

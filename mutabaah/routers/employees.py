from __future__ import annotations

import logging
import math

from fastapi import APIRouter, Depends, Query
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.orm import Session

from mutabaah.db.session import get_db, get_service_db
from mutabaah.errors import AuthorizationDenied, NotFound, ValidationError
from mutabaah.models.activity import AttendanceRecord
from mutabaah.models.mentoring import MonthActivation, MonthlyReport
from mutabaah.models.messaging import Notification
from mutabaah.models.security import Employee, Identity
from mutabaah.schemas.employees import (
    PROTECTED_EMPLOYEE_FIELDS,
    BulkEmployeesIn,
    EmployeeOut,
    EmployeePage,
    EmployeeUpdate,
    Pagination,
)
from mutabaah.security.context import Actor
from mutabaah.security.dependencies import get_actor, require_admin
from mutabaah.security.policy import (
    Role,
    can_assign_hospital_scope,
    can_delete_resource,
    can_modify_profile,
    can_move_employee,
    is_admin,
    is_in_scope,
    resolve_hospital_filter,
    validate_role_change,
)
from mutabaah.services.employees import apply_hospital_filter, as_target, get_employee

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/employees", tags=["employees"])

# Columns that must not be nulled through a partial update.
_NON_NULLABLE = frozenset(
    {"name", "role", "is_active", "managed_hospital_ids", "notification_enabled", "is_profile_complete"}
)


@router.get("", response_model=list[EmployeeOut])
def list_employees(
    limit: int = Query(default=1000, ge=1, le=5000),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
) -> list[Employee]:
    # Lists cover managed hospitals only, even though an admin can always fetch their own row.
    stmt = apply_hospital_filter(select(Employee), resolve_hospital_filter(actor), actor)
    return list(db.scalars(stmt.order_by(Employee.name).limit(limit)).all())


@router.get("/paginated", response_model=EmployeePage)
def list_employees_paginated(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=15, ge=1, le=100),
    search: str | None = Query(default=None, max_length=100),
    hospital_id: str | None = Query(default=None, alias="hospitalId"),
    role: Role | None = Query(default=None),
    is_active: bool | None = Query(default=None, alias="isActive"),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
) -> EmployeePage:
    hospital_filter = resolve_hospital_filter(actor, hospital_id)
    if hospital_id and hospital_filter.hospital_ids is not None and hospital_id not in hospital_filter.hospital_ids:
        logger.info("Hospital filter narrowed to managed set actor=%s requested=%s", actor.id, hospital_id)

    stmt = apply_hospital_filter(select(Employee), hospital_filter, actor)
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(or_(Employee.name.ilike(pattern), Employee.id.ilike(pattern), Employee.email.ilike(pattern)))
    if role is not None:
        stmt = stmt.where(Employee.role == role.value)
    if is_active is not None:
        stmt = stmt.where(Employee.is_active.is_(is_active))

    total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
    rows = db.scalars(stmt.order_by(Employee.name).offset((page - 1) * limit).limit(limit)).all()

    total_pages = math.ceil(total / limit) if total else 0
    return EmployeePage(
        employees=[EmployeeOut.model_validate(e) for e in rows],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            totalPages=total_pages,
            hasNext=page < total_pages,
            hasPrev=page > 1,
        ),
    )


@router.post("/bulk", response_model=list[EmployeeOut])
def bulk_employees(payload: BulkEmployeesIn, db: Session = Depends(get_db)) -> list[Employee]:
    ids = sorted(set(payload.ids))
    return list(db.scalars(select(Employee).where(Employee.id.in_(ids)).order_by(Employee.name)).all())


@router.post("/update")
def update_employee(
    payload: EmployeeUpdate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> dict:
    target_id = payload.id or actor.id
    updates = payload.model_dump(exclude_unset=True, exclude={"id"})

    for field in _NON_NULLABLE & updates.keys():
        if updates[field] is None:
            raise ValidationError(f"Invalid or missing fields: {field}")

    employee = get_employee(db, target_id)
    if target_id != actor.id:
        if not is_admin(actor):
            raise AuthorizationDenied()
        if employee is None or not is_in_scope(actor, employee.hospital_id):
            raise NotFound("Employee not found")
    elif employee is None:
        raise NotFound("Employee not found")

    target = as_target(employee)
    if not can_modify_profile(actor, target):
        raise AuthorizationDenied("You do not have permission to edit this employee")

    protected = PROTECTED_EMPLOYEE_FIELDS & updates.keys()
    if protected:
        _check_protected_update(actor, employee, updates)

    if not updates:
        return {"success": True, "message": "No fields to update"}

    if "role" in updates:
        updates["role"] = Role(updates["role"]).value
    for field, value in updates.items():
        setattr(employee, field, value)
    db.commit()
    db.refresh(employee)

    if protected:
        logger.info("Protected employee fields changed actor=%s target=%s fields=%s", actor.id, employee.id, sorted(protected))
    return {"success": True, "data": EmployeeOut.model_validate(employee)}


def _check_protected_update(actor: Actor, employee: Employee, updates: dict) -> None:
    if not is_admin(actor):
        raise AuthorizationDenied("Only admins can change role, status or hospital")

    target = as_target(employee)

    if "role" in updates and updates["role"] != employee.role:
        reason = validate_role_change(actor, target, updates["role"])
        if reason:
            raise AuthorizationDenied(reason)

    if "managed_hospital_ids" in updates and not can_assign_hospital_scope(actor):
        raise AuthorizationDenied("Only super admins can assign managed hospitals")

    new_hospital = updates.get("hospital_id", employee.hospital_id)
    if "hospital_id" in updates and new_hospital != employee.hospital_id:
        if not can_move_employee(actor, employee.hospital_id, new_hospital):
            raise AuthorizationDenied("You can only move employees between hospitals you manage")

    if "is_active" in updates and employee.id == actor.id and updates["is_active"] is False:
        raise AuthorizationDenied("You cannot deactivate your own account")


@router.get("/{employee_id}", response_model=EmployeeOut)
def get_employee_by_id(employee_id: str, db: Session = Depends(get_db)) -> Employee:
    employee = get_employee(db, employee_id)
    if employee is None:
        # Out-of-scope rows are invisible on the scoped client, so they look missing too.
        raise NotFound("Employee not found")
    return employee


@router.delete("/{employee_id}")
def delete_employee(
    employee_id: str,
    actor: Actor = Depends(require_admin),
    db: Session = Depends(get_service_db),
) -> dict:
    employee = get_employee(db, employee_id)
    if employee is None or not (employee.id == actor.id or is_in_scope(actor, employee.hospital_id)):
        raise NotFound("Employee not found")

    if not can_delete_resource(actor, as_target(employee)):
        raise AuthorizationDenied("You do not have permission to delete this employee")

    auth_user_id = employee.auth_user_id
    db.execute(delete(AttendanceRecord).where(AttendanceRecord.employee_id == employee.id))
    db.execute(delete(Notification).where(Notification.user_id == employee.id))
    db.execute(delete(MonthActivation).where(MonthActivation.employee_id == employee.id))
    db.execute(delete(MonthlyReport).where(MonthlyReport.employee_id == employee.id))
    for column in (
        Employee.mentor_id,
        Employee.supervisor_id,
        Employee.manager_id,
        Employee.ka_unit_id,
        Employee.dirut_id,
    ):
        db.execute(update(Employee).where(column == employee.id).values({column.key: None}))
    db.delete(employee)
    db.flush()
    if auth_user_id:
        db.execute(delete(Identity).where(Identity.id == auth_user_id))
    db.commit()

    logger.info("Employee deleted actor=%s target=%s", actor.id, employee_id)
    return {"success": True}

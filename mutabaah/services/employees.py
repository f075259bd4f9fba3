from __future__ import annotations

from sqlalchemy import Select, false, or_, select
from sqlalchemy.orm import Session

from mutabaah.errors import AuthorizationDenied, NotFound
from mutabaah.models.security import Employee
from mutabaah.security.context import Actor
from mutabaah.security.policy import (
    HospitalFilter,
    Target,
    can_act_for_employee,
    can_view_employee_report,
    is_admin,
    is_in_scope,
)
from mutabaah.tokens import SessionClaims


def find_by_identifier(db: Session, identifier: str) -> Employee | None:
    """Look up an employee by NIP or email."""
    ident = identifier.strip()
    return db.execute(
        select(Employee).where(or_(Employee.id == ident, Employee.email == ident.lower())).limit(1)
    ).scalar_one_or_none()


def get_employee(db: Session, employee_id: str) -> Employee | None:
    return db.execute(select(Employee).where(Employee.id == employee_id)).scalar_one_or_none()


def as_target(employee: Employee) -> Target:
    return Target(
        id=employee.id,
        role=employee.role,
        hospital_id=employee.hospital_id,
        overseen_by=reporting_line(employee),
    )


def reporting_line(employee: Employee) -> frozenset[str]:
    ids = (employee.mentor_id, employee.supervisor_id, employee.manager_id, employee.ka_unit_id, employee.dirut_id)
    return frozenset(i for i in ids if i)


def claims_for(employee: Employee) -> SessionClaims:
    """Session snapshot for an employee. The NIP is the employee id."""
    return SessionClaims(
        user_id=employee.id,
        email=employee.email,
        name=employee.name,
        nip=employee.id,
        role=employee.role,
        managed_hospital_ids=tuple(employee.managed_hospital_ids or ()),
    )


def apply_hospital_filter(stmt: Select, hospital_filter: HospitalFilter, actor: Actor) -> Select:
    if hospital_filter.self_only:
        return stmt.where(Employee.id == actor.id)
    if hospital_filter.hospital_ids is None:
        return stmt
    if not hospital_filter.hospital_ids:
        return stmt.where(false())
    return stmt.where(Employee.hospital_id.in_(sorted(hospital_filter.hospital_ids)))


def authorize_for_employee(db: Session, actor: Actor, employee_id: str) -> None:
    """
    Self always; otherwise an admin acting on someone they outrank.

    Employees outside the admin's hospitals are reported as missing (404);
    peers and super-admins inside them are refused (403).
    """
    if employee_id == actor.id:
        return
    if not is_admin(actor):
        raise AuthorizationDenied("You can only manage your own records")
    employee = get_employee(db, employee_id)
    if employee is None or not is_in_scope(actor, employee.hospital_id):
        raise NotFound("Employee not found")
    if not can_act_for_employee(actor, as_target(employee)):
        raise AuthorizationDenied("Admins can only manage records of users")


def authorize_report_view(db: Session, actor: Actor, employee_id: str) -> None:
    """Self, an admin in scope, or someone on the employee's reporting line."""
    if employee_id == actor.id:
        return
    employee = get_employee(db, employee_id)
    if employee is None:
        raise NotFound("Employee not found")
    if can_view_employee_report(actor, as_target(employee)):
        return
    if is_admin(actor):
        raise NotFound("Employee not found")
    raise AuthorizationDenied("You do not have permission to view this data")

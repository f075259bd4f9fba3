"""
Two-step account creation: identity first, then the employee profile.

The two inserts are committed separately (mirroring an external identity
provider), so a failed profile insert is compensated by deleting the identity.
The compensation runs once; if it also fails, both errors are reported.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from mutabaah.errors import Conflict, RegistrationFailed, store_error_from
from mutabaah.models.security import Employee, Identity
from mutabaah.security.passwords import hash_password

logger = logging.getLogger(__name__)


def email_taken(db: Session, email: str) -> bool:
    in_employees = db.execute(select(Employee.id).where(Employee.email == email).limit(1)).first()
    if in_employees is not None:
        return True
    return db.execute(select(Identity.id).where(Identity.email == email).limit(1)).first() is not None


def register_self(db: Session, *, email: str, password: str, name: str) -> Employee:
    """
    Public self-registration.

    The new account is inactive until an admin approves it, and its profile is
    marked incomplete.
    """

    return create_account(
        db,
        email=email,
        password=password,
        metadata={"name": name, "registered_at": datetime.now(timezone.utc).isoformat()},
        profile={
            "name": name,
            "role": "user",
            "is_active": False,
            "is_profile_complete": False,
            "email_verified": True,
        },
    )


def create_account(
    db: Session,
    *,
    email: str,
    password: str,
    profile: dict[str, Any],
    employee_id: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> Employee:
    """
    Create identity + employee.

    ``employee_id`` is the NIP for admin-provisioned staff; self-registered
    accounts reuse the identity id.
    """

    if email_taken(db, email):
        raise Conflict("Email is already registered")
    if employee_id is not None and _employee_exists(db, employee_id):
        raise Conflict("NIP is already registered")

    password_hash = hash_password(password)

    try:
        identity = _create_identity(db, email=email, password_hash=password_hash, metadata=metadata or {})
    except IntegrityError as e:
        db.rollback()
        raise Conflict("Email is already registered") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Identity creation failed email_domain=%s", email.rpartition("@")[2])
        raise store_error_from(e) from e

    identity_id = identity.id
    fields = {
        **profile,
        "id": employee_id or identity_id,
        "email": email,
        "password_hash": password_hash,
        "auth_user_id": identity_id,
    }
    try:
        return _create_profile(db, fields)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Profile creation failed; removing identity id=%s", identity_id)
        rollback_error = _compensate(db, identity_id)
        if rollback_error is not None:
            raise RegistrationFailed(primary_error=str(e), rollback_error=rollback_error) from e
        if isinstance(e, IntegrityError):
            raise Conflict("Employee already exists") from e
        raise RegistrationFailed(primary_error=str(e)) from e


def _employee_exists(db: Session, employee_id: str) -> bool:
    return db.execute(select(Employee.id).where(Employee.id == employee_id).limit(1)).first() is not None


def _create_identity(db: Session, *, email: str, password_hash: str, metadata: dict[str, Any]) -> Identity:
    identity = Identity(email=email, password_hash=password_hash, user_metadata=metadata)
    db.add(identity)
    db.commit()
    db.refresh(identity)
    return identity


def _create_profile(db: Session, fields: dict[str, Any]) -> Employee:
    employee = Employee(**fields)
    db.add(employee)
    db.commit()
    db.refresh(employee)
    return employee


def _delete_identity(db: Session, identity_id: str) -> None:
    db.execute(delete(Identity).where(Identity.id == identity_id))
    db.commit()


def _compensate(db: Session, identity_id: str) -> str | None:
    """Delete the orphaned identity. Returns the rollback error message, if any."""
    try:
        _delete_identity(db, identity_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Identity rollback failed id=%s: %s", identity_id, e)
        return str(e)
    return None

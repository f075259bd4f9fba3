from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy import update
from sqlalchemy.orm import Session

from mutabaah.db.session import get_auth_db, get_service_db
from mutabaah.errors import AuthenticationMissing, AuthorizationDenied, NotFound, ValidationError
from mutabaah.models.security import Identity
from mutabaah.schemas.auth import ChangePasswordIn, LoginIn, RegisterIn
from mutabaah.schemas.employees import EmployeeOut
from mutabaah.security.context import Actor
from mutabaah.security.dependencies import get_actor, require_session
from mutabaah.security.passwords import hash_password, verify_password
from mutabaah.security.session_cookie import clear_session_cookie, get_session, get_token_codec, set_session_cookie
from mutabaah.services.employees import claims_for, find_by_identifier, get_employee
from mutabaah.services.registration import register_self
from mutabaah.tokens import Session as AuthSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

INVALID_CREDENTIALS = "Invalid NIP/email or password"


@router.post("/login")
def login(payload: LoginIn, request: Request, response: Response, db: Session = Depends(get_auth_db)) -> dict:
    employee = find_by_identifier(db, payload.identifier)
    if employee is None or not verify_password(payload.password, employee.password_hash):
        logger.info("Login failed path=%s", request.url.path)
        raise AuthenticationMissing(INVALID_CREDENTIALS)

    if not employee.is_active:
        logger.info("Login refused for inactive account id=%s", employee.id)
        raise AuthorizationDenied("Account is deactivated. Contact an admin.")

    token = get_token_codec(request.app).issue(claims_for(employee))
    set_session_cookie(response, token)
    logger.info("Login ok id=%s role=%s", employee.id, employee.role)
    return {"success": True, "employee": EmployeeOut.model_validate(employee)}


@router.post("/logout")
def logout(response: Response) -> dict:
    clear_session_cookie(response)
    return {"success": True}


@router.get("/me")
def me(actor: Actor = Depends(get_actor), db: Session = Depends(get_service_db)) -> dict:
    employee = get_employee(db, actor.id)
    if employee is None:
        raise NotFound("Employee not found")
    return {"employee": EmployeeOut.model_validate(employee)}


@router.post("/refresh")
def refresh(request: Request, response: Response, session: AuthSession = Depends(require_session)) -> dict:
    """
    Re-issue the session with the same claims and a fresh expiry.

    Claims are copied from the current token; role or scope changes made since
    login are picked up only by logging in again.
    """

    codec = get_token_codec(request.app)
    now = time.time()
    token = codec.reissue(session, now=now)
    set_session_cookie(response, token)
    return {"success": True, "expiresAt": int(now) + codec.ttl_seconds}


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterIn, db: Session = Depends(get_auth_db)) -> dict:
    employee = register_self(db, email=payload.email, password=payload.password, name=payload.name)
    logger.info("Self-registration created id=%s (pending approval)", employee.id)
    return {
        "success": True,
        "message": "Registration succeeded. Your account is waiting for admin approval.",
        "user": {"id": employee.id, "email": employee.email, "name": employee.name},
        "redirect": "/login",
    }


@router.get("/verify")
def verify(request: Request, db: Session = Depends(get_auth_db)) -> dict:
    session = get_session(request)
    if session is None:
        raise AuthenticationMissing()

    employee = get_employee(db, session.user_id)
    if employee is None:
        raise AuthenticationMissing()
    if not employee.is_active:
        raise AuthorizationDenied("Account is deactivated")
    return {"valid": True, "employee": EmployeeOut.model_validate(employee)}


@router.post("/change-password")
def change_password(
    payload: ChangePasswordIn,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_service_db),
) -> dict:
    employee = get_employee(db, actor.id)
    if employee is None:
        raise NotFound("Employee not found")
    if not verify_password(payload.old_password, employee.password_hash):
        raise ValidationError("Old password is incorrect")

    new_hash = hash_password(payload.new_password)
    employee.password_hash = new_hash
    employee.must_change_password = False
    if employee.auth_user_id:
        db.execute(update(Identity).where(Identity.id == employee.auth_user_id).values(password_hash=new_hash))
    db.commit()
    logger.info("Password changed id=%s", employee.id)
    return {"success": True}

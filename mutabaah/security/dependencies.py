from __future__ import annotations

from fastapi import Depends, Request

from mutabaah.errors import AuthenticationMissing, AuthorizationDenied
from mutabaah.security.config import SecurityConfig
from mutabaah.security.context import Actor
from mutabaah.security.policy import is_admin
from mutabaah.security.session_cookie import get_session
from mutabaah.tokens import Session


def get_security_config(request: Request) -> SecurityConfig:
    config = getattr(request.app.state, "security_config", None)
    if config is None:
        raise RuntimeError("Security config not loaded. Did app startup run?")
    return config


def require_session(request: Request) -> Session:
    """
    Step 1 of every protected handler: a verified session or 401.

    Never reveals whether the cookie was missing, tampered with or expired.
    """

    session = get_session(request)
    if session is None:
        raise AuthenticationMissing()
    return session


def get_actor(request: Request, session: Session = Depends(require_session)) -> Actor:
    actor = getattr(request.state, "actor", None)
    if actor is None:
        actor = Actor.from_session(session)
        request.state.actor = actor
    return actor


def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    """Step 2 for admin-only actions."""

    if not is_admin(actor):
        raise AuthorizationDenied("Higher privilege required")
    return actor

from __future__ import annotations

from collections.abc import Generator

from fastapi import Depends, Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from mutabaah.security.context import Actor
from mutabaah.security.dependencies import get_actor
from mutabaah.security.session_cookie import get_session
from mutabaah.settings import get_settings


_settings = get_settings()

engine = create_engine(
    _settings.resolved_db_url(),
    connect_args={"check_same_thread": False} if _settings.resolved_db_url().startswith("sqlite") else {},
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, class_=Session)


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Scoped DB dependency (the row-level-security client).

    Every ORM select on this session goes through the scope filters in
    ``mutabaah.db.filters``: employees limited to the actor's hospitals (or own
    row), notifications limited to the actor's own rows. Without a session the
    scoped tables read as empty.
    """

    db = SessionLocal()
    try:
        session = get_session(request)
        db.info["scoped"] = True
        db.info["actor"] = Actor.from_session(session) if session is not None else None
        yield db
    finally:
        db.close()


def get_service_db(actor: Actor = Depends(get_actor)) -> Generator[Session, None, None]:
    """
    Elevated DB dependency: no scope filters.

    Only obtainable behind an authenticated actor; handlers still run their
    role/scope/ownership checks before writing through it.
    """

    db = SessionLocal()
    try:
        db.info["actor"] = actor
        yield db
    finally:
        db.close()


def get_auth_db() -> Generator[Session, None, None]:
    """Unscoped session for the public credential flows (login, register, verify)."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

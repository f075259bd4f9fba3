"""
Session accessor: bridges the request cookie to the token codec.

``get_session`` never raises; a missing, invalid or expired cookie simply means
"no session". Cookie writes replace any earlier session cookie on the same
response, so setting or clearing twice leaves exactly one header.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from starlette.responses import Response

from mutabaah.settings import Settings, get_settings
from mutabaah.tokens import Session, TokenCodec, Valid

logger = logging.getLogger(__name__)

_UNRESOLVED = object()


def get_token_codec(app: FastAPI) -> TokenCodec:
    codec = getattr(app.state, "token_codec", None)
    if codec is None:
        raise RuntimeError("Token codec not configured. Did app startup run?")
    return codec


def get_session(request: Request) -> Session | None:
    """
    Return the verified session for this request, or None.

    The result is memoized on ``request.state`` so the gate and the handlers
    verify the cookie once per request.
    """

    cached = getattr(request.state, "session", _UNRESOLVED)
    if cached is not _UNRESOLVED:
        return cached

    session: Session | None = None
    token = request.cookies.get(get_settings().session_cookie_name)
    if token:
        try:
            result = get_token_codec(request.app).verify(token)
        except Exception:
            # Fail closed: a broken codec means nobody is authenticated.
            logger.exception("Session verification failed path=%s", request.url.path)
            result = None
        if isinstance(result, Valid):
            session = result.session

    request.state.session = session
    return session


def set_session_cookie(response: Response, token: str, settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    _write_cookie(response, token, settings.session_ttl_seconds, settings)


def clear_session_cookie(response: Response, settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    _write_cookie(response, "", 0, settings)


def _write_cookie(response: Response, value: str, max_age: int, settings: Settings) -> None:
    name = settings.session_cookie_name
    prefix = f"{name}=".encode("latin-1")
    # In place: Response.headers keeps a view over this same list.
    response.raw_headers[:] = [
        (key, val) for key, val in response.raw_headers if not (key == b"set-cookie" and val.startswith(prefix))
    ]
    response.set_cookie(
        name,
        value,
        max_age=max_age,
        path="/",
        secure=settings.is_production,
        httponly=True,
        samesite="lax",
    )

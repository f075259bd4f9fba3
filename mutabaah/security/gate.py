"""
Request gate: coarse allow / deny / redirect before any handler runs.

The decision depends only on "is there a valid session" and the static route
classification in ``GateRules``. Per-record authorization is left to the
handlers and the role policy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from fastapi import Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.responses import Response

from mutabaah.security.config import GateRules
from mutabaah.security.dependencies import get_security_config
from mutabaah.security.session_cookie import get_session

logger = logging.getLogger(__name__)


class GateAction(str, Enum):
    PASS = "pass"
    UNAUTHORIZED = "unauthorized"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class GateDecision:
    action: GateAction
    location: str | None = None


PASS = GateDecision(GateAction.PASS)


def decide(path: str, authenticated: bool, rules: GateRules) -> GateDecision:
    # API paths are classified before the asset rule so a dot in an id can't skip auth.
    if rules.is_api(path):
        if rules.is_public_api(path) or authenticated:
            return PASS
        return GateDecision(GateAction.UNAUTHORIZED)

    if rules.is_static(path) or rules.is_public_page(path):
        return PASS

    if not authenticated and path != rules.login_path:
        return GateDecision(GateAction.REDIRECT, rules.login_path)

    if authenticated and path == rules.login_path:
        return GateDecision(GateAction.REDIRECT, rules.landing_path)

    return PASS


def _is_authenticated(request: Request) -> bool:
    try:
        return get_session(request) is not None
    except Exception:
        logger.exception("Session lookup failed in gate path=%s", request.url.path)
        return False


async def request_gate(request: Request, call_next) -> Response:
    """HTTP middleware applying ``decide`` to every inbound request."""

    rules = get_security_config(request).gate
    path = request.url.path

    if not rules.is_api(path) and rules.is_static(path):
        return await call_next(request)

    decision = decide(path, _is_authenticated(request), rules)

    if decision.action is GateAction.UNAUTHORIZED:
        logger.info("Gate rejected unauthenticated API request path=%s method=%s", path, request.method)
        return JSONResponse({"error": "Unauthorized"}, status_code=status.HTTP_401_UNAUTHORIZED)

    if decision.action is GateAction.REDIRECT:
        return RedirectResponse(url=str(request.url.replace(path=decision.location, query="")))

    return await call_next(request)

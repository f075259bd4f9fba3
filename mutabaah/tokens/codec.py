"""
Issue and verify signed session tokens.

A session token is an HS256 JWT whose payload is the ``SessionClaims`` snapshot
plus ``iat``/``exp``. Verification never raises: it returns ``Valid(session)``
or ``Invalid(reason)`` so callers fail closed by construction. The reason is
for server-side logs only and must not be echoed to clients.

Before the signature is checked, every segment must be canonical base64url.
Python's decoder ignores trailing pad bits and stray characters, which would
otherwise let a modified token verify.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Union

import jwt
from jwt.utils import base64url_decode, base64url_encode

from mutabaah.settings import Settings

from .claims import Session, SessionClaims
from .config import TokenConfig

logger = logging.getLogger(__name__)

# Tolerance for tokens whose iat is slightly ahead of our clock.
CLOCK_SKEW_SECONDS = 60

_SEGMENT_RE = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass(frozen=True)
class Valid:
    session: Session


@dataclass(frozen=True)
class Invalid:
    reason: str


VerifyResult = Union[Valid, Invalid]


def _is_canonical(token: str) -> bool:
    parts = token.split(".")
    if len(parts) != 3:
        return False
    for part in parts:
        if not _SEGMENT_RE.match(part):
            return False
        try:
            if base64url_encode(base64url_decode(part)) != part.encode("ascii"):
                return False
        except Exception:
            return False
    return True


class TokenCodec:
    """
    Stateless codec: a pure function of the secret, the payload and the clock.

    ``clock`` returns epoch seconds; tests inject a fixed one to check the
    expiry boundary.
    """

    def __init__(self, config: TokenConfig, clock: Callable[[], float] = time.time) -> None:
        self._config = config
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenCodec:
        """Raises ConfigurationError in production when no secret is configured."""
        return cls(TokenConfig.from_settings(settings))

    @property
    def ttl_seconds(self) -> int:
        return self._config.ttl_seconds

    def issue(self, claims: SessionClaims, *, now: float | None = None) -> str:
        issued_at = int(self._clock() if now is None else now)
        payload = {
            **claims.to_payload(),
            "iat": issued_at,
            "exp": issued_at + self._config.ttl_seconds,
        }
        return jwt.encode(payload, self._config.secret, algorithm=self._config.algorithm)

    def reissue(self, session: Session, *, now: float | None = None) -> str:
        """Same claims, fresh issued-at and expiry."""
        return self.issue(session.claims, now=now)

    def verify(self, token: str | None, *, now: float | None = None) -> VerifyResult:
        if not token or not isinstance(token, str):
            return Invalid("empty token")
        if not _is_canonical(token):
            logger.debug("Token rejected: non-canonical encoding")
            return Invalid("malformed token")

        try:
            payload = jwt.decode(
                token,
                self._config.secret,
                algorithms=[self._config.algorithm],
                options={
                    "verify_signature": True,
                    # Lifetime is checked below against the injectable clock.
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": ["iat", "exp"],
                },
            )
        except jwt.InvalidTokenError as e:
            logger.info("Token invalid: %s", type(e).__name__)
            return Invalid("invalid token")
        except Exception as e:
            logger.warning("Token verification error: %s", type(e).__name__)
            return Invalid("invalid token")

        issued_at = payload.get("iat")
        expires_at = payload.get("exp")
        if not isinstance(issued_at, (int, float)) or not isinstance(expires_at, (int, float)):
            return Invalid("invalid lifetime claims")

        current = self._clock() if now is None else now
        if current >= expires_at:
            logger.info("Token expired")
            return Invalid("token expired")
        if issued_at > current + CLOCK_SKEW_SECONDS:
            logger.info("Token issued in the future")
            return Invalid("token not yet valid")

        try:
            claims = SessionClaims.from_payload(payload)
        except ValueError as e:
            logger.info("Token claims rejected: %s", e)
            return Invalid("invalid claims")

        return Valid(Session(claims=claims, issued_at=int(issued_at), expires_at=int(expires_at)))

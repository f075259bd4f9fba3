"""Signing configuration for session tokens, resolved from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from mutabaah.errors import ConfigurationError
from mutabaah.settings import Settings

logger = logging.getLogger(__name__)

DEV_FALLBACK_SECRET = "dev-fallback-secret-change-in-production"
ALGORITHM = "HS256"

_fallback_warned = False


@dataclass(frozen=True)
class TokenConfig:
    """
    Session token configuration.

    Required in production:
        JWT_SECRET (or APP_JWT_SECRET): HMAC signing secret.

    Optional:
        APP_SESSION_TTL_SECONDS: Session lifetime (default 8 hours). Claims inside a
            token are a snapshot taken at issuance and stay stale for at most this long.
    """

    secret: str
    ttl_seconds: int
    algorithm: str = ALGORITHM

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenConfig:
        return cls(secret=resolve_signing_secret(settings), ttl_seconds=settings.session_ttl_seconds)


def resolve_signing_secret(settings: Settings) -> str:
    """
    Return the configured secret.

    Production refuses to run without one. Elsewhere a fixed fallback is used so
    sessions survive restarts on a developer machine; a warning is logged once.
    """
    global _fallback_warned

    secret = (settings.jwt_secret or "").strip()
    if secret:
        return secret

    if settings.is_production:
        raise ConfigurationError("JWT_SECRET environment variable is required in production")

    if not _fallback_warned:
        _fallback_warned = True
        logger.warning("JWT_SECRET not set; using development fallback secret (never use this in production)")
    return DEV_FALLBACK_SECRET

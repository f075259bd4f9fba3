"""
Session token codec.

Create a ``TokenCodec`` from settings, ``issue()`` a token for a ``SessionClaims``
snapshot, and ``verify()`` it back into a ``Valid(session)`` or ``Invalid(reason)``.
"""

from .claims import Session, SessionClaims
from .codec import Invalid, TokenCodec, Valid, VerifyResult
from .config import TokenConfig, resolve_signing_secret

__all__ = [
    "Session",
    "SessionClaims",
    "TokenCodec",
    "TokenConfig",
    "Valid",
    "Invalid",
    "VerifyResult",
    "resolve_signing_secret",
]

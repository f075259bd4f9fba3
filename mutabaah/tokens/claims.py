"""Claim set carried inside a session token, and the verified session built from it."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from mutabaah.security.policy import Role


@dataclass(frozen=True)
class SessionClaims:
    """
    Identity snapshot taken at login.

    Serialized with the camelCase claim names used on the wire
    (``userId``, ``managedHospitalIds``) so existing cookies stay readable.
    """

    user_id: str
    email: str
    name: str
    nip: str
    role: str
    managed_hospital_ids: tuple[str, ...] = field(default_factory=tuple)

    def to_payload(self) -> dict[str, Any]:
        """Return the JWT payload (without iat/exp)."""
        return {
            "userId": self.user_id,
            "email": self.email,
            "name": self.name,
            "nip": self.nip,
            "role": self.role,
            "managedHospitalIds": list(self.managed_hospital_ids),
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> SessionClaims:
        """Build claims from a verified payload. Raises ValueError on a malformed claim set."""
        missing = [k for k in ("userId", "email", "name", "nip", "role") if not isinstance(payload.get(k), str)]
        if missing:
            raise ValueError(f"Missing claims: {missing}")
        # Raises ValueError for anything outside the closed role set.
        role = Role(payload["role"])

        raw_ids = payload.get("managedHospitalIds") or []
        if not isinstance(raw_ids, list):
            raise ValueError("managedHospitalIds must be a list")

        return cls(
            user_id=payload["userId"],
            email=payload["email"],
            name=payload["name"],
            nip=payload["nip"],
            role=role.value,
            managed_hospital_ids=tuple(str(h) for h in raw_ids),
        )


@dataclass(frozen=True)
class Session:
    """A verified session: the claims plus the token's lifetime (epoch seconds)."""

    claims: SessionClaims
    issued_at: int
    expires_at: int

    @property
    def user_id(self) -> str:
        return self.claims.user_id

    @property
    def role(self) -> str:
        return self.claims.role

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serializable dict."""
        return {
            **self.claims.to_payload(),
            "issuedAt": self.issued_at,
            "expiresAt": self.expires_at,
        }

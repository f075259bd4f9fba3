from __future__ import annotations

from dataclasses import dataclass

from mutabaah.security.policy import Role
from mutabaah.tokens import Session


@dataclass(frozen=True)
class Actor:
    """
    Per-request authorization context, built from the verified session.

    This is intentionally small so it can be attached to:
    - request.state (FastAPI request lifetime)
    - Session.info (SQLAlchemy session lifetime, read by the scope filters)

    The role and managed hospitals are the snapshot taken at login; changes made
    server-side show up only after re-login.
    """

    id: str
    nip: str
    name: str
    email: str
    role: Role
    managed_hospital_ids: frozenset[str]

    @classmethod
    def from_session(cls, session: Session) -> Actor:
        claims = session.claims
        return cls(
            id=claims.user_id,
            nip=claims.nip,
            name=claims.name,
            email=claims.email,
            role=Role(claims.role),
            managed_hospital_ids=frozenset(claims.managed_hospital_ids),
        )

"""
Role policy: pure authorization decisions, no I/O.

Roles form a strict total order (user < admin < super-admin). Orthogonal to the
role, an admin carries a set of managed hospital ids; super-admins are
unscoped. Self-identity checks run before any role comparison.

An admin with no managed hospitals sees and manages nothing. That is the
intended empty scope, not an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from mutabaah.security.context import Actor


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "super-admin"


ROLE_LEVELS: dict[Role, int] = {
    Role.USER: 1,
    Role.ADMIN: 50,
    Role.SUPER_ADMIN: 100,
}


@dataclass(frozen=True)
class Target:
    """Record being acted on. Only the fields a decision needs."""

    id: str
    role: str | None = None
    hospital_id: str | None = None
    created_by: str | None = None
    # Ids of the mentor, supervisor, manager, ka-unit and director the record reports to.
    overseen_by: frozenset[str] = frozenset()


@dataclass(frozen=True)
class HospitalFilter:
    """
    Result of list-query scope resolution.

    ``hospital_ids is None`` means unrestricted; an empty set means the query
    must return nothing; ``self_only`` limits the query to the actor's own row.
    """

    hospital_ids: frozenset[str] | None
    self_only: bool = False

    @property
    def matches_nothing(self) -> bool:
        return not self.self_only and self.hospital_ids is not None and not self.hospital_ids


def _as_role(role: Any) -> Role | None:
    if isinstance(role, Role):
        return role
    try:
        return Role(str(role).lower())
    except ValueError:
        return None


def role_level(role: Role | str | None) -> int:
    """user=1, admin=50, super-admin=100; anything else ranks below every role."""
    parsed = _as_role(role)
    return ROLE_LEVELS[parsed] if parsed else 0


def is_super_admin(actor: Actor | None) -> bool:
    return actor is not None and actor.role is Role.SUPER_ADMIN


def is_admin(actor: Actor | None) -> bool:
    """True for admin and super-admin."""
    return actor is not None and actor.role in (Role.ADMIN, Role.SUPER_ADMIN)


def assignable_roles(actor: Actor | None) -> list[Role]:
    if is_super_admin(actor):
        return [Role.SUPER_ADMIN, Role.ADMIN, Role.USER]
    if is_admin(actor):
        return [Role.USER]
    return []


def can_modify_role(actor: Actor | None, target: Target, new_role: Role | str) -> bool:
    if actor is None:
        return False
    if actor.role is Role.SUPER_ADMIN:
        # Self-protection is the caller's job (see validate_role_change).
        return True
    if actor.role is Role.ADMIN:
        return _as_role(target.role) is Role.USER and _as_role(new_role) is Role.USER
    return False


def can_delete_resource(actor: Actor | None, target: Target) -> bool:
    if actor is None:
        return False
    if actor.role is Role.SUPER_ADMIN:
        return actor.id != target.id
    if actor.role is Role.ADMIN:
        return _as_role(target.role) is Role.USER
    return False


def can_modify_profile(actor: Actor | None, target: Target) -> bool:
    if actor is None:
        return False
    if actor.id == target.id:
        return True
    if actor.role is Role.SUPER_ADMIN:
        return _as_role(target.role) is not Role.SUPER_ADMIN
    if actor.role is Role.ADMIN:
        return _as_role(target.role) is Role.USER
    return False


def is_in_scope(actor: Actor | None, hospital_id: str | None) -> bool:
    if actor is None:
        return False
    if actor.role is Role.SUPER_ADMIN:
        return True
    if actor.role is Role.ADMIN:
        return hospital_id is not None and hospital_id in actor.managed_hospital_ids
    return False


def can_act_on_owned_resource(actor: Actor | None, resource: Target) -> bool:
    if actor is None:
        return False
    if resource.created_by is not None and resource.created_by in (actor.id, actor.nip):
        return True
    return actor.role is Role.SUPER_ADMIN


def can_act_for_employee(actor: Actor | None, target: Target) -> bool:
    """Self, a super-admin, or an admin acting on a user in one of their hospitals."""
    if actor is None:
        return False
    if actor.id == target.id:
        return True
    if actor.role is Role.SUPER_ADMIN:
        return True
    if actor.role is Role.ADMIN:
        return _as_role(target.role) is Role.USER and is_in_scope(actor, target.hospital_id)
    return False


def can_view_employee_report(actor: Actor | None, target: Target) -> bool:
    """Self, an admin whose scope covers the employee, or anyone on the employee's reporting line."""
    if actor is None:
        return False
    if actor.id == target.id or is_in_scope(actor, target.hospital_id):
        return True
    return actor.id in target.overseen_by


def can_review_request(actor: Actor | None, mentee: Target, mentor_id: str | None) -> bool:
    """
    Approve or reject a mentee's catch-up request.

    The assigned mentor, or someone who may act for the mentee. Never the mentee.
    """
    if actor is None or actor.id == mentee.id:
        return False
    if mentor_id is not None and actor.id == mentor_id:
        return True
    return can_act_for_employee(actor, mentee)


SELF_SERVICE_RELATIONS = frozenset({"supervisor", "kaunit", "manager"})


def can_manage_team_member(
    actor: Actor | None,
    member: Target,
    relation: str,
    supervisor_id: str,
    actor_hospital_id: str | None = None,
) -> bool:
    """
    Put ``member`` under (or take them away from) ``supervisor_id``.

    Admins manage anyone they may act for. Other staff may only build their own
    supervisor, ka-unit or manager team, from their own hospital.
    """
    if actor is None or member.id == supervisor_id:
        return False
    if is_admin(actor):
        return can_act_for_employee(actor, member)
    if relation not in SELF_SERVICE_RELATIONS or supervisor_id != actor.id:
        return False
    return actor_hospital_id is not None and member.hospital_id == actor_hospital_id


def can_assign_hospital_scope(actor: Actor | None) -> bool:
    """Only super-admins grant or revoke managed hospitals."""
    return is_super_admin(actor)


def can_move_employee(actor: Actor | None, current_hospital_id: str | None, new_hospital_id: str | None) -> bool:
    if is_super_admin(actor):
        return True
    if not is_admin(actor):
        return False
    if current_hospital_id is not None and not is_in_scope(actor, current_hospital_id):
        return False
    return is_in_scope(actor, new_hospital_id)


def validate_role_change(actor: Actor | None, target: Target, new_role: Role | str) -> str | None:
    """Return a user-facing reason the change is refused, or None when allowed."""
    if actor is not None and actor.id == target.id:
        if _as_role(new_role) is not actor.role:
            return "You cannot change your own role"
        return None

    if _as_role(new_role) is None:
        return f"Unknown role: {new_role}"

    if not can_modify_role(actor, target, new_role):
        actor_role = actor.role if actor else Role.USER
        target_role = _as_role(target.role)
        if actor_role is Role.ADMIN and target_role in (Role.ADMIN, Role.SUPER_ADMIN):
            return "Admins cannot change the role of another admin"
        if actor_role is Role.ADMIN:
            return "Admins can only assign the user role"
        return "You do not have permission to change this user's role"

    if actor is not None and actor.role is Role.SUPER_ADMIN and _as_role(target.role) is Role.SUPER_ADMIN:
        if _as_role(new_role) is not Role.SUPER_ADMIN:
            return "Super admins cannot demote another super admin"
    return None


def resolve_hospital_filter(actor: Actor | None, requested_hospital_id: str | None = None) -> HospitalFilter:
    """
    Decide which hospitals a list query may cover.

    An admin asking for a hospital outside their scope gets their managed set
    instead of an error; an admin with no scope gets an empty result.
    """
    requested = requested_hospital_id or None
    if actor is None:
        return HospitalFilter(hospital_ids=frozenset())
    if actor.role is Role.SUPER_ADMIN:
        return HospitalFilter(hospital_ids=frozenset({requested}) if requested else None)
    if actor.role is Role.ADMIN:
        if requested and requested in actor.managed_hospital_ids:
            return HospitalFilter(hospital_ids=frozenset({requested}))
        return HospitalFilter(hospital_ids=frozenset(actor.managed_hospital_ids))
    return HospitalFilter(hospital_ids=None, self_only=True)

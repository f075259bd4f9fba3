from __future__ import annotations

from sqlalchemy import event, false, or_
from sqlalchemy.orm import Session, with_loader_criteria

from mutabaah.security.policy import Role, is_admin


@event.listens_for(Session, "do_orm_execute")
def _apply_scope_filters(execute_state) -> None:
    """
    Transparent row scoping for the scoped client.

    Handlers keep writing plain queries:
        db.execute(select(Employee)).scalars()
    and on a scoped session they only see the rows the actor may see.
    Sessions without ``info["scoped"]`` (service and credential clients) are untouched.
    """

    if not execute_state.is_select:
        return

    info = execute_state.session.info
    if not info.get("scoped"):
        return

    # Local import to avoid cycles.
    from mutabaah.models.messaging import Notification  # noqa: WPS433 (local import)
    from mutabaah.models.security import Employee  # noqa: WPS433 (local import)

    actor = info.get("actor")
    stmt = execute_state.statement

    if actor is None:
        stmt = stmt.options(
            with_loader_criteria(Employee, false(), include_aliases=True),
            with_loader_criteria(Notification, false(), include_aliases=True),
        )
        execute_state.statement = stmt
        return

    if actor.role is Role.ADMIN:
        managed = sorted(actor.managed_hospital_ids)
        stmt = stmt.options(
            with_loader_criteria(
                Employee,
                or_(Employee.hospital_id.in_(managed), Employee.id == actor.id),
                include_aliases=True,
            ),
        )
    elif actor.role is not Role.SUPER_ADMIN:
        stmt = stmt.options(
            with_loader_criteria(Employee, Employee.id == actor.id, include_aliases=True),
        )

    if not is_admin(actor):
        stmt = stmt.options(
            with_loader_criteria(Notification, Notification.user_id == actor.id, include_aliases=True),
        )

    execute_state.statement = stmt

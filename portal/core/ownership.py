"""Ownership graph: owner / managed-by back-references as query filters.

Admin rank and above see everything. Everyone else sees rows they own and rows
whose managed_by points at them (what their direct subordinates create).
"""

from typing import Any
from uuid import UUID

from sqlalchemy import or_, true
from sqlalchemy.sql.elements import ColumnElement

from portal.core.roles import at_least
from portal.db.enums import Role
from portal.db.models import ApprovableRecord, User


def sees_everything(actor: Any) -> bool:
    return at_least(actor.role, Role.ADMIN)


def visible_records_clause(model: type[ApprovableRecord], actor: Any) -> ColumnElement[bool]:
    """WHERE clause limiting ``model`` rows to what ``actor`` may list."""
    if sees_everything(actor):
        return true()
    return or_(model.owner_id == actor.id, model.managed_by_id == actor.id)


def visible_users_clause(actor: Any) -> ColumnElement[bool]:
    """WHERE clause limiting user rows to the actor itself and the accounts it manages."""
    if sees_everything(actor):
        return true()
    return or_(User.id == actor.id, User.managed_by_id == actor.id)


def supervisor_of(actor: Any) -> UUID | None:
    """managed_by_id stamped on records the actor creates."""
    return actor.managed_by_id

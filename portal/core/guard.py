"""Authorization guard.

One decision function per action family. Each returns a ``Decision`` value
instead of raising, so callers (and tests) can inspect the exact deny reason.
Nothing here touches the database.

Actors and targets are duck-typed: anything with ``id`` and ``role`` is an
actor; records expose ``owner_id`` and ``managed_by_id``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from portal.core.roles import as_role, at_least, outranks
from portal.db.enums import RecordKind, Role


class DenyReason(str, Enum):
    """Why a guard refused an action."""

    INSUFFICIENT_RANK = "insufficient_rank"
    SAME_RANK_TERRITORIAL = "same_rank_territorial"
    UNKNOWN_ROLE = "unknown_role"
    NOT_OWNER = "not_owner"
    NOT_APPROVER = "not_approver"
    NOT_SUPER_ADMIN = "not_super_admin"
    SELF_DELETION = "self_deletion"
    NOT_SELF_AND_NOT_PRIVILEGED = "not_self_and_not_privileged"
    PENDING_APPROVAL = "pending_approval"


@dataclass(frozen=True)
class Decision:
    """Outcome of an authorization check."""

    allowed: bool
    reason: DenyReason | None = None
    message: str = ""

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(allowed=True)


def _name(role: Role | str | None) -> str:
    return role.value if isinstance(role, Role) else str(role)


def deny(reason: DenyReason, message: str) -> Decision:
    return Decision(allowed=False, reason=reason, message=message)


# =============================================================================
# Role assignment / record creation
# =============================================================================


def can_assign_role(actor: Any, target_role: Role | str | None) -> Decision:
    """
    Check whether ``actor`` may create or re-assign an account at ``target_role``.

    Strict: the actor must outrank the target role. Territorial managers are
    additionally barred from their own rank, which the strict check already
    implies; the dedicated reason only sharpens the message.
    """
    role = as_role(target_role)
    if role is None:
        return deny(DenyReason.UNKNOWN_ROLE, f"Unknown role '{target_role}'")

    if outranks(actor.role, role) and not (
        actor.role == Role.TERRITORIAL_MANAGER and role == Role.TERRITORIAL_MANAGER
    ):
        return ALLOW

    if actor.role == Role.TERRITORIAL_MANAGER and role == Role.TERRITORIAL_MANAGER:
        return deny(
            DenyReason.SAME_RANK_TERRITORIAL,
            "Territorial managers cannot assign the territorial manager role",
        )
    return deny(
        DenyReason.INSUFFICIENT_RANK,
        f"Role '{_name(actor.role)}' cannot assign role '{role.value}'",
    )


def can_create_record(
    actor: Any,
    kind: RecordKind,
    role: Role | str | None = None,
) -> Decision:
    """
    Check whether ``actor`` may submit a new record of ``kind``.

    Kinds that stand for a role are governed by ``can_assign_role``; user
    accounts use the requested ``role``; companies need job-desk rank.
    """
    if kind is RecordKind.USER:
        return can_assign_role(actor, role)

    governing_role = kind.governing_role
    if governing_role is not None:
        return can_assign_role(actor, governing_role)

    if at_least(actor.role, Role.JOB_DESK):
        return ALLOW
    return deny(
        DenyReason.INSUFFICIENT_RANK,
        f"Role '{_name(actor.role)}' cannot create a {kind.label}",
    )


# =============================================================================
# Visibility / editing
# =============================================================================


def can_view_or_edit_record(actor: Any, record: Any) -> Decision:
    """Admins see everything; others only what they own or manage."""
    if at_least(actor.role, Role.ADMIN):
        return ALLOW
    if record.owner_id is not None and record.owner_id == actor.id:
        return ALLOW
    if record.managed_by_id is not None and record.managed_by_id == actor.id:
        return ALLOW
    return deny(DenyReason.NOT_OWNER, "You can only access records you own or manage")


# =============================================================================
# Approval
# =============================================================================


def can_approve_or_reject(actor: Any) -> Decision:
    if at_least(actor.role, Role.ADMIN):
        return ALLOW
    return deny(DenyReason.NOT_APPROVER, "Admin privileges required")


# =============================================================================
# Account management
# =============================================================================


def can_delete_actor(actor: Any, target: Any) -> Decision:
    """Only super admins delete accounts, and never their own."""
    if actor.role != Role.SUPER_ADMIN:
        return deny(DenyReason.NOT_SUPER_ADMIN, "Super admin privileges required")
    if target.id == actor.id:
        return deny(DenyReason.SELF_DELETION, "cannot delete own account")
    return ALLOW


def can_change_password(actor: Any, target: Any) -> Decision:
    if at_least(actor.role, Role.ADMIN) or actor.id == target.id:
        return ALLOW
    return deny(DenyReason.NOT_SELF_AND_NOT_PRIVILEGED, "not self and not privileged")


def requires_current_password(actor: Any, target: Any) -> bool:
    """Own password changes verify the current password; admin resets skip it."""
    return actor.id == target.id
"""Role hierarchy: a fixed total order over roles and pure rank comparisons.

Rank is the 1-based position in ROLE_ORDER. Unknown or missing roles rank 0
and never satisfy a comparison.
"""

from types import MappingProxyType

from portal.db.enums import Role


ROLE_ORDER: tuple[Role, ...] = (
    Role.REPORTER,
    Role.JOB_DESK,
    Role.TERRITORIAL_MANAGER,
    Role.ADMIN,
    Role.SUPER_ADMIN,
)

_RANKS = MappingProxyType({role.value: position for position, role in enumerate(ROLE_ORDER, start=1)})

# Roles allowed to approve or reject submissions and to receive approval notifications
APPROVER_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.SUPER_ADMIN})


def rank(role: Role | str | None) -> int:
    """Rank of a role; 0 for anything outside the hierarchy."""
    if role is None:
        return 0
    value = role.value if isinstance(role, Role) else role
    return _RANKS.get(value, 0)


def at_least(role: Role | str | None, required_role: Role | str | None) -> bool:
    """True if ``role`` ranks at or above ``required_role``; False when either is unknown."""
    actual = rank(role)
    required = rank(required_role)
    if actual == 0 or required == 0:
        return False
    return actual >= required


def outranks(role: Role | str | None, other_role: Role | str | None) -> bool:
    """Strict comparison: ``role`` ranks above ``other_role``."""
    return rank(role) > rank(other_role)


def as_role(value: Role | str | None) -> Role | None:
    """Coerce a stored role string to the enum, None if unknown."""
    if isinstance(value, Role):
        return value
    if value is not None and Role.has_value(value):
        return Role(value)
    return None

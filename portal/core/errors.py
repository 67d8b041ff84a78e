"""Domain error taxonomy.

Services raise these; ``portal.main`` renders every ``PortalError`` as
``{"detail", "code", ...}`` with its HTTP status. Anything else that escapes a
request is logged and reported as ``UpstreamFailure``.
"""

import re
from typing import Any

from sqlalchemy.exc import IntegrityError

from portal.core.guard import Decision, DenyReason


class PortalError(Exception):
    """Base exception for portal domain errors."""

    code = "portal_error"
    status_code = 500
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def extras(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code, **self.extras()}


class Unauthenticated(PortalError):
    """No (valid) actor context on the request."""

    code = "unauthenticated"
    status_code = 401
    default_message = "Not authenticated"


class AuthorizationDenied(PortalError):
    """The authorization guard refused the action."""

    code = "authorization_denied"
    status_code = 403
    default_message = "Access denied"

    def __init__(self, message: str | None = None, reason: DenyReason | None = None):
        super().__init__(message)
        self.reason = reason

    @classmethod
    def from_decision(cls, decision: Decision) -> "AuthorizationDenied":
        return cls(decision.message or None, reason=decision.reason)

    def extras(self) -> dict[str, Any]:
        return {"reason": self.reason.value if self.reason else None}


class RecordNotFound(PortalError):
    code = "record_not_found"
    status_code = 404
    default_message = "Record not found"


class NotFoundOrAlreadyRead(PortalError):
    """Notification is not addressed to the actor, or was already read by them."""

    code = "not_found_or_already_read"
    status_code = 404
    default_message = "Notification not found or already read"


class InvalidStateTransition(PortalError):
    """Approve/reject attempted on a record that is not pending."""

    code = "invalid_state_transition"
    status_code = 409
    default_message = "Record is not pending approval"


class ValidationError(PortalError):
    """Missing or invalid input."""

    code = "validation_error"
    status_code = 422
    default_message = "Invalid input"

    def __init__(self, message: str | None = None, fields: list[str] | None = None):
        super().__init__(message)
        self.fields = fields or []

    def extras(self) -> dict[str, Any]:
        return {"fields": self.fields}


class DuplicateKey(PortalError):
    """Unique constraint violation at the persistence layer."""

    code = "duplicate_key"
    status_code = 409
    default_message = "Duplicate value"

    def __init__(self, field: str, message: str | None = None):
        super().__init__(message or f"A record with this {field} already exists")
        self.field = field

    def extras(self) -> dict[str, Any]:
        return {"field": self.field}


class UpstreamFailure(PortalError):
    """Storage or collaborator failure; details are logged, never returned."""

    code = "upstream_failure"
    status_code = 502
    default_message = "Upstream service failure"


def ensure_allowed(decision: Decision) -> None:
    """Raise AuthorizationDenied for a denied guard decision."""
    if not decision:
        raise AuthorizationDenied.from_decision(decision)


# =============================================================================
# Integrity error translation
# =============================================================================

_KNOWN_TABLES = ("users", "companies", "agents", "job_desks", "reporters")
_UNIQUE_CONSTRAINT = re.compile(r"uq_[a-z_]+?_(?P<field>[a-z_]+)$")
_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: (?P<cols>[\w.,\s]+)")


def duplicate_field(error: IntegrityError) -> str | None:
    """
    Name the column behind a unique violation, or None if it was not one.

    Uses the PostgreSQL constraint name when the driver exposes it, else the
    SQLite message ("UNIQUE constraint failed: users.email").
    """
    constraint_name = getattr(getattr(error.orig, "diag", None), "constraint_name", None)
    if constraint_name:
        for table_prefix in _KNOWN_TABLES:
            prefix = f"uq_{table_prefix}_"
            if constraint_name.startswith(prefix):
                return constraint_name[len(prefix):]
        match = _UNIQUE_CONSTRAINT.match(constraint_name)
        if match:
            return match.group("field")

    message = str(error.orig) if error.orig else str(error)
    match = _SQLITE_UNIQUE.search(message)
    if match:
        first_column = match.group("cols").split(",")[0].strip()
        return first_column.split(".")[-1]
    for table_prefix in _KNOWN_TABLES:
        found = re.search(rf"uq_{table_prefix}_(\w+)", message)
        if found:
            return found.group(1)
    return None


def translate_integrity_error(error: IntegrityError) -> PortalError:
    field = duplicate_field(error)
    if field:
        return DuplicateKey(field)
    return UpstreamFailure()


"""Enum definitions for application constants."""

from enum import Enum
from typing import assert_never


class Role(str, Enum):
    """
    User roles, declared from lowest to highest privilege.

    Declaration order is the rank order used by ``portal.core.roles``.

    - REPORTER: Reports leads, no subordinates
    - JOB_DESK: Job-placement desk operator (creates companies and reporters)
    - TERRITORIAL_MANAGER: Supervises job desks and reporters in a territory
    - ADMIN: Business admin (approves and rejects submissions)
    - SUPER_ADMIN: Platform admin (also deletes accounts)
    """

    REPORTER = "reporter"
    JOB_DESK = "job_desk"
    TERRITORIAL_MANAGER = "territorial_manager"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_


class NotificationType(str, Enum):
    """Types of approver notifications (one per approvable kind)."""

    COMPANY_PENDING = "company_pending"
    AGENT_PENDING = "agent_pending"
    JOB_DESK_PENDING = "job_desk_pending"
    REPORTER_PENDING = "reporter_pending"
    USER_PENDING = "user_pending"


class RecordKind(str, Enum):
    """Kinds of records that go through the approval workflow."""

    COMPANY = "company"
    AGENT = "agent"
    JOB_DESK = "job_desk"
    REPORTER = "reporter"
    USER = "user"

    @property
    def label(self) -> str:
        match self:
            case RecordKind.COMPANY:
                return "company"
            case RecordKind.AGENT:
                return "territorial agent"
            case RecordKind.JOB_DESK:
                return "job desk"
            case RecordKind.REPORTER:
                return "reporter"
            case RecordKind.USER:
                return "user account"
            case _:
                assert_never(self)

    @property
    def governing_role(self) -> Role | None:
        """
        Role rank a record of this kind represents.

        None for companies (no rank) and for users (the payload carries the role).
        """
        match self:
            case RecordKind.COMPANY | RecordKind.USER:
                return None
            case RecordKind.AGENT:
                return Role.TERRITORIAL_MANAGER
            case RecordKind.JOB_DESK:
                return Role.JOB_DESK
            case RecordKind.REPORTER:
                return Role.REPORTER
            case _:
                assert_never(self)

    @property
    def notification_type(self) -> NotificationType:
        match self:
            case RecordKind.COMPANY:
                return NotificationType.COMPANY_PENDING
            case RecordKind.AGENT:
                return NotificationType.AGENT_PENDING
            case RecordKind.JOB_DESK:
                return NotificationType.JOB_DESK_PENDING
            case RecordKind.REPORTER:
                return NotificationType.REPORTER_PENDING
            case RecordKind.USER:
                return NotificationType.USER_PENDING
            case _:
                assert_never(self)


class ApprovalState(str, Enum):
    """
    Lifecycle states of an approvable record.

    REJECTED is never stored: a rejected record is deleted.
    """

    AUTO_APPROVED = "auto_approved"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"

"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import ClassVar

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, relationship

from portal.db.base import Base
from portal.db.enums import ApprovalState, RecordKind


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Approval fields (shared by users and every approvable record)
# =============================================================================


class ApprovalMixin:
    """
    Approval columns mutated only by the approval state machine.

    is_approved and pending_approval are never both true (table CHECK).
    """

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    pending_approval: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    approved_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)

    @declared_attr.directive
    def __table_args__(cls):
        return (
            CheckConstraint("NOT (is_approved AND pending_approval)", name="approval_state"),
        )

    @property
    def approval_state(self) -> ApprovalState:
        # Import here to avoid circular imports
        from portal.services.approval_service import approval_state

        return approval_state(self)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )


# =============================================================================
# Users
# =============================================================================


class User(ApprovalMixin, TimestampMixin, Base):
    """
    Portal account.

    managed_by_id points at the actor that created (and supervises) this
    account. It is a visibility link only: deleting the manager keeps the user.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    organization: Mapped[str | None] = mapped_column(String(255), nullable=True)
    managed_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    token_version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(nullable=True)

    manager: Mapped[User | None] = relationship(
        "User", remote_side="User.id", foreign_keys="User.managed_by_id"
    )

    @property
    def owner_id(self) -> uuid.UUID:
        """A user owns its own account."""
        return self.id

    @property
    def display_name(self) -> str:
        full_name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return full_name or self.username


# =============================================================================
# Approvable records
# =============================================================================


class ApprovableRecord(ApprovalMixin, TimestampMixin, Base):
    """
    Common shape of companies, agents, job desks and reporters.

    owner_id is the creating actor; managed_by_id is the creator's own
    supervisor, so a manager sees what its subordinates create.
    """

    __abstract__ = True

    kind: ClassVar[RecordKind]

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    managed_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # Contact
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    province: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Opaque key into the document store (signed contract, ID scans)
    document_key: Mapped[str | None] = mapped_column(String(500), nullable=True)

    @declared_attr
    def owner(cls) -> Mapped[User | None]:
        return relationship(User, foreign_keys=f"{cls.__name__}.owner_id", lazy="joined")

    @property
    def display_name(self) -> str:
        raise NotImplementedError


class Company(ApprovableRecord):
    """Client company registered on the portal."""

    __tablename__ = "companies"
    kind = RecordKind.COMPANY

    business_name: Mapped[str] = mapped_column(String(255), nullable=False)
    vat_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)

    @property
    def display_name(self) -> str:
        return self.business_name


class Agent(ApprovableRecord):
    """Territorial agent operating in a territory."""

    __tablename__ = "agents"
    kind = RecordKind.AGENT

    business_name: Mapped[str] = mapped_column(String(255), nullable=False)
    vat_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)

    @property
    def display_name(self) -> str:
        return self.business_name


class JobDesk(ApprovableRecord):
    """Job-placement desk."""

    __tablename__ = "job_desks"
    kind = RecordKind.JOB_DESK

    business_name: Mapped[str] = mapped_column(String(255), nullable=False)
    vat_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)

    @property
    def display_name(self) -> str:
        return self.business_name


class Reporter(ApprovableRecord):
    """Individual reporter (lead referrer)."""

    __tablename__ = "reporters"
    kind = RecordKind.REPORTER

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    tax_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


RECORD_MODELS: dict[RecordKind, type[ApprovableRecord]] = {
    RecordKind.COMPANY: Company,
    RecordKind.AGENT: Agent,
    RecordKind.JOB_DESK: JobDesk,
    RecordKind.REPORTER: Reporter,
}


def model_for(kind: RecordKind) -> type[ApprovableRecord] | type[User]:
    """ORM class backing an approvable kind (users included)."""
    if kind is RecordKind.USER:
        return User
    return RECORD_MODELS[kind]


# =============================================================================
# Notifications
# =============================================================================


class Notification(Base):
    """
    Approver notification for a pending submission.

    Recipients are a snapshot taken at creation; read entries are appended
    per recipient and never removed.
    """

    __tablename__ = "notifications"
    __table_args__ = (Index("idx_notif_type_created", "type", "created_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)

    # Entity reference (for click-through)
    entity_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    entity_name: Mapped[str] = mapped_column(String(255), nullable=False)

    created_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_by_name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False, index=True
    )

    recipients: Mapped[list[NotificationRecipient]] = relationship(
        back_populates="notification",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    read_by: Mapped[list[NotificationReadEntry]] = relationship(
        back_populates="notification",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="NotificationReadEntry.read_at",
    )

    @property
    def recipient_ids(self) -> set[uuid.UUID]:
        return {r.user_id for r in self.recipients}


class NotificationRecipient(Base):
    __tablename__ = "notification_recipients"

    notification_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("notifications.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True
    )

    notification: Mapped[Notification] = relationship(back_populates="recipients")


class NotificationReadEntry(Base):
    """One read receipt; the composite key keeps it unique per actor."""

    __tablename__ = "notification_reads"

    notification_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("notifications.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    read_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    notification: Mapped[Notification] = relationship(back_populates="read_by")

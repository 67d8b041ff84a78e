"""
Notification Service - approver notifications for pending submissions.

Each notification is addressed to a snapshot of the approvers active when it
was created, and tracks reads per recipient.
"""

import logging
from datetime import timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import DateTime, Uuid, delete, func, insert, literal, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased

from portal.core.config import settings
from portal.core.errors import NotFoundOrAlreadyRead, RecordNotFound
from portal.core.roles import APPROVER_ROLES
from portal.db.enums import RecordKind
from portal.db.models import (
    Notification,
    NotificationReadEntry,
    NotificationRecipient,
    User,
    utcnow,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Fan-out
# =============================================================================


def current_approver_ids(db: Session) -> list[UUID]:
    """Ids of active users holding an approver role right now."""
    rows = db.query(User.id).filter(
        User.role.in_([role.value for role in APPROVER_ROLES]),
        User.is_active.is_(True),
    ).order_by(User.created_at).all()
    return [row.id for row in rows]


def notify_pending_approval(
    db: Session,
    kind: RecordKind,
    entity_id: UUID,
    entity_name: str,
    submitted_by: Any,
) -> Notification | None:
    """
    Notify every current approver that a submission awaits a decision.

    Returns None (after logging a warning) when nobody can approve.
    """
    recipient_ids = current_approver_ids(db)
    if not recipient_ids:
        logger.warning(
            "No approvers to notify for %s %s", kind.value, entity_id
        )
        return None

    submitter_name = submitted_by.display_name
    notification = Notification(
        title=f"New {kind.label} pending approval",
        message=f'{submitter_name} created a new {kind.label} "{entity_name}" that needs approval.',
        type=kind.notification_type.value,
        entity_id=entity_id,
        entity_name=entity_name,
        created_by_id=submitted_by.id,
        created_by_name=submitter_name,
        recipients=[NotificationRecipient(user_id=user_id) for user_id in recipient_ids],
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)

    logger.info(
        "Notified %d approvers about %s %s",
        len(recipient_ids),
        kind.value,
        entity_id,
    )
    return notification


# =============================================================================
# Reading
# =============================================================================


def _unread_filter(actor_id: UUID):
    read_entry = aliased(NotificationReadEntry)
    already_read = select(read_entry.notification_id).where(
        read_entry.notification_id == NotificationRecipient.notification_id,
        read_entry.user_id == actor_id,
    ).exists()
    return (NotificationRecipient.user_id == actor_id) & ~already_read


def list_unread(
    db: Session,
    actor_id: UUID,
    limit: int | None = None,
) -> list[Notification]:
    """Unread notifications addressed to the actor, newest first."""
    limit = limit or settings.NOTIFICATION_LIST_LIMIT
    return (
        db.query(Notification)
        .join(NotificationRecipient, NotificationRecipient.notification_id == Notification.id)
        .filter(_unread_filter(actor_id))
        .order_by(Notification.created_at.desc())
        .limit(limit)
        .all()
    )


def count_unread(db: Session, actor_id: UUID) -> int:
    return (
        db.query(func.count(NotificationRecipient.notification_id))
        .filter(_unread_filter(actor_id))
        .scalar()
    ) or 0


def mark_as_read(db: Session, notification_id: UUID, actor_id: UUID) -> None:
    """
    Append a read entry for the actor.

    A single conditional INSERT: nothing is written unless the actor is a
    recipient and has not read it yet. The composite key on
    (notification_id, user_id) catches a concurrent duplicate.

    Raises:
        NotFoundOrAlreadyRead: not a recipient, unknown id, or already read
    """
    read_entry = aliased(NotificationReadEntry)
    is_recipient = select(NotificationRecipient.user_id).where(
        NotificationRecipient.notification_id == notification_id,
        NotificationRecipient.user_id == actor_id,
    ).exists()
    already_read = select(read_entry.user_id).where(
        read_entry.notification_id == notification_id,
        read_entry.user_id == actor_id,
    ).exists()

    source = select(
        literal(notification_id, Uuid),
        literal(actor_id, Uuid),
        literal(utcnow(), DateTime(timezone=True)),
    ).where(is_recipient, ~already_read)

    stmt = insert(NotificationReadEntry.__table__).from_select(
        ["notification_id", "user_id", "read_at"], source
    )
    try:
        inserted = db.execute(stmt).rowcount
        db.commit()
    except IntegrityError:
        db.rollback()
        raise NotFoundOrAlreadyRead()

    if inserted == 0:
        raise NotFoundOrAlreadyRead()


def mark_all_as_read(db: Session, actor_id: UUID) -> int:
    """
    Mark every unread notification of the actor as read.

    Returns the number of notifications newly marked. If a concurrent request
    marks some of them first, falls back to marking one by one.
    """
    source = select(
        NotificationRecipient.notification_id,
        literal(actor_id, Uuid),
        literal(utcnow(), DateTime(timezone=True)),
    ).where(_unread_filter(actor_id))

    stmt = insert(NotificationReadEntry.__table__).from_select(
        ["notification_id", "user_id", "read_at"], source
    )
    try:
        marked = db.execute(stmt).rowcount
        db.commit()
        return marked
    except IntegrityError:
        db.rollback()
        logger.info("Concurrent read while marking all for user %s, retrying individually", actor_id)

    pending_ids = [
        row.notification_id
        for row in db.query(NotificationRecipient.notification_id).filter(_unread_filter(actor_id)).all()
    ]
    marked = 0
    for notification_id in pending_ids:
        try:
            mark_as_read(db, notification_id, actor_id)
            marked += 1
        except NotFoundOrAlreadyRead:
            continue
    return marked


# =============================================================================
# Deletion / retention
# =============================================================================


def delete_for_recipient(db: Session, notification_id: UUID, actor_id: UUID) -> None:
    """Delete a notification, but only on behalf of one of its recipients."""
    notification = (
        db.query(Notification)
        .join(NotificationRecipient, NotificationRecipient.notification_id == Notification.id)
        .filter(
            Notification.id == notification_id,
            NotificationRecipient.user_id == actor_id,
        )
        .first()
    )
    if not notification:
        raise RecordNotFound("Notification not found")

    db.delete(notification)
    db.commit()


def purge_older_than(db: Session, days: int | None = None) -> int:
    """Delete notifications (read or not) created more than ``days`` ago."""
    days = settings.NOTIFICATION_RETENTION_DAYS if days is None else days
    cutoff = utcnow() - timedelta(days=days)

    expired_ids = select(Notification.id).where(Notification.created_at < cutoff)
    db.execute(
        delete(NotificationReadEntry).where(NotificationReadEntry.notification_id.in_(expired_ids))
        .execution_options(synchronize_session=False)
    )
    db.execute(
        delete(NotificationRecipient).where(NotificationRecipient.notification_id.in_(expired_ids))
        .execution_options(synchronize_session=False)
    )
    deleted = db.execute(
        delete(Notification)
        .where(Notification.created_at < cutoff)
        .execution_options(synchronize_session=False)
    ).rowcount
    db.commit()

    logger.info("Purged %d notifications older than %d days", deleted, days)
    return deleted


# =============================================================================
# Stats
# =============================================================================


def stats(db: Session) -> dict:
    """Counts per notification type (operational visibility only)."""
    rows = (
        db.query(
            Notification.type,
            func.count(Notification.id).label("count"),
            func.max(Notification.created_at).label("latest"),
        )
        .group_by(Notification.type)
        .order_by(func.count(Notification.id).desc())
        .all()
    )
    by_type = [
        {"type": row.type, "count": row.count, "latest": row.latest}
        for row in rows
    ]
    return {
        "total": sum(item["count"] for item in by_type),
        "by_type": by_type,
        "generated_at": utcnow(),
    }

"""
Notifications Router - /me/notifications endpoints.

Clients poll these; there is no push transport.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from portal.core.config import settings
from portal.core.deps import get_current_user, get_db, require_csrf_header
from portal.db.models import User
from portal.schemas.notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    UnreadCountResponse,
)
from portal.services import notification_service

router = APIRouter()


@router.get("/notifications", response_model=NotificationListResponse)
def list_notifications(
    limit: int = Query(settings.NOTIFICATION_LIST_LIMIT, ge=1, le=settings.NOTIFICATION_LIST_LIMIT),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Unread notifications for the current user."""
    items = notification_service.list_unread(db, user.id, limit=limit)
    unread_count = notification_service.count_unread(db, user.id)
    return NotificationListResponse(items=items, unread_count=unread_count)


@router.get("/notifications/count", response_model=UnreadCountResponse)
def get_unread_count(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get unread notification count (for polling)."""
    return UnreadCountResponse(count=notification_service.count_unread(db, user.id))


@router.post(
    "/notifications/read-all",
    response_model=MarkAllReadResponse,
    dependencies=[Depends(require_csrf_header)],
)
def mark_all_read(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Mark all notifications as read."""
    count = notification_service.mark_all_as_read(db, user.id)
    return MarkAllReadResponse(marked_read=count)


@router.post(
    "/notifications/{notification_id}/read",
    dependencies=[Depends(require_csrf_header)],
)
def mark_notification_read(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Mark a notification as read."""
    notification_service.mark_as_read(db, notification_id, user.id)
    return {"status": "read"}


@router.delete(
    "/notifications/{notification_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_notification(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    notification_service.delete_for_recipient(db, notification_id, user.id)

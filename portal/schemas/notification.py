"""Notification schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class NotificationRead(BaseModel):
    """Notification response."""
    id: UUID
    type: str
    title: str
    message: str
    entity_id: UUID
    entity_name: str
    created_by_id: UUID | None
    created_by_name: str
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationListResponse(BaseModel):
    items: list[NotificationRead]
    unread_count: int


class UnreadCountResponse(BaseModel):
    """Unread count only (for polling)."""
    count: int


class MarkAllReadResponse(BaseModel):
    marked_read: int


class TypeStats(BaseModel):
    type: str
    count: int
    latest: datetime | None


class NotificationStats(BaseModel):
    total: int
    by_type: list[TypeStats]
    generated_at: datetime


class PurgeResponse(BaseModel):
    deleted: int
    older_than_days: int

"""Approval queue schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from portal.db.enums import ApprovalState, RecordKind


class SubmitterSummary(BaseModel):
    id: UUID
    display_name: str
    role: str
    email: str


class PendingItem(BaseModel):
    kind: RecordKind
    id: UUID
    display_name: str
    created_at: datetime
    submitted_by: SubmitterSummary | None


class PendingListResponse(BaseModel):
    items: list[PendingItem]
    counts: dict[RecordKind, int]
    total: int


class RejectRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)


class ApprovalResult(BaseModel):
    kind: RecordKind
    id: UUID
    state: ApprovalState
    approved_by_id: UUID | None = None
    approved_at: datetime | None = None
    reason: str | None = None

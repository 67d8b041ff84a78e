"""Approvals router - the admin queue and approve/reject decisions."""

from uuid import UUID

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from portal.core.deps import get_db, require_approver, require_csrf_header
from portal.db.enums import RecordKind
from portal.db.models import User
from portal.schemas.approval import ApprovalResult, PendingListResponse, RejectRequest
from portal.services import approval_service

router = APIRouter()


@router.get("/pending", response_model=PendingListResponse)
def list_pending(
    user: User = Depends(require_approver),
    db: Session = Depends(get_db),
):
    """Everything awaiting a decision, newest first."""
    return approval_service.list_pending(db, user)


@router.post(
    "/{kind}/{record_id}/approve",
    response_model=ApprovalResult,
    dependencies=[Depends(require_csrf_header)],
)
def approve(
    kind: RecordKind,
    record_id: UUID,
    user: User = Depends(require_approver),
    db: Session = Depends(get_db),
):
    record = approval_service.approve(db, user, kind, record_id)
    return ApprovalResult(
        kind=kind,
        id=record.id,
        state=record.approval_state,
        approved_by_id=record.approved_by_id,
        approved_at=record.approved_at,
    )


@router.post(
    "/{kind}/{record_id}/reject",
    response_model=ApprovalResult,
    dependencies=[Depends(require_csrf_header)],
)
def reject(
    kind: RecordKind,
    record_id: UUID,
    data: RejectRequest | None = Body(default=None),
    user: User = Depends(require_approver),
    db: Session = Depends(get_db),
):
    """Reject a pending submission. The record is deleted."""
    reason = data.reason if data else None
    return approval_service.reject(db, user, kind, record_id, reason=reason)

"""
Approval Service - the approval state machine for approvable records.

    submit ──(creator is admin+)──────────────▶ auto_approved
       │
       └──(otherwise)──▶ pending_approval ──approve──▶ approved
                                  │
                                  └────reject────▶ (deleted)

approve and reject are compare-and-swap statements keyed on
``pending_approval IS TRUE``, so two racing approvers cannot both win.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from portal.core.errors import (
    InvalidStateTransition,
    RecordNotFound,
    ensure_allowed,
    translate_integrity_error,
)
from portal.core.guard import can_approve_or_reject
from portal.core.roles import at_least
from portal.db.enums import ApprovalState, RecordKind, Role
from portal.db.models import User, model_for, utcnow
from portal.services import notification_service

logger = logging.getLogger(__name__)


# =============================================================================
# State
# =============================================================================


def approval_state(record: Any) -> ApprovalState:
    """Derive the lifecycle state from the stored approval columns."""
    if record.pending_approval:
        return ApprovalState.PENDING_APPROVAL
    if record.is_approved and record.approved_by_id is not None:
        return ApprovalState.APPROVED
    return ApprovalState.AUTO_APPROVED


def initial_fields(actor: Any) -> dict[str, Any]:
    """Approval column values for a record created by ``actor``."""
    if at_least(actor.role, Role.ADMIN):
        return {
            "is_approved": True,
            "pending_approval": False,
            "is_active": True,
            "approved_by_id": None,
            "approved_at": None,
        }
    return {
        "is_approved": False,
        "pending_approval": True,
        "is_active": False,
        "approved_by_id": None,
        "approved_at": None,
    }


# =============================================================================
# Transitions
# =============================================================================


def submit(db: Session, actor: Any, kind: RecordKind, record: Any) -> Any:
    """
    Persist a freshly built record in its initial approval state.

    Pending records trigger an approver notification after the record is
    committed. Notification failures are logged and never undo the submission.

    Raises:
        DuplicateKey: a unique column collides with an existing row
    """
    for field, value in initial_fields(actor).items():
        setattr(record, field, value)

    db.add(record)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise translate_integrity_error(e) from e
    db.refresh(record)

    if not record.pending_approval:
        logger.info(
            "%s %s auto-approved (created by %s)", kind.value, record.id, actor.id
        )
        return record

    logger.info(
        "%s %s submitted for approval by %s", kind.value, record.id, actor.id
    )
    try:
        notification_service.notify_pending_approval(
            db,
            kind=kind,
            entity_id=record.id,
            entity_name=record.display_name,
            submitted_by=actor,
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception(
            "Failed to notify approvers about %s %s", kind.value, record.id
        )
    return record


def _raise_not_pending(db: Session, kind: RecordKind, record_id: UUID) -> None:
    model = model_for(kind)
    exists = db.query(model.id).filter(model.id == record_id).first()
    if exists is None:
        raise RecordNotFound(f"{kind.label.capitalize()} not found")
    raise InvalidStateTransition(f"{kind.label.capitalize()} is not pending approval")


def approve(db: Session, approver: Any, kind: RecordKind, record_id: UUID) -> Any:
    """
    Approve a pending record.

    Raises:
        AuthorizationDenied: approver below admin rank
        RecordNotFound: no such record
        InvalidStateTransition: record is not pending (already decided)
    """
    ensure_allowed(can_approve_or_reject(approver))

    model = model_for(kind)
    stmt = (
        update(model)
        .where(model.id == record_id, model.pending_approval.is_(True))
        .values(
            is_approved=True,
            pending_approval=False,
            is_active=True,
            approved_by_id=approver.id,
            approved_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    updated = db.execute(stmt).rowcount
    if updated == 0:
        db.rollback()
        _raise_not_pending(db, kind, record_id)
    db.commit()

    logger.info("%s %s approved by %s", kind.value, record_id, approver.id)
    return db.get(model, record_id, populate_existing=True)


def reject(
    db: Session,
    approver: Any,
    kind: RecordKind,
    record_id: UUID,
    reason: str | None = None,
) -> dict[str, Any]:
    """
    Reject a pending record. Rejection deletes it.

    The reason is logged and echoed back, not stored.

    Raises:
        AuthorizationDenied: approver below admin rank
        RecordNotFound: no such record
        InvalidStateTransition: record is not pending (already decided)
    """
    ensure_allowed(can_approve_or_reject(approver))

    model = model_for(kind)
    stmt = (
        delete(model)
        .where(model.id == record_id, model.pending_approval.is_(True))
        .execution_options(synchronize_session=False)
    )
    deleted = db.execute(stmt).rowcount
    if deleted == 0:
        db.rollback()
        _raise_not_pending(db, kind, record_id)
    db.commit()

    logger.info(
        "%s %s rejected by %s (reason: %s)",
        kind.value,
        record_id,
        approver.id,
        reason or "none given",
    )
    return {
        "kind": kind,
        "id": record_id,
        "state": ApprovalState.REJECTED,
        "reason": reason,
    }


# =============================================================================
# Queue
# =============================================================================


def _submitter_of(record: Any) -> User | None:
    if isinstance(record, User):
        return record.manager
    return record.owner


def list_pending(db: Session, actor: Any) -> dict[str, Any]:
    """
    Every pending submission across kinds, newest first.

    Raises:
        AuthorizationDenied: actor below admin rank
    """
    ensure_allowed(can_approve_or_reject(actor))

    items = []
    counts: dict[RecordKind, int] = {}
    for kind in RecordKind:
        model = model_for(kind)
        records = (
            db.query(model)
            .filter(model.pending_approval.is_(True))
            .order_by(model.created_at.desc())
            .all()
        )
        counts[kind] = len(records)
        for record in records:
            submitter = _submitter_of(record)
            items.append({
                "kind": kind,
                "id": record.id,
                "display_name": record.display_name,
                "created_at": record.created_at,
                "submitted_by": {
                    "id": submitter.id,
                    "display_name": submitter.display_name,
                    "role": submitter.role,
                    "email": submitter.email,
                } if submitter else None,
            })

    items.sort(key=lambda item: item["created_at"], reverse=True)
    return {"items": items, "counts": counts, "total": len(items)}

"""Record Service - CRUD for approvable records (companies, agents, job desks, reporters)."""

import logging
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portal.core.errors import (
    RecordNotFound,
    ensure_allowed,
    translate_integrity_error,
)
from portal.core.guard import can_create_record, can_view_or_edit_record
from portal.core.ownership import supervisor_of, visible_records_clause
from portal.db.enums import RecordKind
from portal.db.models import RECORD_MODELS, ApprovableRecord, User
from portal.services import approval_service

logger = logging.getLogger(__name__)


def create_record(
    db: Session,
    actor: User,
    kind: RecordKind,
    payload: BaseModel,
) -> ApprovableRecord:
    """
    Create a record owned by ``actor`` and hand it to the approval workflow.

    Raises:
        AuthorizationDenied: actor may not create this kind
        DuplicateKey: VAT number or tax code already registered
    """
    ensure_allowed(can_create_record(actor, kind))

    model = RECORD_MODELS[kind]
    record = model(
        **payload.model_dump(),
        owner_id=actor.id,
        managed_by_id=supervisor_of(actor),
    )
    return approval_service.submit(db, actor, kind, record)


def list_records(
    db: Session,
    actor: User,
    kind: RecordKind,
    include_pending: bool = True,
) -> list[ApprovableRecord]:
    model = RECORD_MODELS[kind]
    query = db.query(model).filter(visible_records_clause(model, actor))
    if not include_pending:
        query = query.filter(model.pending_approval.is_(False))
    return query.order_by(model.created_at.desc()).all()


def get_record(db: Session, actor: User, kind: RecordKind, record_id: UUID) -> ApprovableRecord:
    record = db.get(RECORD_MODELS[kind], record_id)
    if not record:
        raise RecordNotFound(f"{kind.label.capitalize()} not found")
    ensure_allowed(can_view_or_edit_record(actor, record))
    return record


def update_record(
    db: Session,
    actor: User,
    kind: RecordKind,
    record_id: UUID,
    payload: BaseModel,
) -> ApprovableRecord:
    """Update contact and per-kind fields. Approval fields are not writable."""
    record = get_record(db, actor, kind, record_id)

    columns = record.__table__.c
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and not columns[field].nullable:
            continue
        setattr(record, field, value)

    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise translate_integrity_error(e) from e
    db.refresh(record)
    return record


def delete_record(db: Session, actor: User, kind: RecordKind, record_id: UUID) -> None:
    record = get_record(db, actor, kind, record_id)
    db.delete(record)
    db.commit()
    logger.info("%s %s deleted by %s", kind.value, record_id, actor.id)

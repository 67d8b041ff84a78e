"""
Approvable record routers.

One router per kind is built from the same factory and mounted at
/companies, /agents, /job-desks and /reporters.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from portal.core.deps import get_current_user, get_db, require_csrf_header
from portal.db.enums import RecordKind
from portal.db.models import User
from portal.schemas.records import RECORD_SCHEMAS
from portal.services import record_service


def build_record_router(kind: RecordKind) -> APIRouter:
    create_schema, update_schema, read_schema = RECORD_SCHEMAS[kind]
    router = APIRouter()

    @router.post(
        "",
        response_model=read_schema,
        status_code=201,
        dependencies=[Depends(require_csrf_header)],
    )
    def create_record(
        data: create_schema,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ):
        """Create a record; below admin rank it waits for approval."""
        return record_service.create_record(db, user, kind, data)

    @router.get("", response_model=list[read_schema])
    def list_records(
        include_pending: bool = Query(True),
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ):
        """Records visible to the current user, newest first."""
        return record_service.list_records(db, user, kind, include_pending=include_pending)

    @router.get("/{record_id}", response_model=read_schema)
    def get_record(
        record_id: UUID,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ):
        return record_service.get_record(db, user, kind, record_id)

    @router.patch(
        "/{record_id}",
        response_model=read_schema,
        dependencies=[Depends(require_csrf_header)],
    )
    def update_record(
        record_id: UUID,
        data: update_schema,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ):
        return record_service.update_record(db, user, kind, record_id, data)

    @router.delete(
        "/{record_id}",
        status_code=204,
        dependencies=[Depends(require_csrf_header)],
    )
    def delete_record(
        record_id: UUID,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ):
        record_service.delete_record(db, user, kind, record_id)

    return router


# URL prefix per kind
RECORD_PREFIXES: dict[RecordKind, str] = {
    RecordKind.COMPANY: "/companies",
    RecordKind.AGENT: "/agents",
    RecordKind.JOB_DESK: "/job-desks",
    RecordKind.REPORTER: "/reporters",
}

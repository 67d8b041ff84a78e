"""Schemas for approvable records (companies, agents, job desks, reporters)."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from portal.db.enums import ApprovalState, RecordKind


# =============================================================================
# Shared
# =============================================================================


class ContactFields(BaseModel):
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=100)
    postal_code: str | None = Field(default=None, max_length=20)
    province: str | None = Field(default=None, max_length=50)
    document_key: str | None = Field(default=None, max_length=500)


class RecordReadBase(BaseModel):
    id: UUID
    kind: RecordKind
    display_name: str
    owner_id: UUID | None
    managed_by_id: UUID | None
    email: str | None
    phone: str | None
    address: str | None
    city: str | None
    postal_code: str | None
    province: str | None
    document_key: str | None
    is_active: bool
    is_approved: bool
    pending_approval: bool
    approved_by_id: UUID | None
    approved_at: datetime | None
    approval_state: ApprovalState
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Business entities (company, agent, job desk)
# =============================================================================


class BusinessCreate(ContactFields):
    business_name: str = Field(min_length=1, max_length=255)
    vat_number: str = Field(min_length=1, max_length=32)


class BusinessUpdate(ContactFields):
    business_name: str | None = Field(default=None, min_length=1, max_length=255)
    vat_number: str | None = Field(default=None, min_length=1, max_length=32)


class BusinessRead(RecordReadBase):
    business_name: str
    vat_number: str


# =============================================================================
# Reporters
# =============================================================================


class ReporterCreate(ContactFields):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    tax_code: str = Field(min_length=1, max_length=32)


class ReporterUpdate(ContactFields):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    tax_code: str | None = Field(default=None, min_length=1, max_length=32)


class ReporterRead(RecordReadBase):
    first_name: str
    last_name: str
    tax_code: str


# kind -> (create, update, read)
RECORD_SCHEMAS: dict[RecordKind, tuple[type[BaseModel], type[BaseModel], type[RecordReadBase]]] = {
    RecordKind.COMPANY: (BusinessCreate, BusinessUpdate, BusinessRead),
    RecordKind.AGENT: (BusinessCreate, BusinessUpdate, BusinessRead),
    RecordKind.JOB_DESK: (BusinessCreate, BusinessUpdate, BusinessRead),
    RecordKind.REPORTER: (ReporterCreate, ReporterUpdate, ReporterRead),
}

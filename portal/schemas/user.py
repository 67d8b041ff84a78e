"""User-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from portal.db.enums import ApprovalState, Role


class UserCreate(BaseModel):
    """Request schema for creating a user account."""

    username: str = Field(min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(min_length=1, max_length=72)
    role: Role
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    organization: str | None = Field(default=None, max_length=255)


class UserUpdate(BaseModel):
    """
    Request schema for updating a user.

    Approval fields are absent: only the approval workflow sets them.
    """

    username: str | None = Field(default=None, min_length=3, max_length=100)
    email: EmailStr | None = None
    role: Role | None = None
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    organization: str | None = Field(default=None, max_length=255)


class PasswordChange(BaseModel):
    current_password: str | None = None
    new_password: str = Field(min_length=1, max_length=72)
    confirm_password: str | None = None


class UserRead(BaseModel):
    """Response schema for reading a user."""

    id: UUID
    username: str
    email: str
    role: str
    first_name: str | None
    last_name: str | None
    organization: str | None
    display_name: str
    managed_by_id: UUID | None
    is_active: bool
    is_approved: bool
    pending_approval: bool
    approved_by_id: UUID | None
    approved_at: datetime | None
    approval_state: ApprovalState
    last_login_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}

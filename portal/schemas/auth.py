"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel, EmailStr

from portal.db.enums import Role


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class MeResponse(BaseModel):
    """Response schema for GET /auth/me and a successful login."""
    user_id: UUID
    username: str
    email: str
    display_name: str
    role: Role

"""FastAPI dependencies for authentication, authorization, and database access."""

import logging
from typing import Generator
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from portal.core.errors import Unauthenticated, ensure_allowed
from portal.core.guard import can_approve_or_reject
from portal.core.roles import as_role
from portal.core.security import decode_session_token
from portal.db.models import User
from portal.db.session import SessionLocal

logger = logging.getLogger(__name__)


# Cookie and header names
COOKIE_NAME = "portal_session"
CSRF_HEADER = "X-Requested-With"
CSRF_HEADER_VALUE = "XMLHttpRequest"


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Get authenticated user from session cookie.

    Validates:
    - Session cookie exists
    - JWT is valid and not expired
    - User exists, is active and holds a known role
    - Token version matches (for revocation support)

    Raises:
        Unauthenticated: Authentication failed
    """
    token = request.cookies.get(COOKIE_NAME)
    if not token:
        raise Unauthenticated()

    try:
        payload = decode_session_token(token)
        user_id = UUID(payload["sub"])
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise Unauthenticated("Invalid session")

    user = db.get(User, user_id)
    if not user:
        raise Unauthenticated("User not found")

    if not user.is_active:
        raise Unauthenticated("Account disabled")

    # Token version check (revocation support)
    if user.token_version != payload.get("token_version"):
        raise Unauthenticated("Session revoked")

    if as_role(user.role) is None:
        logger.warning("User %s has unknown role %r", user.id, user.role)
        raise Unauthenticated("Unknown role")

    request.state.user_id = str(user.id)
    request.state.role = user.role
    return user


def require_approver(user: User = Depends(get_current_user)) -> User:
    """Admin or super admin (approval queue and decisions)."""
    ensure_allowed(can_approve_or_reject(user))
    return user


def require_csrf_header(request: Request) -> None:
    """
    Verify CSRF header on mutations.

    Apply to state-changing endpoints (POST, PATCH, DELETE).

    Raises:
        HTTPException 403: Missing or invalid CSRF header
    """
    if request.headers.get(CSRF_HEADER) != CSRF_HEADER_VALUE:
        raise HTTPException(
            status_code=403,
            detail=f"Missing CSRF header. Include '{CSRF_HEADER}: {CSRF_HEADER_VALUE}'",
        )


"""Authentication router: cookie session login, logout and current user."""

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from portal.core.config import settings
from portal.core.deps import COOKIE_NAME, get_current_user, get_db, require_csrf_header
from portal.core.rate_limit import AUTH_LIMIT, limiter
from portal.core.security import create_session_token
from portal.db.models import User
from portal.schemas.auth import LoginRequest, MeResponse
from portal.services import user_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _me(user: User) -> MeResponse:
    return MeResponse(
        user_id=user.id,
        username=user.username,
        email=user.email,
        display_name=user.display_name,
        role=user.role,
    )


@router.post("/login", response_model=MeResponse, dependencies=[Depends(require_csrf_header)])
@limiter.limit(AUTH_LIMIT)
def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: Session = Depends(get_db),
):
    """
    Exchange email and password for a session cookie.

    Pending accounts are refused until an approver accepts them.
    """
    user = user_service.authenticate(db, body.email, body.password)

    session_token = create_session_token(user.id, user.role, user.token_version)
    response.set_cookie(
        key=COOKIE_NAME,
        value=session_token,
        max_age=settings.JWT_EXPIRES_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )
    logger.info("User %s logged in", user.id)
    return _me(user)


@router.post("/logout", dependencies=[Depends(require_csrf_header)])
def logout(
    response: Response,
    user: User = Depends(get_current_user),
):
    """
    Clear session cookie.

    Requires X-Requested-With header for CSRF protection.
    """
    response.delete_cookie(COOKIE_NAME, path="/")
    logger.info("User %s logged out", user.id)
    return {"status": "logged_out"}


@router.get("/me", response_model=MeResponse)
def get_me(user: User = Depends(get_current_user)):
    """Current authenticated user (bootstraps client auth state)."""
    return _me(user)

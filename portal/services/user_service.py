"""
User Service - account management on top of the authorization guard.

New accounts go through the approval workflow like any other record: an
account created below admin rank stays inactive until an approver accepts it.
"""

import logging
import re
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portal.core.errors import (
    AuthorizationDenied,
    RecordNotFound,
    Unauthenticated,
    ValidationError,
    ensure_allowed,
    translate_integrity_error,
)
from portal.core.guard import (
    DenyReason,
    can_assign_role,
    can_change_password,
    can_create_record,
    can_delete_actor,
    can_view_or_edit_record,
    requires_current_password,
)
from portal.core.ownership import visible_users_clause
from portal.core.security import hash_password, verify_password
from portal.db.enums import RecordKind
from portal.db.models import User, utcnow
from portal.schemas.user import UserCreate, UserUpdate
from portal.services import approval_service

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 10

# 8+ characters with at least one lower-case letter, one upper-case letter and one digit
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d).{8,}$")

# bcrypt refuses longer input
PASSWORD_MAX_BYTES = 72


def validate_password_strength(password: str, field: str = "new_password") -> None:
    if len((password or "").encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValidationError(
            f"Password must be at most {PASSWORD_MAX_BYTES} bytes",
            fields=[field],
        )
    if not PASSWORD_PATTERN.match(password or ""):
        raise ValidationError(
            "Password must be at least 8 characters and include upper-case, "
            "lower-case letters and a digit",
            fields=[field],
        )


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise translate_integrity_error(e) from e


# =============================================================================
# Create / read
# =============================================================================


def create_user(db: Session, actor: User, payload: UserCreate) -> User:
    """
    Create an account managed by ``actor``.

    Raises:
        AuthorizationDenied: actor may not assign the requested role
        ValidationError: weak password
        DuplicateKey: username or email already taken
    """
    ensure_allowed(can_create_record(actor, RecordKind.USER, payload.role))
    validate_password_strength(payload.password, field="password")

    user = User(
        username=payload.username.strip(),
        email=payload.email.lower(),
        password_hash=hash_password(payload.password),
        role=payload.role.value,
        first_name=payload.first_name,
        last_name=payload.last_name,
        organization=payload.organization,
        managed_by_id=actor.id,
    )
    return approval_service.submit(db, actor, RecordKind.USER, user)


def list_users(db: Session, actor: User) -> list[User]:
    """Users visible to the actor, newest first."""
    return (
        db.query(User)
        .filter(visible_users_clause(actor))
        .order_by(User.created_at.desc())
        .all()
    )


def search_users(db: Session, actor: User, query: str, limit: int = SEARCH_LIMIT) -> list[User]:
    """Case-insensitive match on username, email, first or last name."""
    term = (query or "").strip()
    if not term:
        raise ValidationError("Search query is required", fields=["query"])

    pattern = f"%{_escape_like(term)}%"
    return (
        db.query(User)
        .filter(
            visible_users_clause(actor),
            or_(
                User.username.ilike(pattern, escape="\\"),
                User.email.ilike(pattern, escape="\\"),
                User.first_name.ilike(pattern, escape="\\"),
                User.last_name.ilike(pattern, escape="\\"),
            ),
        )
        .order_by(User.username)
        .limit(limit)
        .all()
    )


def get_user(db: Session, actor: User, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if not user:
        raise RecordNotFound("User not found")
    ensure_allowed(can_view_or_edit_record(actor, user))
    return user


# =============================================================================
# Update / delete
# =============================================================================


def update_user(db: Session, actor: User, user_id: UUID, payload: UserUpdate) -> User:
    """
    Update profile fields; a role change also needs ``can_assign_role``.

    Approval fields are not part of ``UserUpdate`` and cannot change here.
    """
    user = get_user(db, actor, user_id)
    data = payload.model_dump(exclude_unset=True)

    new_role = data.pop("role", None)
    if new_role is not None and new_role.value != user.role:
        ensure_allowed(can_assign_role(actor, new_role))
        logger.info("User %s role changed %s -> %s by %s", user.id, user.role, new_role.value, actor.id)
        user.role = new_role.value

    if data.get("email"):
        data["email"] = data["email"].lower()
    if data.get("username"):
        data["username"] = data["username"].strip()

    for field, value in data.items():
        if field in ("username", "email") and value is None:
            continue
        setattr(user, field, value)

    _commit(db)
    db.refresh(user)
    return user


def delete_user(db: Session, actor: User, user_id: UUID) -> None:
    """
    Delete an account. Super admins only, never their own.

    Raises:
        RecordNotFound: no such user
        ValidationError: actor tried to delete itself
        AuthorizationDenied: actor is not a super admin
    """
    target = db.get(User, user_id)
    if not target:
        raise RecordNotFound("User not found")

    decision = can_delete_actor(actor, target)
    if not decision:
        if decision.reason is DenyReason.SELF_DELETION:
            raise ValidationError(decision.message)
        raise AuthorizationDenied.from_decision(decision)

    db.delete(target)
    db.commit()
    logger.info("User %s deleted by %s", user_id, actor.id)


def change_password(
    db: Session,
    actor: User,
    user_id: UUID,
    current_password: str | None,
    new_password: str,
    confirm_password: str | None = None,
) -> None:
    """
    Change a password. Own changes verify the current password first;
    admin resets of another account skip that check.
    """
    target = db.get(User, user_id)
    if not target:
        raise RecordNotFound("User not found")
    ensure_allowed(can_change_password(actor, target))

    if confirm_password is not None and confirm_password != new_password:
        raise ValidationError("Passwords do not match", fields=["confirm_password"])

    validate_password_strength(new_password)

    if requires_current_password(actor, target):
        if not current_password or not verify_password(current_password, target.password_hash):
            raise ValidationError("Current password is incorrect", fields=["current_password"])

    target.password_hash = hash_password(new_password)
    db.commit()
    logger.info("Password changed for user %s by %s", target.id, actor.id)


# =============================================================================
# Authentication
# =============================================================================


def authenticate(db: Session, email: str, password: str) -> User:
    """
    Verify credentials for login.

    Raises:
        Unauthenticated: unknown email, wrong password or disabled account
        AuthorizationDenied: account still pending approval
    """
    user = db.query(User).filter(User.email == email.lower()).first()
    if not user or not verify_password(password, user.password_hash):
        raise Unauthenticated("Invalid email or password")

    if user.pending_approval:
        raise AuthorizationDenied("Account pending approval", reason=DenyReason.PENDING_APPROVAL)

    if not user.is_active:
        raise Unauthenticated("Account disabled")

    user.last_login_at = utcnow()
    db.commit()
    db.refresh(user)
    return user


def revoke_sessions(db: Session, user: User) -> int:
    """Invalidate every issued session of ``user``; returns the new token version."""
    user.token_version += 1
    db.commit()
    logger.info("Sessions revoked for user %s", user.id)
    return user.token_version

"""Users router - account management."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from portal.core.deps import get_current_user, get_db, require_csrf_header
from portal.db.models import User
from portal.schemas.user import PasswordChange, UserCreate, UserRead, UserUpdate
from portal.services import user_service

router = APIRouter()


@router.post(
    "",
    response_model=UserRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_user(
    data: UserCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create an account. Below admin rank it stays inactive until approved."""
    return user_service.create_user(db, user, data)


@router.get("", response_model=list[UserRead])
def list_users(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return user_service.list_users(db, user)


@router.get("/search", response_model=list[UserRead])
def search_users(
    query: str = Query(""),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Search by username, email or name (max 10 results)."""
    return user_service.search_users(db, user, query)


@router.get("/{user_id}", response_model=UserRead)
def get_user(
    user_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return user_service.get_user(db, user, user_id)


@router.patch(
    "/{user_id}",
    response_model=UserRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_user(
    user_id: UUID,
    data: UserUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return user_service.update_user(db, user, user_id, data)


@router.delete(
    "/{user_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_user(
    user_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete an account (super admin only, never your own)."""
    user_service.delete_user(db, user, user_id)


@router.post(
    "/{user_id}/password",
    dependencies=[Depends(require_csrf_header)],
)
def change_password(
    user_id: UUID,
    data: PasswordChange,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Change your own password, or reset another user's as an admin."""
    user_service.change_password(
        db,
        user,
        user_id,
        current_password=data.current_password,
        new_password=data.new_password,
        confirm_password=data.confirm_password,
    )
    return {"status": "password_changed"}

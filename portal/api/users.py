"""User administration (admin only)."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portal.api.deps import require_action
from portal.core.database import get_db
from portal.schemas.auth import CurrentUser
from portal.schemas.users import UserItem, UsersListResponse, UserStats, UserUpdate
from portal.services import users

router = APIRouter()


@router.get("", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[CurrentUser, Depends(require_action("users.list"))],
    db: Annotated[Session, Depends(get_db)],
) -> UsersListResponse:
    return UsersListResponse(users=[UserItem.model_validate(u) for u in users.list_users(db)])


@router.get("/stats", response_model=UserStats)
def get_stats(
    _admin: Annotated[CurrentUser, Depends(require_action("users.stats"))],
    db: Annotated[Session, Depends(get_db)],
) -> UserStats:
    return UserStats(**users.user_stats(db))


@router.patch("/{user_id}", response_model=UserItem)
def update_user(
    user_id: int,
    body: UserUpdate,
    admin: Annotated[CurrentUser, Depends(require_action("users.update"))],
    db: Annotated[Session, Depends(get_db)],
) -> UserItem:
    user = users.update_user(db, admin, user_id, **body.model_dump(exclude_unset=True))
    return UserItem.model_validate(user)


@router.post("/{user_id}/toggle-status", response_model=UserItem)
def toggle_status(
    user_id: int,
    admin: Annotated[CurrentUser, Depends(require_action("users.update"))],
    db: Annotated[Session, Depends(get_db)],
) -> UserItem:
    return UserItem.model_validate(users.toggle_status(db, admin, user_id))

"""
Online users listing - /api/users/*

The listing reads the persisted status column, which mirrors the gateway's
live sessions on a best-effort basis. Realtime clients should rely on the
gateway's online-users event instead.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rest_api.repositories import get_user_repository
from shared.config.constants import UserStatus
from shared.infrastructure.db import get_db
from shared.utils.schemas import OnlineUserOutput


router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/online", response_model=list[OnlineUserOutput])
def list_online_users(db: Session = Depends(get_db)) -> list[OnlineUserOutput]:
    users = get_user_repository(db).find_by_status(UserStatus.ONLINE)
    return [
        OnlineUserOutput(id=user.id, username=user.username, avatar=user.avatar, status=UserStatus.ONLINE)
        for user in users
    ]

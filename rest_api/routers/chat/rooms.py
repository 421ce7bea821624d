"""
Room catalogue and message history - /api/rooms/*
"""

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from rest_api.repositories import get_message_repository, get_room_repository, to_message_output
from shared.config.constants import Limits
from shared.config.settings import settings
from shared.infrastructure.db import get_db
from shared.utils.exceptions import RoomNotFoundError
from shared.utils.schemas import MessageOutput, RoomOutput


router = APIRouter(prefix="/api/rooms", tags=["rooms"])


@router.get("", response_model=list[RoomOutput])
def list_rooms(db: Session = Depends(get_db)) -> list[RoomOutput]:
    """All rooms, ordered by name."""
    return [RoomOutput.model_validate(room) for room in get_room_repository(db).find_all()]


@router.get("/{room_id}", response_model=RoomOutput)
def get_room(
    room_id: int = Path(gt=0, le=Limits.MAX_ENTITY_ID),
    db: Session = Depends(get_db),
) -> RoomOutput:
    room = get_room_repository(db).find_by_id(room_id)
    if room is None:
        raise RoomNotFoundError(room_id)
    return RoomOutput.model_validate(room)


@router.get("/{room_id}/messages", response_model=list[MessageOutput])
def list_messages(
    room_id: int = Path(gt=0, le=Limits.MAX_ENTITY_ID),
    limit: int = Query(default=settings.chat_history_limit, ge=1, le=Limits.MAX_HISTORY_LIMIT),
    db: Session = Depends(get_db),
) -> list[MessageOutput]:
    """
    Most recent messages of a room, oldest first.
    """
    if get_room_repository(db).find_by_id(room_id) is None:
        raise RoomNotFoundError(room_id)

    messages = get_message_repository(db).list_recent(room_id, limit)
    return [to_message_output(message) for message in messages]

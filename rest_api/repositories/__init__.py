"""
Repository Pattern implementation.
Centralizes data access for the REST API and the gateway's ChatStore.

Usage:
    from rest_api.repositories import get_message_repository

    repo = get_message_repository(db)
    messages = repo.list_recent(room_id=1, limit=100)
"""

from .base import BaseRepository
from .user import UserRepository, get_user_repository
from .room import RoomRepository, get_room_repository
from .message import MessageRepository, get_message_repository, to_message_output

__all__ = [
    # Base
    "BaseRepository",
    # User
    "UserRepository",
    "get_user_repository",
    # Room
    "RoomRepository",
    "get_room_repository",
    # Message
    "MessageRepository",
    "get_message_repository",
    "to_message_output",
]

"""
Chat Store - persistence facade for the gateway.

Runs synchronous repository calls in a worker thread, bounded by a timeout,
so database access never blocks the event loop. Results are returned as
JSON-ready dicts; every failure surfaces as PersistenceError.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, TypeVar

from sqlalchemy.orm import Session, sessionmaker

from rest_api.repositories import (
    get_message_repository,
    get_room_repository,
    get_user_repository,
    to_message_output,
)
from shared.config.constants import UserStatus
from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.infrastructure.db import SessionLocal, safe_commit
from shared.utils.schemas import RoomOutput, UserInfo
from ws_gateway.components.core.errors import PersistenceError

logger = get_logger(__name__)

T = TypeVar("T")


class ChatStore:
    """
    Async access to users, rooms and messages.

    Usage:
        store = ChatStore()
        user = await store.find_user_by_id(1)
        history = await store.list_messages(room_id=1, limit=100)
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] = SessionLocal,
        timeout: float = settings.db_lookup_timeout,
    ):
        """
        Args:
            session_factory: Creates database sessions.
            timeout: Seconds before a call is abandoned.
        """
        self._session_factory = session_factory
        self._timeout = timeout

        self._calls = 0
        self._timeouts = 0
        self._errors = 0

    async def _run(self, operation: str, func: Callable[..., T], *args: Any) -> T:
        self._calls += 1
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(func, *args),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            self._timeouts += 1
            logger.error("ChatStore call timed out", operation=operation, timeout=self._timeout)
            raise PersistenceError(operation, f"timeout after {self._timeout}s") from e
        except Exception as e:
            self._errors += 1
            logger.error("ChatStore call failed", operation=operation, error=str(e))
            raise PersistenceError(operation, str(e)) from e

    # =========================================================================
    # Users
    # =========================================================================

    async def find_user_by_id(self, user_id: int) -> dict[str, Any] | None:
        """Public fields of a user, or None when unknown."""
        return await self._run("find_user_by_id", self._find_user_by_id_sync, user_id)

    def _find_user_by_id_sync(self, user_id: int) -> dict[str, Any] | None:
        with self._session_factory() as db:
            user = get_user_repository(db).find_by_id(user_id)
            if user is None:
                return None
            return UserInfo.model_validate(user).model_dump()

    async def set_user_status(self, user_id: int, status: str) -> bool:
        """Write the advisory status column. Returns False for unknown users."""
        return await self._run("set_user_status", self._set_user_status_sync, user_id, status)

    def _set_user_status_sync(self, user_id: int, status: str) -> bool:
        with self._session_factory() as db:
            updated = get_user_repository(db).set_status(user_id, status)
            safe_commit(db)
            return updated

    async def reset_all_statuses(self, status: str = UserStatus.OFFLINE) -> int:
        """Reset every persisted status, returning the number of rows changed."""
        return await self._run("reset_all_statuses", self._reset_all_statuses_sync, status)

    def _reset_all_statuses_sync(self, status: str) -> int:
        with self._session_factory() as db:
            changed = get_user_repository(db).reset_all_statuses(status)
            safe_commit(db)
            return changed

    # =========================================================================
    # Rooms
    # =========================================================================

    async def list_rooms(self) -> list[dict[str, Any]]:
        return await self._run("list_rooms", self._list_rooms_sync)

    def _list_rooms_sync(self) -> list[dict[str, Any]]:
        with self._session_factory() as db:
            rooms = get_room_repository(db).find_all()
            return [RoomOutput.model_validate(room).model_dump() for room in rooms]

    async def get_room(self, room_id: int) -> dict[str, Any] | None:
        return await self._run("get_room", self._get_room_sync, room_id)

    def _get_room_sync(self, room_id: int) -> dict[str, Any] | None:
        with self._session_factory() as db:
            room = get_room_repository(db).find_by_id(room_id)
            if room is None:
                return None
            return RoomOutput.model_validate(room).model_dump()

    # =========================================================================
    # Messages
    # =========================================================================

    async def insert_message(self, room_id: int, user_id: int, text: str) -> dict[str, Any]:
        """Persist a message and return it joined with its author."""
        return await self._run("insert_message", self._insert_message_sync, room_id, user_id, text)

    def _insert_message_sync(self, room_id: int, user_id: int, text: str) -> dict[str, Any]:
        with self._session_factory() as db:
            message = get_message_repository(db).create(room_id, user_id, text)
            output = to_message_output(message)
            safe_commit(db)
            return output.model_dump(mode="json")

    async def list_messages(self, room_id: int, limit: int) -> list[dict[str, Any]]:
        """Most recent `limit` messages of a room, oldest first."""
        return await self._run("list_messages", self._list_messages_sync, room_id, limit)

    def _list_messages_sync(self, room_id: int, limit: int) -> list[dict[str, Any]]:
        with self._session_factory() as db:
            messages = get_message_repository(db).list_recent(room_id, limit)
            return [to_message_output(m).model_dump(mode="json") for m in messages]

    def get_stats(self) -> dict[str, Any]:
        return {
            "timeout": self._timeout,
            "calls": self._calls,
            "timeouts": self._timeouts,
            "errors": self._errors,
        }

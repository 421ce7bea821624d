"""
Tests for the gateway's ChatStore against the in-memory database.
"""

import asyncio
import time

import pytest
from sqlalchemy.exc import OperationalError

from rest_api.models import Room, User
from rest_api.seed import seed_rooms
from shared.config.constants import DEFAULT_ROOMS
from shared.infrastructure.db import SessionLocal
from ws_gateway.components.core.errors import PersistenceError
from ws_gateway.components.data.chat_store import ChatStore


class TestChatStore:
    """Repository calls run off the event loop and return plain dicts."""

    @pytest.mark.asyncio
    async def test_find_user(self, db_session, seed_user):
        store = ChatStore()

        user = await store.find_user_by_id(seed_user.id)

        assert user == {
            "id": seed_user.id,
            "username": "alice",
            "avatar": "https://example.test/alice.png",
        }
        assert await store.find_user_by_id(seed_user.id + 100) is None

    @pytest.mark.asyncio
    async def test_status_writes(self, db_session, seed_user):
        store = ChatStore()

        assert await store.set_user_status(seed_user.id, "online") is True
        assert await store.set_user_status(seed_user.id + 100, "online") is False
        assert await store.reset_all_statuses() == 1

        db_session.expire_all()
        assert db_session.get(User, seed_user.id).status == "offline"

    @pytest.mark.asyncio
    async def test_rooms(self, db_session, seed_room):
        store = ChatStore()

        rooms = await store.list_rooms()

        assert rooms == [
            {"id": seed_room.id, "name": "lobby", "type": "text", "description": "Test lobby"}
        ]
        assert (await store.get_room(seed_room.id))["name"] == "lobby"
        assert await store.get_room(seed_room.id + 1) is None

    @pytest.mark.asyncio
    async def test_insert_and_list_messages(self, db_session, seed_user, seed_room):
        store = ChatStore()

        stored = await store.insert_message(seed_room.id, seed_user.id, "hello")
        await store.insert_message(seed_room.id, seed_user.id, "again")

        assert stored["content"] == "hello"
        assert stored["username"] == "alice"
        assert isinstance(stored["created_at"], str)

        history = await store.list_messages(seed_room.id, limit=10)
        assert [m["content"] for m in history] == ["hello", "again"]
        assert await store.list_messages(seed_room.id, limit=1) == history[-1:]

    @pytest.mark.asyncio
    async def test_database_error_becomes_persistence_error(self, db_session):
        def broken_session():
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

        store = ChatStore(session_factory=broken_session)

        with pytest.raises(PersistenceError) as exc_info:
            await store.list_rooms()
        assert exc_info.value.operation == "list_rooms"
        assert store.get_stats()["errors"] == 1

    @pytest.mark.asyncio
    async def test_driver_error_becomes_persistence_error(self, db_session, seed_room):
        store = ChatStore()

        with pytest.raises(PersistenceError) as exc_info:
            await store.find_user_by_id(2**64)
        assert exc_info.value.operation == "find_user_by_id"

        with pytest.raises(PersistenceError):
            await store.list_messages(2**64, limit=10)
        assert store.get_stats()["errors"] == 2

    @pytest.mark.asyncio
    async def test_rooms_ordered_by_name(self, db_session):
        seed_rooms(db_session)
        store = ChatStore()

        names = [room["name"] for room in await store.list_rooms()]

        assert names == sorted(name for name, _, _ in DEFAULT_ROOMS)

    @pytest.mark.asyncio
    async def test_timeout_becomes_persistence_error(self, db_session):
        def slow_session():
            time.sleep(0.5)
            return SessionLocal()

        store = ChatStore(session_factory=slow_session, timeout=0.05)

        with pytest.raises(PersistenceError):
            await store.list_rooms()
        assert store.get_stats()["timeouts"] == 1
        # Let the worker thread finish before the tables are dropped
        await asyncio.sleep(0.6)


class TestSeed:

    def test_seed_is_idempotent(self, db_session):
        assert seed_rooms(db_session) == len(DEFAULT_ROOMS)
        assert seed_rooms(db_session) == 0
        assert db_session.query(Room).count() == len(DEFAULT_ROOMS)

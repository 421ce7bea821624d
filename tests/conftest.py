"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Must be set before the settings module is imported anywhere
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ.setdefault("ENVIRONMENT", "development")

from datetime import datetime, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketState

from rest_api.main import app
from rest_api.models import Base, Room, User
from shared.config.constants import RoomType
from shared.infrastructure.db import SessionLocal, engine, get_db
from shared.security.password import hash_password
from shared.security.rate_limit import limiter
from ws_gateway.components.core.errors import PersistenceError
from ws_gateway.connection_manager import ConnectionManager


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.

    The in-memory engine uses a single shared connection, so the gateway's
    ChatStore sees the same data through its own sessions.
    """
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database session override.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    limiter.reset()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def seed_user(db_session):
    """Create a user with a known password."""
    user = User(
        username="alice",
        password=hash_password("secret123", rounds=4),
        avatar="https://example.test/alice.png",
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def seed_room(db_session):
    """Create a text room."""
    room = Room(name="lobby", type=RoomType.TEXT, description="Test lobby")
    db_session.add(room)
    db_session.commit()
    db_session.refresh(room)
    return room


# =============================================================================
# Gateway fakes
# =============================================================================


class FakeWebSocket:
    """
    Records frames sent by the gateway.

    Mirrors the parts of starlette's WebSocket the gateway touches.
    """

    def __init__(self, fail_sends: bool = False):
        self.sent: list[dict[str, Any]] = []
        self.texts: list[str] = []
        self.accepted = False
        self.closed_with: int | None = None
        self.fail_sends = fail_sends
        self.headers: dict[str, str] = {}
        self.client = None
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, payload: dict[str, Any]) -> None:
        if self.fail_sends:
            raise RuntimeError("socket closed")
        self.sent.append(payload)

    async def send_text(self, text: str) -> None:
        self.texts.append(text)

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.closed_with = code
        self.application_state = WebSocketState.DISCONNECTED

    def clear(self) -> None:
        """Forget frames already received."""
        self.sent.clear()

    def events(self) -> list[str]:
        """Event names received, in order."""
        return [f["event"] for f in self.sent]

    def data_of(self, event: str) -> list[Any]:
        """Payloads of every received frame with the given event name."""
        return [f["data"] for f in self.sent if f["event"] == event]


class FakeChatStore:
    """In-memory ChatStore with per-operation failure switches."""

    def __init__(self):
        self.users: dict[int, dict[str, Any]] = {
            1: {"id": 1, "username": "A", "avatar": "a.png"},
            2: {"id": 2, "username": "B", "avatar": "b.png"},
            3: {"id": 3, "username": "C", "avatar": None},
        }
        self.rooms: dict[int, dict[str, Any]] = {
            1: {"id": 1, "name": "general", "type": "text", "description": "General chat"},
            2: {"id": 2, "name": "random", "type": "text", "description": "Off-topic"},
            3: {"id": 3, "name": "voice-chat", "type": "voice", "description": "Voice"},
        }
        self.messages: list[dict[str, Any]] = []
        self.statuses: list[tuple[int, str]] = []
        self.failing: set[str] = set()

    def _check(self, operation: str) -> None:
        if operation in self.failing:
            raise PersistenceError(operation, "database unavailable")

    async def find_user_by_id(self, user_id):
        self._check("find_user_by_id")
        return self.users.get(user_id)

    async def set_user_status(self, user_id, status):
        self._check("set_user_status")
        self.statuses.append((user_id, status))
        return user_id in self.users

    async def reset_all_statuses(self, status="offline"):
        self._check("reset_all_statuses")
        return 0

    async def list_rooms(self):
        self._check("list_rooms")
        return list(self.rooms.values())

    async def get_room(self, room_id):
        self._check("get_room")
        return self.rooms.get(room_id)

    async def insert_message(self, room_id, user_id, text):
        self._check("insert_message")
        user = self.users[user_id]
        message = {
            "id": len(self.messages) + 1,
            "room_id": room_id,
            "user_id": user_id,
            "content": text,
            "created_at": datetime.now(timezone.utc).isoformat(),
            "username": user["username"],
            "avatar": user["avatar"],
        }
        self.messages.append(message)
        return message

    async def list_messages(self, room_id, limit):
        self._check("list_messages")
        return [m for m in self.messages if m["room_id"] == room_id][-limit:]

    def get_stats(self):
        return {"calls": 0}


@pytest.fixture
def make_ws():
    """Factory for recording fake sockets."""
    return FakeWebSocket


@pytest.fixture
def store():
    return FakeChatStore()


@pytest.fixture
def manager(store):
    """A ConnectionManager wired to the in-memory store."""
    return ConnectionManager(store=store, max_total_connections=10)


@pytest.fixture
def connect(manager):
    """
    Factory that opens a fake connection, optionally authenticating and
    joining a room.
    """
    async def _connect(
        user_id: int | None = None,
        room_id: int | None = None,
        using: ConnectionManager | None = None,
    ):
        target = using or manager
        ws = FakeWebSocket()
        connection_id = await target.connect(ws)
        if user_id is not None:
            await target.authenticate(connection_id, user_id)
        if room_id is not None:
            await target.join_room(connection_id, room_id)
        return connection_id, ws

    return _connect

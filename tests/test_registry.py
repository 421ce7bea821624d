"""
Tests for the connection registry and the room / voice trackers.
"""

import pytest

from ws_gateway.components.connection.registry import Connection, ConnectionRegistry, Session
from ws_gateway.components.core.errors import Unauthenticated
from ws_gateway.components.presence.rooms import RoomMembershipTracker
from ws_gateway.components.presence.voice import VoicePresence, VoicePresenceTracker


def _session(connection_id: str, user_id: int, username: str = "user") -> Session:
    return Session(connection_id=connection_id, user_id=user_id, username=username)


def _presence(connection_id: str, room_id: int, user_id: int = 1) -> VoicePresence:
    return VoicePresence(
        connection_id=connection_id,
        user_id=user_id,
        username=f"user{user_id}",
        avatar=None,
        room_id=room_id,
    )


class TestConnectionRegistry:
    """Sessions are keyed by connection and indexed by user."""

    def test_bind_replaces_session(self):
        """A second bind replaces the Session rather than adding one."""
        registry = ConnectionRegistry()
        registry.add(Connection(connection_id="c1", websocket=object()))

        registry.bind(_session("c1", 1, "A"))
        replaced = registry.bind(_session("c1", 2, "B"))

        assert replaced.user_id == 1
        assert registry.get_session("c1").user_id == 2
        assert len(registry.all_sessions()) == 1
        assert not registry.has_live_session(1)
        assert registry.has_live_session(2)

    def test_bind_unknown_connection_raises(self):
        registry = ConnectionRegistry()
        with pytest.raises(KeyError):
            registry.bind(_session("missing", 1))

    def test_duplicate_add_rejected(self):
        registry = ConnectionRegistry()
        registry.add(Connection(connection_id="c1", websocket=object()))
        with pytest.raises(ValueError):
            registry.add(Connection(connection_id="c1", websocket=object()))

    def test_require_session_raises_when_unauthenticated(self):
        registry = ConnectionRegistry()
        registry.add(Connection(connection_id="c1", websocket=object()))
        with pytest.raises(Unauthenticated):
            registry.require_session("c1")

    def test_user_with_two_connections_stays_live_until_both_drop(self):
        registry = ConnectionRegistry()
        for cid in ("c1", "c2"):
            registry.add(Connection(connection_id=cid, websocket=object()))
            registry.bind(_session(cid, 7))

        registry.drop("c1")
        assert registry.has_live_session(7)

        registry.drop("c2")
        assert not registry.has_live_session(7)
        assert registry.get_stats() == {"connections": 0, "sessions": 0, "distinct_users": 0}

    def test_drop_is_idempotent(self):
        registry = ConnectionRegistry()
        registry.add(Connection(connection_id="c1", websocket=object()))
        registry.bind(_session("c1", 1))

        connection, session = registry.drop("c1")
        assert connection is not None and session is not None
        assert registry.drop("c1") == (None, None)
        assert "c1" not in registry

    def test_public_fields(self):
        session = Session(connection_id="c1", user_id=3, username="carol", avatar="x.png")
        assert session.public() == {"id": 3, "username": "carol", "avatar": "x.png"}


class TestRoomMembershipTracker:
    """A connection occupies at most one room."""

    def test_join_moves_connection(self):
        rooms = RoomMembershipTracker()
        assert rooms.join("c1", 1) is None
        assert rooms.join("c1", 2) == 1

        assert rooms.current_room("c1") == 2
        assert rooms.members(1) == []
        assert rooms.members(2) == ["c1"]

    def test_rejoining_same_room_changes_nothing(self):
        rooms = RoomMembershipTracker()
        rooms.join("c1", 1)
        rooms.join("c2", 1)

        assert rooms.join("c1", 1) == 1
        assert rooms.members(1) == ["c1", "c2"]

    def test_members_keep_join_order(self):
        rooms = RoomMembershipTracker()
        for cid in ("c3", "c1", "c2"):
            rooms.join(cid, 5)
        assert rooms.members(5) == ["c3", "c1", "c2"]
        assert rooms.others(5, "c1") == ["c3", "c2"]

    def test_leave(self):
        rooms = RoomMembershipTracker()
        rooms.join("c1", 1)

        assert rooms.leave("c1") == 1
        assert rooms.leave("c1") is None
        assert rooms.get_stats() == {"occupied_rooms": 0, "connections_in_rooms": 0}


class TestVoicePresenceTracker:
    """The voice roster of a room is exactly its bound presences."""

    def test_join_replaces_previous_presence(self):
        voice = VoicePresenceTracker()
        voice.join(_presence("c1", 1))
        replaced = voice.join(_presence("c1", 2))

        assert replaced.room_id == 1
        assert voice.participants(1) == []
        assert voice.participants(2) == ["c1"]

    def test_roster_has_no_duplicates(self):
        voice = VoicePresenceTracker()
        voice.join(_presence("c1", 1))
        voice.join(_presence("c1", 1))
        assert voice.participants(1) == ["c1"]

    def test_leave_absent_is_noop(self):
        voice = VoicePresenceTracker()
        assert voice.leave("nobody") is None

    def test_speaking_flag(self):
        voice = VoicePresenceTracker()
        voice.join(_presence("c1", 1))
        voice.join(_presence("c2", 1, user_id=2))

        assert voice.set_speaking("c2", True) is True
        assert voice.set_speaking("c2", True) is False
        assert voice.speaking_in(1) == ["c2"]
        assert voice.set_speaking("absent", True) is False

    def test_public_roster_entry(self):
        presence = _presence("c1", 4, user_id=9)
        assert presence.public() == {
            "id": 9,
            "username": "user9",
            "avatar": None,
            "connectionId": "c1",
            "speaking": False,
        }

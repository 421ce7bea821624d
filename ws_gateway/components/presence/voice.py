"""
Voice Presence Tracker.

Tracks which authenticated connections are active in a room's voice
sub-channel. A presence is bound to the room it was joined in and stays
there until it leaves or is rebound by another join.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(eq=False)
class VoicePresence:
    """One connection's membership in a room's voice sub-channel."""

    connection_id: str
    user_id: int
    username: str
    avatar: str | None
    room_id: int
    speaking: bool = False

    def public(self) -> dict[str, Any]:
        """Roster entry as sent in voice-users-update."""
        return {
            "id": self.user_id,
            "username": self.username,
            "avatar": self.avatar,
            "connectionId": self.connection_id,
            "speaking": self.speaking,
        }


class VoicePresenceTracker:
    """
    Index of connection id -> VoicePresence and room id -> voice roster.

    Rosters keep join order so snapshots are stable between pushes.
    """

    def __init__(self) -> None:
        self._presences: dict[str, VoicePresence] = {}
        self._by_room: dict[int, dict[str, None]] = {}

    def get(self, connection_id: str) -> VoicePresence | None:
        return self._presences.get(connection_id)

    def join(self, presence: VoicePresence) -> VoicePresence | None:
        """
        Record a presence, replacing any previous one of the same connection.

        Returns:
            The replaced presence, if any.
        """
        previous = self.leave(presence.connection_id)
        self._presences[presence.connection_id] = presence
        self._by_room.setdefault(presence.room_id, {})[presence.connection_id] = None
        return previous

    def leave(self, connection_id: str) -> VoicePresence | None:
        """
        Remove a connection's presence. Safe to call when absent.

        Returns:
            The removed presence, or None.
        """
        presence = self._presences.pop(connection_id, None)
        if presence is None:
            return None

        roster = self._by_room.get(presence.room_id)
        if roster is not None:
            roster.pop(connection_id, None)
            if not roster:
                del self._by_room[presence.room_id]
        return presence

    def participants(self, room_id: int) -> list[str]:
        """Connection ids present in a room's voice channel, in join order."""
        return list(self._by_room.get(room_id, ()))

    def roster(self, room_id: int) -> list[VoicePresence]:
        return [self._presences[cid] for cid in self._by_room.get(room_id, ())]

    def set_speaking(self, connection_id: str, speaking: bool) -> bool:
        """
        Update the speaking flag.

        Returns:
            True if the flag changed.
        """
        presence = self._presences.get(connection_id)
        if presence is None or presence.speaking == speaking:
            return False
        presence.speaking = speaking
        return True

    def speaking_in(self, room_id: int) -> list[str]:
        """Connection ids currently speaking in a room."""
        return [p.connection_id for p in self.roster(room_id) if p.speaking]

    def get_stats(self) -> dict[str, int]:
        return {
            "voice_rooms": len(self._by_room),
            "voice_participants": len(self._presences),
        }

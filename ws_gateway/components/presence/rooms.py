"""
Room Membership Tracker.

Tracks the single text room each connection currently occupies and the
roster of every room. Rosters keep join order.
"""

from __future__ import annotations


class RoomMembershipTracker:
    """
    Index of connection id -> room id and room id -> ordered connection ids.

    A connection belongs to at most one room. join() moves it, leave()
    removes it. Empty rooms are dropped from the index.
    """

    def __init__(self) -> None:
        self._room_of: dict[str, int] = {}
        # dict used as an insertion-ordered set
        self._members: dict[int, dict[str, None]] = {}

    def join(self, connection_id: str, room_id: int) -> int | None:
        """
        Place a connection in a room, leaving its previous room first.

        Joining the room the connection already occupies changes nothing.

        Returns:
            The room the connection occupied before the call, if any.
        """
        previous = self._room_of.get(connection_id)
        if previous == room_id:
            return previous
        if previous is not None:
            self._discard(connection_id, previous)

        self._room_of[connection_id] = room_id
        self._members.setdefault(room_id, {})[connection_id] = None
        return previous

    def leave(self, connection_id: str) -> int | None:
        """
        Remove a connection from its room.

        Returns:
            The vacated room id, or None if the connection had no room.
        """
        room_id = self._room_of.pop(connection_id, None)
        if room_id is not None:
            self._discard(connection_id, room_id)
        return room_id

    def current_room(self, connection_id: str) -> int | None:
        return self._room_of.get(connection_id)

    def members(self, room_id: int) -> list[str]:
        """Connection ids in a room, in join order."""
        return list(self._members.get(room_id, ()))

    def others(self, room_id: int, connection_id: str) -> list[str]:
        """Room members except the given connection."""
        return [cid for cid in self._members.get(room_id, ()) if cid != connection_id]

    def _discard(self, connection_id: str, room_id: int) -> None:
        members = self._members.get(room_id)
        if members is None:
            return
        members.pop(connection_id, None)
        if not members:
            del self._members[room_id]

    def get_stats(self) -> dict[str, int]:
        return {
            "occupied_rooms": len(self._members),
            "connections_in_rooms": len(self._room_of),
        }

"""
Presence Broadcaster.

Computes presence snapshots from the in-memory trackers and pushes them
to the connections they concern. Online status is global, room and voice
notifications are scoped to the affected room.
"""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

from shared.config.constants import UserStatus
from ws_gateway.components.events.types import OutboundEvent, frame

if TYPE_CHECKING:
    from ws_gateway.components.connection.registry import ConnectionRegistry, Session
    from ws_gateway.components.presence.rooms import RoomMembershipTracker
    from ws_gateway.components.presence.voice import VoicePresence, VoicePresenceTracker
    from ws_gateway.core.connection.broadcaster import ConnectionBroadcaster


class PresenceBroadcaster:
    """
    Stateless aggregation over the registry and trackers.

    Voice notifications for a room reach both the text members of that
    room and its voice participants, since a voice presence stays bound to
    its room after its owner moves to another text room.
    """

    def __init__(
        self,
        registry: "ConnectionRegistry",
        rooms: "RoomMembershipTracker",
        voice: "VoicePresenceTracker",
        sender: "ConnectionBroadcaster",
    ) -> None:
        self._registry = registry
        self._rooms = rooms
        self._voice = voice
        self._sender = sender

    # =========================================================================
    # Snapshots
    # =========================================================================

    def online_snapshot(self) -> list[dict[str, Any]]:
        """
        One entry per user with at least one live Session.

        Users with several connections appear once, at the position of
        their earliest session.
        """
        seen: set[int] = set()
        users: list[dict[str, Any]] = []
        for session in self._registry.all_sessions():
            if session.user_id in seen:
                continue
            seen.add(session.user_id)
            users.append({**session.public(), "status": UserStatus.ONLINE})
        return users

    def voice_roster(self, room_id: int) -> list[dict[str, Any]]:
        return [presence.public() for presence in self._voice.roster(room_id)]

    def voice_recipients(self, room_id: int, exclude: str | None = None) -> list[str]:
        """Text members of a room plus its voice participants, without duplicates."""
        recipients = dict.fromkeys(self._rooms.members(room_id))
        recipients.update(dict.fromkeys(self._voice.participants(room_id)))
        return [cid for cid in recipients if cid != exclude]

    # =========================================================================
    # Pushes
    # =========================================================================

    async def send(self, connection_id: str, event: OutboundEvent, data: Any) -> bool:
        return await self._sender.send(connection_id, frame(event, data))

    async def push_online_users(self) -> int:
        """Send the online snapshot to every connection."""
        return await self._sender.broadcast(
            frame(OutboundEvent.ONLINE_USERS, {"users": self.online_snapshot()})
        )

    async def notify_room(
        self,
        room_id: int,
        event: OutboundEvent,
        data: Any,
        exclude: str | None = None,
    ) -> int:
        """Send a frame to the text members of a room."""
        targets = [cid for cid in self._rooms.members(room_id) if cid != exclude]
        return await self._sender.send_many(targets, frame(event, data), context=event.value)

    async def room_joined(self, session: "Session", room_id: int) -> int:
        return await self.notify_room(
            room_id,
            OutboundEvent.USER_JOINED_ROOM,
            {"username": session.username, "avatar": session.avatar},
            exclude=session.connection_id,
        )

    async def room_left(self, session: "Session", room_id: int) -> int:
        return await self.notify_room(
            room_id,
            OutboundEvent.USER_LEFT_ROOM,
            {"username": session.username, "avatar": session.avatar},
            exclude=session.connection_id,
        )

    async def voice_joined(self, presence: "VoicePresence") -> None:
        """Announce a new voice participant, then push the room's roster."""
        await self._sender.send_many(
            self.voice_recipients(presence.room_id, exclude=presence.connection_id),
            frame(
                OutboundEvent.USER_JOINED_VOICE,
                {
                    "username": presence.username,
                    "avatar": presence.avatar,
                    "connectionId": presence.connection_id,
                },
            ),
            context=OutboundEvent.USER_JOINED_VOICE.value,
        )
        await self.push_voice_roster(presence.room_id)

    async def voice_left(self, presence: "VoicePresence") -> None:
        """Announce a departed voice participant, then push the room's roster."""
        await self._sender.send_many(
            self.voice_recipients(presence.room_id, exclude=presence.connection_id),
            frame(OutboundEvent.USER_LEFT_VOICE, {"username": presence.username}),
            context=OutboundEvent.USER_LEFT_VOICE.value,
        )
        await self.push_voice_roster(presence.room_id)
        if presence.speaking:
            await self.push_speaking(presence.room_id)

    async def push_voice_roster(self, room_id: int) -> int:
        return await self._sender.send_many(
            self.voice_recipients(room_id),
            frame(OutboundEvent.VOICE_USERS_UPDATE, {"users": self.voice_roster(room_id)}),
            context=OutboundEvent.VOICE_USERS_UPDATE.value,
        )

    async def push_speaking(self, room_id: int) -> int:
        return await self._sender.send_many(
            self.voice_recipients(room_id),
            frame(OutboundEvent.SPEAKING_USERS_UPDATE, {"users": self._voice.speaking_in(room_id)}),
            context=OutboundEvent.SPEAKING_USERS_UPDATE.value,
        )

    async def announce_peer_id(self, presence: "VoicePresence", peer_id: str) -> int:
        """Forward a peer id to the other voice participants of the room."""
        targets = [
            cid for cid in self._voice.participants(presence.room_id)
            if cid != presence.connection_id
        ]
        return await self._sender.send_many(
            targets,
            frame(
                OutboundEvent.USER_PEER_ID,
                {"connectionId": presence.connection_id, "peerId": peer_id},
            ),
            context=OutboundEvent.USER_PEER_ID.value,
        )

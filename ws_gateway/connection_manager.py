"""
WebSocket Connection Manager.

Thin orchestrator that composes modular components into the session and
presence coordination core:
- ConnectionRegistry: connection -> Session
- RoomMembershipTracker: connection -> text room
- VoicePresenceTracker: connection -> voice presence, room -> voice roster
- SignalingRelay: point-to-point WebRTC negotiation forwarding
- PresenceBroadcaster: snapshots and room-scoped notifications
- ChatStore: persistence, reached only through awaited calls

Every operation mutates the in-memory trackers synchronously before its
first await, then sends notifications. Persisted status writes come after
every notification of the operation.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, TYPE_CHECKING
from uuid import uuid4

from shared.config.constants import UserStatus
from shared.config.logging import get_logger
from shared.config.settings import settings
from ws_gateway.components.broadcast.presence import PresenceBroadcaster
from ws_gateway.components.connection.heartbeat import HeartbeatTracker
from ws_gateway.components.connection.rate_limiter import WebSocketRateLimiter
from ws_gateway.components.connection.registry import Connection, ConnectionRegistry, Session
from ws_gateway.components.core.constants import WSCloseCode, WSConstants
from ws_gateway.components.core.context import sanitize_log_data
from ws_gateway.components.core.errors import (
    NoCurrentRoom,
    PersistenceError,
    UserNotFound,
)
from ws_gateway.components.data.chat_store import ChatStore
from ws_gateway.components.events.types import OutboundEvent
from ws_gateway.components.presence.rooms import RoomMembershipTracker
from ws_gateway.components.presence.voice import VoicePresence, VoicePresenceTracker
from ws_gateway.components.signaling.relay import SignalingRelay, SignalKind
from ws_gateway.core.connection.broadcaster import ConnectionBroadcaster

if TYPE_CHECKING:
    from fastapi import WebSocket

logger = get_logger(__name__)

__all__ = ["ConnectionManager"]

MESSAGE_ERROR_TEXT = "Message could not be sent"


class ConnectionManager:
    """
    Coordinates live connections, rooms and voice presence.

    One instance is constructed at startup and shut down by the application
    lifespan. All shared structures are mutated from the event loop only.

    Configuration from settings:
    - ws_max_total_connections: Global connection limit (default: 1000)
    - ws_heartbeat_timeout: Seconds before connection is stale (default: 60)
    - ws_message_rate_limit / ws_message_rate_window: Inbound frame budget
    - chat_history_limit: Messages sent privately on join-room (default: 100)
    - voice_room_switch_policy: "keep" or "leave" voice on room switch
    """

    def __init__(
        self,
        store: ChatStore | None = None,
        *,
        max_total_connections: int = settings.ws_max_total_connections,
        heartbeat_timeout: float = settings.ws_heartbeat_timeout,
        rate_limit: int = settings.ws_message_rate_limit,
        rate_window: float = settings.ws_message_rate_window,
        history_limit: int = settings.chat_history_limit,
        voice_room_switch_policy: str = settings.voice_room_switch_policy,
    ) -> None:
        self._store = store if store is not None else ChatStore()
        self._max_total_connections = max_total_connections
        self._history_limit = history_limit
        self._voice_room_switch_policy = voice_room_switch_policy
        self._shutdown = False

        # Core components
        self._registry = ConnectionRegistry()
        self._rooms = RoomMembershipTracker()
        self._voice = VoicePresenceTracker()
        self._heartbeat_tracker = HeartbeatTracker(timeout_seconds=heartbeat_timeout)
        self._rate_limiter = WebSocketRateLimiter(
            max_messages=rate_limit,
            window_seconds=rate_window,
        )

        # Delivery components
        self._dead_connections: dict[str, float] = {}
        self._sender = ConnectionBroadcaster(
            registry=self._registry,
            mark_dead_callback=self._mark_dead_connection,
        )
        self._presence = PresenceBroadcaster(
            registry=self._registry,
            rooms=self._rooms,
            voice=self._voice,
            sender=self._sender,
        )
        self._relay = SignalingRelay(self._registry, self._sender)

        self._rejected_capacity = 0
        self._rejected_rate_limit = 0

    # =========================================================================
    # Public properties
    # =========================================================================

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    @property
    def rooms(self) -> RoomMembershipTracker:
        return self._rooms

    @property
    def voice(self) -> VoicePresenceTracker:
        return self._voice

    @property
    def presence(self) -> PresenceBroadcaster:
        return self._presence

    @property
    def store(self) -> ChatStore:
        return self._store

    @property
    def total_connections(self) -> int:
        return self._registry.total_connections

    # =========================================================================
    # Connection lifecycle
    # =========================================================================

    async def connect(
        self,
        websocket: "WebSocket",
        timeout: float = WSConstants.WS_ACCEPT_TIMEOUT,
    ) -> str:
        """
        Accept a WebSocket connection and register it.

        Returns:
            The new connection id.

        Raises:
            ConnectionError: If server is at capacity, shutting down, or the
                accept handshake fails.
        """
        if self._shutdown:
            raise ConnectionError("Server is shutting down")

        if self._registry.total_connections >= self._max_total_connections:
            self._rejected_capacity += 1
            raise ConnectionError(
                f"Server at capacity ({self._max_total_connections} connections)"
            )

        try:
            await asyncio.wait_for(websocket.accept(), timeout=timeout)
        except asyncio.TimeoutError:
            raise ConnectionError("WebSocket accept timed out")
        except (RuntimeError, OSError) as e:
            raise ConnectionError(f"WebSocket accept failed: {e}")

        connection_id = uuid4().hex
        self._registry.add(Connection(connection_id=connection_id, websocket=websocket))
        self._heartbeat_tracker.record(connection_id)
        return connection_id

    async def disconnect(self, connection_id: str, reason: str = "client_disconnect") -> None:
        """
        Remove every trace of a connection, then notify the affected peers.

        Safe to call more than once; only the first call has any effect.
        """
        # Synchronous teardown, all before the first await
        presence = self._voice.leave(connection_id)
        room_id = self._rooms.leave(connection_id)
        connection, session = self._registry.drop(connection_id)
        self._heartbeat_tracker.remove(connection_id)
        self._rate_limiter.remove_connection(connection_id)
        self._dead_connections.pop(connection_id, None)

        if connection is None and session is None:
            return

        logger.debug(
            "Connection removed",
            connection_id=connection_id,
            user_id=session.user_id if session else None,
            reason=reason,
        )

        if session is None:
            return

        await self._announce_departure(session, presence, room_id)
        await self._presence.push_online_users()
        await self._write_offline_if_gone(session.user_id)

    async def _announce_departure(
        self,
        session: Session,
        presence: VoicePresence | None,
        room_id: int | None,
    ) -> None:
        """Notifications for a Session whose presence was already torn down."""
        if presence is not None:
            await self._presence.voice_left(presence)
        if room_id is not None:
            await self._presence.room_left(session, room_id)

    async def _write_offline_if_gone(self, user_id: int) -> None:
        if not self._registry.has_live_session(user_id):
            await self._write_status(user_id, UserStatus.OFFLINE)

    async def _write_status(self, user_id: int, status: str) -> None:
        """Persisted status is advisory, so failures are logged only."""
        try:
            await self._store.set_user_status(user_id, status)
        except PersistenceError as e:
            logger.warning("Could not persist user status", user_id=user_id, status=status, error=e.reason)

    # =========================================================================
    # Authentication
    # =========================================================================

    async def authenticate(self, connection_id: str, user_id: int) -> Session | None:
        """
        Bind a user identity to a connection.

        Re-authenticating replaces the Session. Switching to another user
        first tears down the old identity's room and voice presence.

        Returns:
            The new Session, or None if the connection closed meanwhile.

        Raises:
            UserNotFound: The store does not know user_id.
            PersistenceError: The user lookup failed.
        """
        user = await self._store.find_user_by_id(user_id)
        if user is None:
            raise UserNotFound(connection_id, user_id)

        if connection_id not in self._registry:
            logger.debug("Connection closed during authenticate", connection_id=connection_id)
            return None

        session = Session(
            connection_id=connection_id,
            user_id=user["id"],
            username=user["username"],
            avatar=user.get("avatar"),
        )

        previous = self._registry.get_session(connection_id)
        switched = previous is not None and previous.user_id != session.user_id
        presence = None
        room_id = None
        if switched:
            presence = self._voice.leave(connection_id)
            room_id = self._rooms.leave(connection_id)
        self._registry.bind(session)

        if switched:
            await self._announce_departure(previous, presence, room_id)

        await self._presence.send(
            connection_id,
            OutboundEvent.AUTHENTICATED,
            {"user": session.public(), "connectionId": connection_id},
        )

        try:
            rooms = await self._store.list_rooms()
        except PersistenceError:
            logger.warning("Room list unavailable after authenticate", connection_id=connection_id)
        else:
            await self._presence.send(connection_id, OutboundEvent.ROOMS_LIST, {"rooms": rooms})

        await self._presence.push_online_users()

        await self._write_status(session.user_id, UserStatus.ONLINE)
        if switched:
            await self._write_offline_if_gone(previous.user_id)
        return session

    # =========================================================================
    # Rooms
    # =========================================================================

    async def join_room(self, connection_id: str, room_id: int) -> int | None:
        """
        Move a connection into a text room.

        Emits user-left-room to the old room, user-joined-room to the new
        one, then sends history and room metadata to the joiner. Joining the
        room already occupied only re-sends history and metadata.

        Returns:
            The previously occupied room, if any.

        Raises:
            Unauthenticated: The connection has no Session.
        """
        session = self._registry.require_session(connection_id)
        previous = self._rooms.current_room(connection_id)

        if previous == room_id:
            await self._send_room_snapshot(connection_id, room_id)
            return previous

        departed = None
        current_voice = self._voice.get(connection_id)
        if (
            self._voice_room_switch_policy == "leave"
            and current_voice is not None
            and current_voice.room_id != room_id
        ):
            departed = self._voice.leave(connection_id)
        self._rooms.join(connection_id, room_id)

        if departed is not None:
            await self._presence.voice_left(departed)
        if previous is not None:
            await self._presence.room_left(session, previous)
        await self._presence.room_joined(session, room_id)
        await self._send_room_snapshot(connection_id, room_id)
        return previous

    async def _send_room_snapshot(self, connection_id: str, room_id: int) -> None:
        """Private message-history and room-info for the joiner."""
        try:
            messages = await self._store.list_messages(room_id, self._history_limit)
        except PersistenceError:
            logger.warning("Message history unavailable", connection_id=connection_id, room_id=room_id)
        else:
            await self._presence.send(
                connection_id, OutboundEvent.MESSAGE_HISTORY, {"messages": messages}
            )

        try:
            room = await self._store.get_room(room_id)
        except PersistenceError:
            logger.warning("Room info unavailable", connection_id=connection_id, room_id=room_id)
            return
        if room is not None:
            await self._presence.send(connection_id, OutboundEvent.ROOM_INFO, {"room": room})

    # =========================================================================
    # Voice
    # =========================================================================

    async def join_voice(self, connection_id: str) -> VoicePresence:
        """
        Enter the voice channel of the current text room.

        Repeating the call in the same room changes nothing. Calling it from
        another room moves the presence there.

        Raises:
            Unauthenticated: The connection has no Session.
            NoCurrentRoom: The connection has not joined a room.
        """
        session = self._registry.require_session(connection_id)
        room_id = self._rooms.current_room(connection_id)
        if room_id is None:
            raise NoCurrentRoom(connection_id, "join-voice requires a room")

        current = self._voice.get(connection_id)
        if current is not None and current.room_id == room_id:
            return current

        presence = VoicePresence(
            connection_id=connection_id,
            user_id=session.user_id,
            username=session.username,
            avatar=session.avatar,
            room_id=room_id,
        )
        replaced = self._voice.join(presence)

        if replaced is not None:
            await self._presence.voice_left(replaced)
        await self._presence.voice_joined(presence)
        return presence

    async def leave_voice(self, connection_id: str) -> VoicePresence | None:
        """Leave voice. A no-op when the connection is not in voice."""
        presence = self._voice.leave(connection_id)
        if presence is None:
            return None
        await self._presence.voice_left(presence)
        return presence

    async def set_speaking(self, connection_id: str, speaking: bool) -> bool:
        """
        Update the speaking flag of the caller's voice presence.

        Returns:
            True if the flag changed and was pushed.
        """
        presence = self._voice.get(connection_id)
        if presence is None or not self._voice.set_speaking(connection_id, speaking):
            return False
        await self._presence.push_speaking(presence.room_id)
        return True

    async def announce_peer_id(self, connection_id: str, peer_id: str) -> int:
        """Forward the caller's media peer id to its voice room."""
        presence = self._voice.get(connection_id)
        if presence is None:
            return 0
        return await self._presence.announce_peer_id(presence, peer_id)

    # =========================================================================
    # Messages and signaling
    # =========================================================================

    async def send_message(self, connection_id: str, text: str) -> dict[str, Any] | None:
        """
        Persist a message and deliver it to the current room, sender included.

        A failed insert is acknowledged to the sender alone with message-error.

        Returns:
            The stored message, or None if the insert failed.

        Raises:
            Unauthenticated: The connection has no Session.
            NoCurrentRoom: The connection has not joined a room.
        """
        session = self._registry.require_session(connection_id)
        room_id = self._rooms.current_room(connection_id)
        if room_id is None:
            raise NoCurrentRoom(connection_id, "send-message requires a room")

        try:
            message = await self._store.insert_message(room_id, session.user_id, text)
        except PersistenceError as e:
            logger.error(
                "Message insert failed",
                connection_id=connection_id,
                room_id=room_id,
                text=sanitize_log_data(text, WSConstants.MAX_LOGGED_PAYLOAD),
                error=e.reason,
            )
            await self._presence.send(
                connection_id, OutboundEvent.MESSAGE_ERROR, {"message": MESSAGE_ERROR_TEXT}
            )
            return None

        await self._presence.notify_room(room_id, OutboundEvent.NEW_MESSAGE, {"message": message})
        return message

    async def relay_signal(
        self,
        connection_id: str,
        kind: SignalKind,
        to: str,
        payload: Any,
    ) -> bool:
        """
        Forward a WebRTC negotiation payload to one connection.

        Raises:
            Unauthenticated: The sender has no Session.
            TargetUnreachable: `to` is not a registered connection.
        """
        self._registry.require_session(connection_id)
        return await self._relay.relay(kind, connection_id, to, payload)

    # =========================================================================
    # Rate limiting and heartbeat
    # =========================================================================

    def check_rate_limit(self, connection_id: str) -> bool:
        """Check if a frame from this connection is allowed."""
        return self._rate_limiter.is_allowed(connection_id)

    def record_rate_limit_rejection(self) -> None:
        self._rejected_rate_limit += 1

    def record_heartbeat(self, connection_id: str) -> None:
        self._heartbeat_tracker.record(connection_id)

    async def cleanup_stale_connections(self, now: float | None = None) -> int:
        """
        Close and remove connections idle beyond the heartbeat timeout.

        Returns:
            Number of connections cleaned up.
        """
        stale = self._heartbeat_tracker.get_stale_connections(now)
        for connection_id in stale:
            connection = self._registry.get(connection_id)
            if connection is not None:
                try:
                    await connection.websocket.close(
                        code=WSCloseCode.GOING_AWAY, reason="Heartbeat timeout"
                    )
                except (RuntimeError, OSError) as e:
                    logger.debug("Failed to close stale connection", connection_id=connection_id, error=str(e))
            await self.disconnect(connection_id, reason="heartbeat_timeout")
        return len(stale)

    # =========================================================================
    # Dead connection management
    # =========================================================================

    def _mark_dead_connection(self, connection_id: str) -> None:
        """Mark a connection whose send failed for cleanup."""
        self._dead_connections.setdefault(connection_id, time.time())

    @property
    def dead_connections_count(self) -> int:
        return len(self._dead_connections)

    async def cleanup_dead_connections(self) -> int:
        """
        Disconnect connections marked dead during send operations.

        Returns:
            Number of connections cleaned up.
        """
        if not self._dead_connections:
            return 0
        dead = list(self._dead_connections)
        self._dead_connections.clear()

        for connection_id in dead:
            await self.disconnect(connection_id, reason="send_failed")
        return len(dead)

    def cleanup_rate_limiter(self) -> int:
        return self._rate_limiter.cleanup_stale()

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_stats(self) -> dict[str, Any]:
        """Connection and presence statistics for the health endpoints."""
        return {
            **self._registry.get_stats(),
            **self._rooms.get_stats(),
            **self._voice.get_stats(),
            "max_total_connections": self._max_total_connections,
            "dead_connections_pending": len(self._dead_connections),
            "rejected_capacity": self._rejected_capacity,
            "rejected_rate_limit": self._rejected_rate_limit,
            "heartbeat": self._heartbeat_tracker.get_stats(),
            "rate_limiter": self._rate_limiter.get_stats(),
            "delivery": self._sender.get_stats(),
            "signaling": self._relay.get_stats(),
            "store": self._store.get_stats(),
        }

    # =========================================================================
    # Shutdown
    # =========================================================================

    async def shutdown(self) -> int:
        """Graceful shutdown - close all connections."""
        self._shutdown = True
        logger.info("WebSocket manager shutting down...")

        connection_ids = self._registry.connection_ids()

        async def close_one(connection_id: str) -> bool:
            connection = self._registry.get(connection_id)
            if connection is None:
                return False
            try:
                await connection.websocket.close(code=WSCloseCode.GOING_AWAY, reason="Server shutdown")
                return True
            except (RuntimeError, OSError):
                return False

        results = await asyncio.gather(*[close_one(cid) for cid in connection_ids])
        closed = sum(1 for r in results if r)

        for connection_id in connection_ids:
            await self.disconnect(connection_id, reason="server_shutdown")

        logger.info("WebSocket shutdown complete", closed=closed)
        return closed

    def is_shutting_down(self) -> bool:
        return self._shutdown

"""
Concrete WebSocket Endpoint Implementations.

ChatEndpoint parses client frames, dispatches them to ConnectionManager
operations, and maps presence errors to client frames or drops them.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, TYPE_CHECKING

from fastapi import WebSocket

from shared.config.logging import get_logger
from ws_gateway.components.core.context import sanitize_log_data
from ws_gateway.components.core.errors import PersistenceError, PresenceError, UserNotFound
from ws_gateway.components.endpoints.base import WebSocketEndpointBase
from ws_gateway.components.endpoints.mixins import OriginCheckMixin
from ws_gateway.components.events.types import (
    InboundEvent,
    InvalidFrame,
    OutboundEvent,
    parse_frame,
)
from ws_gateway.components.signaling.relay import SignalKind

if TYPE_CHECKING:
    from ws_gateway.connection_manager import ConnectionManager

logger = get_logger(__name__)

AUTH_USER_NOT_FOUND = "User not found"
AUTH_UNAVAILABLE = "Authentication temporarily unavailable"


class ChatEndpoint(OriginCheckMixin, WebSocketEndpointBase):
    """
    WebSocket endpoint for chat clients.

    Features:
    - Origin validation at handshake; identity is established in-band
      by the authenticate event
    - Room membership, voice presence and message delivery
    - WebRTC signaling relay between voice participants
    """

    def __init__(self, websocket: WebSocket, manager: "ConnectionManager"):
        super().__init__(
            websocket=websocket,
            manager=manager,
            endpoint_name="/ws/chat",
        )
        self._handlers: dict[InboundEvent, Callable[[Any], Awaitable[Any]]] = {
            InboundEvent.AUTHENTICATE: self._on_authenticate,
            InboundEvent.JOIN_ROOM: self._on_join_room,
            InboundEvent.JOIN_VOICE: self._on_join_voice,
            InboundEvent.LEAVE_VOICE: self._on_leave_voice,
            InboundEvent.SEND_MESSAGE: self._on_send_message,
            InboundEvent.WEBRTC_OFFER: self._on_offer,
            InboundEvent.WEBRTC_ANSWER: self._on_answer,
            InboundEvent.WEBRTC_ICE_CANDIDATE: self._on_ice_candidate,
            InboundEvent.START_SPEAKING: self._on_start_speaking,
            InboundEvent.STOP_SPEAKING: self._on_stop_speaking,
            InboundEvent.PEER_ID: self._on_peer_id,
        }

    async def validate_handshake(self) -> bool:
        """Identity is established in-band, so only the Origin is checked here."""
        return await self.check_origin()

    async def handle_message(self, data: str) -> None:
        """Parse, dispatch, and map presence errors."""
        try:
            inbound = parse_frame(data)
        except InvalidFrame as e:
            logger.debug(
                "Dropped invalid frame",
                identifier=self.context.identifier if self.context else "unknown",
                error=str(e),
                message=sanitize_log_data(data),
            )
            return

        try:
            await self._handlers[inbound.event](inbound.payload)
        except UserNotFound as e:
            self._audit("AUTH_FAILED", reason="user_not_found", requested_user_id=e.user_id)
            await self._send_auth_error(AUTH_USER_NOT_FOUND)
        except PersistenceError as e:
            if inbound.event is InboundEvent.AUTHENTICATE:
                await self._send_auth_error(AUTH_UNAVAILABLE)
            else:
                logger.warning(
                    "Store unavailable while handling frame",
                    event=inbound.event.value,
                    error=e.reason,
                )
        except PresenceError as e:
            logger.debug(
                "Dropped frame",
                event=inbound.event.value,
                identifier=self.context.identifier if self.context else "unknown",
                error=type(e).__name__,
            )

    def _audit(self, event_type: str, **extra: Any) -> None:
        if self.context:
            self.context.audit(event_type, **extra)

    async def _send_auth_error(self, message: str) -> None:
        await self.manager.presence.send(
            self.connection_id, OutboundEvent.AUTH_ERROR, {"message": message}
        )

    # =========================================================================
    # Event handlers
    # =========================================================================

    async def _on_authenticate(self, payload: Any) -> None:
        session = await self.manager.authenticate(self.connection_id, payload.user_id)
        if session is not None and self.context:
            self.context.bind_user(session.user_id, session.username)
            self._audit("AUTHENTICATED")

    async def _on_join_room(self, payload: Any) -> None:
        await self.manager.join_room(self.connection_id, payload.room_id)

    async def _on_join_voice(self, payload: Any) -> None:
        await self.manager.join_voice(self.connection_id)

    async def _on_leave_voice(self, payload: Any) -> None:
        await self.manager.leave_voice(self.connection_id)

    async def _on_send_message(self, payload: Any) -> None:
        await self.manager.send_message(self.connection_id, payload.text)

    async def _on_offer(self, payload: Any) -> None:
        await self.manager.relay_signal(self.connection_id, SignalKind.OFFER, payload.to, payload.offer)

    async def _on_answer(self, payload: Any) -> None:
        await self.manager.relay_signal(self.connection_id, SignalKind.ANSWER, payload.to, payload.answer)

    async def _on_ice_candidate(self, payload: Any) -> None:
        await self.manager.relay_signal(
            self.connection_id, SignalKind.ICE_CANDIDATE, payload.to, payload.candidate
        )

    async def _on_start_speaking(self, payload: Any) -> None:
        await self.manager.set_speaking(self.connection_id, True)

    async def _on_stop_speaking(self, payload: Any) -> None:
        await self.manager.set_speaking(self.connection_id, False)

    async def _on_peer_id(self, payload: Any) -> None:
        await self.manager.announce_peer_id(self.connection_id, payload.peer_id)

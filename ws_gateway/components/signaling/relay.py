"""
Signaling Relay.

Forwards opaque WebRTC negotiation payloads between two specific
connections. The relay never inspects the payload and always stamps the
true sender into the forwarded frame.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, TYPE_CHECKING

from shared.config.logging import get_logger
from ws_gateway.components.core.errors import TargetUnreachable
from ws_gateway.components.events.types import OutboundEvent, frame

if TYPE_CHECKING:
    from ws_gateway.components.connection.registry import ConnectionRegistry
    from ws_gateway.core.connection.broadcaster import ConnectionBroadcaster

logger = get_logger(__name__)


class SignalKind(str, Enum):
    """Relayed message kinds and the payload key each one carries."""

    OFFER = "webrtc-offer"
    ANSWER = "webrtc-answer"
    ICE_CANDIDATE = "webrtc-ice-candidate"

    @property
    def payload_key(self) -> str:
        return _PAYLOAD_KEYS[self]

    @property
    def outbound_event(self) -> OutboundEvent:
        return OutboundEvent(self.value)


_PAYLOAD_KEYS: dict[SignalKind, str] = {
    SignalKind.OFFER: "offer",
    SignalKind.ANSWER: "answer",
    SignalKind.ICE_CANDIDATE: "candidate",
}


class SignalingRelay:
    """
    Stateless point-to-point forwarder.

    Usage:
        relay = SignalingRelay(registry, broadcaster)
        await relay.relay(SignalKind.OFFER, sender_id, target_id, sdp)
    """

    def __init__(
        self,
        registry: "ConnectionRegistry",
        broadcaster: "ConnectionBroadcaster",
    ) -> None:
        self._registry = registry
        self._broadcaster = broadcaster
        self._relayed = 0
        self._dropped = 0

    async def relay(
        self,
        kind: SignalKind,
        from_connection_id: str,
        to_connection_id: str,
        payload: Any,
    ) -> bool:
        """
        Forward one signaling payload to the connection named in `to`.

        Args:
            kind: Which negotiation message is being relayed.
            from_connection_id: The sender, as known by the gateway.
            to_connection_id: Target connection id supplied by the sender.
            payload: Opaque blob forwarded unchanged.

        Returns:
            True if the frame was delivered.

        Raises:
            TargetUnreachable: If the target is not a registered connection.
        """
        if to_connection_id not in self._registry:
            self._dropped += 1
            raise TargetUnreachable(from_connection_id, to_connection_id)

        outbound = frame(
            kind.outbound_event,
            {kind.payload_key: payload, "from": from_connection_id},
        )
        delivered = await self._broadcaster.send(to_connection_id, outbound)
        if delivered:
            self._relayed += 1
        else:
            self._dropped += 1
        return delivered

    def get_stats(self) -> dict[str, int]:
        return {"relayed": self._relayed, "dropped": self._dropped}

"""
Frame delivery by connection id.

Presence code decides who gets a frame; this module only writes it to the
sockets. A write that fails is never raised to the caller: the connection
is handed to mark_dead_callback and the cleanup task tears it down.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Iterable, TYPE_CHECKING

from starlette.websockets import WebSocketDisconnect, WebSocketState

from shared.config.logging import get_logger

if TYPE_CHECKING:
    from fastapi import WebSocket
    from ws_gateway.components.connection.registry import ConnectionRegistry

logger = get_logger(__name__)

_SEND_ERRORS = (WebSocketDisconnect, ConnectionError, RuntimeError, OSError)


def is_ws_connected(ws: "WebSocket") -> bool:
    """Both sides still open, as far as starlette can tell."""
    return ws.client_state == ws.application_state == WebSocketState.CONNECTED


class ConnectionBroadcaster:
    """
    Usage:
        sender = ConnectionBroadcaster(registry, mark_dead_callback=dead_ids.append)
        await sender.send_many(room_members, frame, context="new-message")
    """

    def __init__(
        self,
        registry: "ConnectionRegistry",
        mark_dead_callback: Callable[[str], None],
        batch_size: int = 50,
    ) -> None:
        self._registry = registry
        self._mark_dead = mark_dead_callback
        # Sockets written concurrently per gather
        self._batch_size = batch_size

        self._frames_sent = 0
        self._send_failures = 0

    def _failed(self, connection_id: str) -> bool:
        self._send_failures += 1
        self._mark_dead(connection_id)
        return False

    async def send(self, connection_id: str, payload: dict[str, Any]) -> bool:
        """False for an id that is gone or a socket that could not be written."""
        connection = self._registry.get(connection_id)
        if connection is None:
            return False

        if not is_ws_connected(connection.websocket):
            return self._failed(connection_id)
        try:
            await connection.websocket.send_json(payload)
        except _SEND_ERRORS as e:
            logger.debug("Frame not delivered", connection_id=connection_id, error=str(e))
            return self._failed(connection_id)

        self._frames_sent += 1
        return True

    async def send_many(
        self,
        connection_ids: Iterable[str],
        payload: dict[str, Any],
        context: str = "broadcast",
    ) -> int:
        """Returns how many of connection_ids got the frame."""
        targets = list(connection_ids)
        delivered = 0
        for start in range(0, len(targets), self._batch_size):
            batch = targets[start : start + self._batch_size]
            delivered += sum(await asyncio.gather(*(self.send(cid, payload) for cid in batch)))

        if delivered < len(targets):
            logger.debug(
                "Some recipients missed a frame",
                context=context,
                delivered=delivered,
                missed=len(targets) - delivered,
            )
        return delivered

    async def broadcast(self, payload: dict[str, Any]) -> int:
        """Every registered connection, authenticated or not."""
        return await self.send_many(self._registry.connection_ids(), payload, context="global")

    def get_stats(self) -> dict[str, int]:
        return {
            "frames_sent": self._frames_sent,
            "send_failures": self._send_failures,
        }

"""
Chat gateway endpoint skeleton.

One endpoint instance serves one socket for its whole life:

    upgrade checks -> accept + register -> frame loop -> teardown

Teardown always goes through ConnectionManager.disconnect(), whatever ended
the loop (client close, a guard closing the socket, the idle receive
timeout), so room and voice presence never outlive the socket.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from fastapi import WebSocket, WebSocketDisconnect

from shared.config.logging import get_logger
from shared.infrastructure.correlation import correlation_scope
from ws_gateway.components.connection.heartbeat import handle_heartbeat
from ws_gateway.components.core.constants import WSCloseCode, WSConstants
from ws_gateway.components.core.context import WebSocketContext
from ws_gateway.components.endpoints.mixins import AuditTrailMixin, FrameGuardMixin

if TYPE_CHECKING:
    from ws_gateway.connection_manager import ConnectionManager

logger = get_logger(__name__)


class WebSocketEndpointBase(FrameGuardMixin, AuditTrailMixin, ABC):
    """
    Frame loop shared by gateway endpoints.

    Subclasses decide whether an upgrade is acceptable (validate_handshake)
    and what an admitted, non-heartbeat frame means (handle_message).

    Usage:
        await ChatEndpoint(websocket, manager).run()
    """

    def __init__(
        self,
        websocket: WebSocket,
        manager: "ConnectionManager",
        endpoint_name: str,
        receive_timeout: float = WSConstants.WS_RECEIVE_TIMEOUT,
    ):
        self.websocket = websocket
        self.manager = manager
        self.endpoint_name = endpoint_name
        self.receive_timeout = receive_timeout

        # Assigned by the manager once the socket is accepted
        self.connection_id: str | None = None
        self.context: WebSocketContext | None = None

    @abstractmethod
    async def validate_handshake(self) -> bool:
        """True to go on with the upgrade; on False the socket is already closed."""

    @abstractmethod
    async def handle_message(self, data: str) -> None:
        """Handle one admitted text frame that is not a heartbeat."""

    async def run(self) -> None:
        if not await self.validate_handshake():
            return

        try:
            self.connection_id = await self.manager.connect(self.websocket)
        except ConnectionError as e:
            self.audit_refused(str(e))
            await self._close_at_capacity()
            return

        self.context = WebSocketContext.from_websocket(
            self.websocket, self.endpoint_name, self.connection_id
        )
        self.audit_opened()

        reason = "server_close"
        try:
            await self._serve_frames()
        except WebSocketDisconnect:
            reason = "client_disconnect"
        finally:
            self.audit_closed(reason)
            await self.manager.disconnect(self.connection_id, reason=reason)

    async def _close_at_capacity(self) -> None:
        # Accept first so the client sees 1013 instead of a failed handshake
        try:
            await self.websocket.accept()
            await self.websocket.close(code=WSCloseCode.SERVER_OVERLOADED, reason="Server at capacity")
        except (RuntimeError, OSError) as e:
            logger.debug("Could not close refused socket", error=str(e))

    async def _serve_frames(self) -> None:
        while True:
            try:
                data = await asyncio.wait_for(
                    self.websocket.receive_text(), timeout=self.receive_timeout
                )
            except asyncio.TimeoutError:
                logger.info(
                    "Closing silent connection",
                    who=self.context.identifier,
                    timeout=self.receive_timeout,
                )
                await self.websocket.close(code=WSCloseCode.NORMAL, reason="Connection timeout")
                return

            if not await self.admit_frame(data):
                return

            if await handle_heartbeat(self.websocket, data):
                continue

            with correlation_scope(self.connection_id):
                await self.handle_message(data)

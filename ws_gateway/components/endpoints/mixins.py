"""
Per-connection guards for gateway endpoints.

A chat connection is known by its gateway-assigned connection id from the
moment it is accepted; the user behind it is only known after an
authenticate frame. The guards below therefore key every log line and
every limit on the connection id and add the user when there is one.

    FrameGuardMixin   - size limit, frame budget, activity for the idle sweep
    OriginCheckMixin  - browser Origin allow-list at the upgrade
    AuditTrailMixin   - opened / refused / closed lines on the audit logger
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from fastapi import WebSocket

from shared.config.logging import audit_ws_connection, get_logger
from shared.config.settings import settings
from ws_gateway.components.core.constants import WSCloseCode, origin_allowed
from ws_gateway.components.core.context import sanitize_log_data

if TYPE_CHECKING:
    from ws_gateway.connection_manager import ConnectionManager
    from ws_gateway.components.core.context import WebSocketContext

logger = get_logger(__name__)


class GatewayConnection(Protocol):
    """What the guards need from the endpoint they are mixed into."""

    websocket: WebSocket
    manager: "ConnectionManager"
    endpoint_name: str
    connection_id: str | None
    context: "WebSocketContext | None"


def _who(endpoint: GatewayConnection) -> str:
    if endpoint.context is not None:
        return endpoint.context.identifier
    return "unregistered"


class FrameGuardMixin:
    """
    Admission checks run on every inbound text frame, in order:
    size (close 1009), per-connection budget (close 4029), then the frame
    is recorded as activity so the idle sweep leaves the connection alone.
    """

    async def admit_frame(self: GatewayConnection, data: str) -> bool:
        """
        Returns:
            False once the connection has been closed by a guard.
        """
        if len(data) > settings.ws_max_message_size:
            logger.warning(
                "Frame over size limit",
                who=_who(self),
                size=len(data),
                limit=settings.ws_max_message_size,
            )
            await self.websocket.close(code=WSCloseCode.MESSAGE_TOO_BIG, reason="Message too large")
            return False

        if not self.manager.check_rate_limit(self.connection_id):
            self.manager.record_rate_limit_rejection()
            logger.warning("Frame budget exhausted", who=_who(self))
            if self.context is not None:
                self.context.audit("RATE_LIMITED")
            await self.websocket.close(code=WSCloseCode.RATE_LIMITED, reason="Rate limit exceeded")
            return False

        self.manager.record_heartbeat(self.connection_id)
        return True


class OriginCheckMixin:
    """Closes the upgrade with 4003 when the Origin is not allow-listed."""

    @property
    def origin(self: GatewayConnection) -> str | None:
        return self.websocket.headers.get("origin")

    async def check_origin(self: GatewayConnection) -> bool:
        if origin_allowed(self.origin, settings):
            return True

        logger.warning("Upgrade refused, origin not allowed", origin=sanitize_log_data(self.origin))
        audit_ws_connection(
            event_type="CONNECT_REJECTED",
            endpoint=self.endpoint_name,
            origin=self.origin,
            reason="invalid_origin",
        )
        await self.websocket.close(code=WSCloseCode.FORBIDDEN, reason="Origin not allowed")
        return False


class AuditTrailMixin:
    """One audit line per connection lifecycle step."""

    def audit_opened(self: GatewayConnection) -> None:
        logger.info("Chat connection opened", who=_who(self))
        if self.context is not None:
            self.context.audit("CONNECT")

    def audit_refused(self: GatewayConnection, reason: str) -> None:
        logger.warning("Chat connection refused", reason=reason)
        audit_ws_connection(
            event_type="CONNECT_REJECTED",
            endpoint=self.endpoint_name,
            origin=self.websocket.headers.get("origin"),
            reason=reason,
        )

    def audit_closed(self: GatewayConnection, reason: str) -> None:
        logger.info("Chat connection closed", who=_who(self), reason=reason)
        if self.context is not None:
            self.context.audit("DISCONNECT", reason=reason)


__all__ = [
    "GatewayConnection",
    "FrameGuardMixin",
    "OriginCheckMixin",
    "AuditTrailMixin",
]

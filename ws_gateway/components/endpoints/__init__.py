"""
WebSocket endpoint components.

Frame loop skeleton, per-connection guards, and the chat endpoint.
"""

from ws_gateway.components.endpoints.base import WebSocketEndpointBase
from ws_gateway.components.endpoints.mixins import (
    AuditTrailMixin,
    FrameGuardMixin,
    OriginCheckMixin,
)
from ws_gateway.components.endpoints.handlers import ChatEndpoint

__all__ = [
    "WebSocketEndpointBase",
    "FrameGuardMixin",
    "OriginCheckMixin",
    "AuditTrailMixin",
    "ChatEndpoint",
]

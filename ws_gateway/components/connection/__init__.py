"""
Connection management components.

Handles connection bookkeeping: registry, heartbeat, rate limiting.
"""

from ws_gateway.components.connection.registry import Connection, ConnectionRegistry, Session
from ws_gateway.components.connection.heartbeat import HeartbeatTracker, handle_heartbeat
from ws_gateway.components.connection.rate_limiter import WebSocketRateLimiter

__all__ = [
    "Connection",
    "ConnectionRegistry",
    "Session",
    "HeartbeatTracker",
    "handle_heartbeat",
    "WebSocketRateLimiter",
]

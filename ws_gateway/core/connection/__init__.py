"""
Connection delivery: frame sending to registered WebSocket connections.
"""

from ws_gateway.core.connection.broadcaster import ConnectionBroadcaster, is_ws_connected

__all__ = [
    "ConnectionBroadcaster",
    "is_ws_connected",
]

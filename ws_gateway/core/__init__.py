"""
WebSocket Gateway Core Module.

- connection/: frame delivery to registered connections
"""

from ws_gateway.core.connection import ConnectionBroadcaster, is_ws_connected

__all__ = [
    "ConnectionBroadcaster",
    "is_ws_connected",
]

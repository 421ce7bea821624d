"""
Broadcasting components.

Presence snapshots and room-scoped notifications.
"""

from ws_gateway.components.broadcast.presence import PresenceBroadcaster

__all__ = ["PresenceBroadcaster"]

"""
Core WebSocket Gateway components.

Foundational components: constants, context, and the presence error taxonomy.
"""

from ws_gateway.components.core.constants import WSCloseCode, WSConstants
from ws_gateway.components.core.context import WebSocketContext, sanitize_log_data
from ws_gateway.components.core.errors import (
    PresenceError,
    Unauthenticated,
    UserNotFound,
    NoCurrentRoom,
    TargetUnreachable,
    PersistenceError,
)

__all__ = [
    # Constants
    "WSCloseCode",
    "WSConstants",
    # Context
    "WebSocketContext",
    "sanitize_log_data",
    # Errors
    "PresenceError",
    "Unauthenticated",
    "UserNotFound",
    "NoCurrentRoom",
    "TargetUnreachable",
    "PersistenceError",
]

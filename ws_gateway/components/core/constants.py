"""
Gateway close codes, timing defaults and the heartbeat wire format.

Operator-tunable limits (idle timeout, frame budget, frame size, capacity)
live in Settings; the values here are fixed by the protocol or internal.
"""

from enum import IntEnum
from typing import Final

from shared.config.logging import get_logger
from shared.config.settings import Settings

__all__ = [
    "WSCloseCode",
    "WSConstants",
    "MSG_PING_PLAIN",
    "MSG_PING_JSON",
    "MSG_PONG_JSON",
    "origin_allowed",
]

logger = get_logger(__name__)


class WSCloseCode(IntEnum):
    """Close codes the gateway sends. 4xxx mirror the matching HTTP status."""

    NORMAL = 1000  # receive timeout
    GOING_AWAY = 1001  # idle sweep, shutdown
    MESSAGE_TOO_BIG = 1009  # frame over ws_max_message_size
    SERVER_OVERLOADED = 1013  # ws_max_total_connections reached

    FORBIDDEN = 4003  # Origin not allowed
    RATE_LIMITED = 4029  # frame budget spent for the current window


class WSConstants:
    # Silence longer than this ends the frame loop, sweep or not
    WS_RECEIVE_TIMEOUT: Final[float] = 90.0
    WS_ACCEPT_TIMEOUT: Final[float] = 5.0

    # Rate limiter bookkeeping: at most this many connections tracked,
    # evicting the oldest tenth when full
    MAX_TRACKED_CONNECTIONS: Final[int] = 2000
    EVICTION_PERCENTAGE: Final[int] = 10

    # Idle sweep period
    HEARTBEAT_CLEANUP_INTERVAL: Final[float] = 30.0

    # Characters of chat text kept in a log line
    MAX_LOGGED_PAYLOAD: Final[int] = 100


# Heartbeat frames are answered before event parsing
MSG_PING_PLAIN: Final[str] = "ping"
MSG_PING_JSON: Final[str] = '{"type":"ping"}'
MSG_PONG_JSON: Final[str] = '{"type":"pong"}'


def origin_allowed(origin: str | None, settings: Settings) -> bool:
    """
    True when a browser Origin is in settings.origin_list. Clients that send
    no Origin (CLI tools, tests) are let in only outside production.
    """
    if not origin:
        if settings.environment != "production":
            return True
        logger.warning("Upgrade without Origin refused in production")
        return False

    return origin in settings.origin_list

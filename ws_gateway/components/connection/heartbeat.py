"""
Liveness for gateway connections.

Every admitted frame counts as activity (pings included); the periodic
sweep closes connections that have been silent for longer than the
timeout. Ping frames are also answered here, before event parsing.
"""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

from shared.config.logging import get_logger
from ws_gateway.components.core.constants import MSG_PING_PLAIN, MSG_PING_JSON, MSG_PONG_JSON

if TYPE_CHECKING:
    from fastapi import WebSocket

logger = get_logger(__name__)

PING_FRAMES = frozenset({MSG_PING_PLAIN, MSG_PING_JSON})


class HeartbeatTracker:
    """Last-activity time per connection id."""

    def __init__(self, timeout_seconds: float = 60.0):
        self.timeout = timeout_seconds
        self._last_seen: dict[str, float] = {}
        # get_stats() runs on the health route's worker thread
        self._lock = threading.Lock()

    @property
    def tracked_count(self) -> int:
        return len(self._last_seen)

    def record(self, connection_id: str, timestamp: float | None = None) -> None:
        with self._lock:
            self._last_seen[connection_id] = time.time() if timestamp is None else timestamp

    def remove(self, connection_id: str) -> None:
        with self._lock:
            self._last_seen.pop(connection_id, None)

    def get_last_activity(self, connection_id: str) -> float | None:
        return self._last_seen.get(connection_id)

    def is_stale(self, connection_id: str, now: float | None = None) -> bool:
        """A connection never recorded is stale."""
        last = self._last_seen.get(connection_id)
        if last is None:
            return True
        return (time.time() if now is None else now) - last > self.timeout

    def get_stale_connections(self, now: float | None = None) -> list[str]:
        cutoff = (time.time() if now is None else now) - self.timeout
        with self._lock:
            return [cid for cid, last in self._last_seen.items() if last < cutoff]

    def get_stats(self) -> dict[str, float | int]:
        with self._lock:
            seen = list(self._last_seen.values())
        now = time.time()
        return {
            "tracked_connections": len(seen),
            "timeout_seconds": self.timeout,
            "longest_silence": now - min(seen) if seen else 0,
        }


async def handle_heartbeat(ws: "WebSocket", data: str) -> bool:
    """
    Answer a ping frame with a pong.

    Returns:
        True if data was a ping, in which case nothing else should see it.
    """
    if data not in PING_FRAMES:
        return False
    try:
        await ws.send_text(MSG_PONG_JSON)
    except (ConnectionError, RuntimeError, OSError) as e:
        # Socket already closing; the frame loop's teardown follows
        logger.debug("Pong not delivered", error=str(e))
    return True

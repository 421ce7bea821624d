"""
Inbound frame budget per connection.

Each connection may send max_messages frames in any window_seconds span
(sliding log of frame times). The endpoint closes a connection with 4029
the first time it goes over.
"""

from __future__ import annotations

import time
from collections import deque
from itertools import islice

from shared.config.logging import get_logger
from ws_gateway.components.core.constants import WSConstants

logger = get_logger(__name__)


class WebSocketRateLimiter:
    """
    Sliding-window frame limiter keyed by connection id.

    _windows is kept in least-recently-active order (an entry is moved to
    the end on every frame), so when max_tracked is reached the entries
    at the front are the ones evicted.
    """

    def __init__(
        self,
        max_messages: int,
        window_seconds: float,
        max_tracked: int = WSConstants.MAX_TRACKED_CONNECTIONS,
    ):
        self.max_messages = max_messages
        self.window_seconds = window_seconds
        self.max_tracked = max_tracked

        self._windows: dict[str, deque[float]] = {}
        self._allowed = 0
        self._rejected = 0
        self._evictions = 0

    @property
    def tracked_count(self) -> int:
        return len(self._windows)

    def is_allowed(self, connection_id: str, now: float | None = None) -> bool:
        """Count one frame from connection_id; False when over budget."""
        now = time.time() if now is None else now

        window = self._windows.pop(connection_id, None)
        if window is None:
            if len(self._windows) >= self.max_tracked:
                self._evict()
            window = deque()
        self._windows[connection_id] = window

        while window and window[0] <= now - self.window_seconds:
            window.popleft()

        if len(window) >= self.max_messages:
            self._rejected += 1
            return False

        window.append(now)
        self._allowed += 1
        return True

    def _evict(self) -> None:
        count = max(1, self.max_tracked * WSConstants.EVICTION_PERCENTAGE // 100)
        logger.warning(
            "Frame limiter full, dropping least recently active entries",
            max_tracked=self.max_tracked,
            dropped=count,
        )
        for connection_id in list(islice(self._windows, count)):
            del self._windows[connection_id]
        self._evictions += count

    def remove_connection(self, connection_id: str) -> None:
        self._windows.pop(connection_id, None)

    def cleanup_stale(self, now: float | None = None) -> int:
        """Forget connections with no frame inside the current window."""
        cutoff = (time.time() if now is None else now) - self.window_seconds
        idle = [cid for cid, window in self._windows.items() if not window or window[-1] <= cutoff]
        for connection_id in idle:
            del self._windows[connection_id]
        return len(idle)

    def get_stats(self) -> dict[str, int | float]:
        return {
            "tracked_connections": len(self._windows),
            "max_tracked": self.max_tracked,
            "max_messages_per_window": self.max_messages,
            "window_seconds": self.window_seconds,
            "total_allowed": self._allowed,
            "total_rejected": self._rejected,
            "evictions": self._evictions,
        }

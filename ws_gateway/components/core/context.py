"""
Who is on the other end of a gateway connection, for logs and the audit trail.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

from shared.config.logging import audit_ws_connection

if TYPE_CHECKING:
    from fastapi import WebSocket

# Control (Cc) and format (Cf) characters: newlines, bidi overrides,
# zero-width joiners, BOM
_HIDDEN_CATEGORIES = frozenset({"Cc", "Cf"})


def sanitize_log_data(data: Any, max_length: int = 100) -> str:
    """
    Client-supplied text as it may appear in a log line: cut to max_length
    (with "..." when cut), hidden characters removed.
    """
    text = data if isinstance(data, str) else str(data)
    shown = "".join(
        ch for ch in text[:max_length] if unicodedata.category(ch) not in _HIDDEN_CATEGORIES
    )
    return shown + "..." if len(text) > max_length else shown


@dataclass
class WebSocketContext:
    """
    Connection identity carried through the frame loop. Starts anonymous;
    bind_user() fills in the account once authenticate succeeds.
    """

    endpoint: str
    connection_id: str
    origin: str | None = None
    peer: str | None = None
    user_id: int | None = None
    username: str | None = None

    @classmethod
    def from_websocket(cls, websocket: "WebSocket", endpoint: str, connection_id: str) -> WebSocketContext:
        peer = websocket.client
        return cls(
            endpoint=endpoint,
            connection_id=connection_id,
            origin=websocket.headers.get("origin"),
            peer=f"{peer.host}:{peer.port}" if peer else None,
        )

    def bind_user(self, user_id: int, username: str) -> None:
        self.user_id = user_id
        self.username = username

    def audit(self, event_type: str, **extra: Any) -> None:
        """Audit line with whatever identity is known so far."""
        known = {"origin": self.origin, "peer": self.peer}
        audit_ws_connection(
            event_type=event_type,
            endpoint=self.endpoint,
            connection_id=self.connection_id,
            user_id=self.user_id,
            **{k: v for k, v in known.items() if v},
            **extra,
        )

    @property
    def identifier(self) -> str:
        if self.user_id is not None:
            return f"user:{self.user_id}"
        return f"conn:{self.connection_id[:8]}"

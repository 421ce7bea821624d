"""
Connection Registry - live connections and their authenticated Sessions.

The registry is the only owner of Session lifecycle. Room membership and
voice presence are indexed by the same connection id and are cleaned up by
ConnectionManager.disconnect() before the registry drops the connection.

All mutations are synchronous. The gateway runs on a single event loop and
no method awaits between reading and writing its maps.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING

from shared.config.logging import get_logger
from ws_gateway.components.core.errors import Unauthenticated

if TYPE_CHECKING:
    from fastapi import WebSocket

logger = get_logger(__name__)


@dataclass(eq=False)
class Connection:
    """One live transport session, identified by a gateway-assigned id."""

    connection_id: str
    websocket: "WebSocket"
    connected_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class Session:
    """Authenticated identity bound to a Connection."""

    connection_id: str
    user_id: int
    username: str
    avatar: str | None = None

    def public(self) -> dict[str, Any]:
        """User fields safe to send to other clients."""
        return {"id": self.user_id, "username": self.username, "avatar": self.avatar}


class ConnectionRegistry:
    """
    Maps connection ids to connections and Sessions.

    Indices maintained:
    - connections: connection_id -> Connection
    - sessions: connection_id -> Session (at most one per connection)
    - by_user: user_id -> set[connection_id] (a user may have several tabs open)
    """

    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}
        self._sessions: dict[str, Session] = {}
        self._by_user: dict[int, set[str]] = {}

    @property
    def total_connections(self) -> int:
        return len(self._connections)

    # =========================================================================
    # Connections
    # =========================================================================

    def add(self, connection: Connection) -> None:
        """Register a freshly accepted connection (no Session yet)."""
        if connection.connection_id in self._connections:
            raise ValueError(f"Duplicate connection id: {connection.connection_id}")
        self._connections[connection.connection_id] = connection

    def get(self, connection_id: str) -> Connection | None:
        return self._connections.get(connection_id)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

    def connection_ids(self) -> list[str]:
        """Snapshot of all live connection ids, in connect order."""
        return list(self._connections)

    # =========================================================================
    # Sessions
    # =========================================================================

    def bind(self, session: Session) -> Session | None:
        """
        Store the Session for its connection, replacing any previous one.

        Returns:
            The replaced Session, or None.

        Raises:
            KeyError: The connection is not registered (it disconnected while
                the user lookup was in flight).
        """
        connection_id = session.connection_id
        if connection_id not in self._connections:
            raise KeyError(connection_id)

        previous = self._sessions.get(connection_id)
        if previous is not None:
            self._unindex_user(previous)

        self._sessions[connection_id] = session
        self._by_user.setdefault(session.user_id, set()).add(connection_id)
        return previous

    def get_session(self, connection_id: str) -> Session | None:
        return self._sessions.get(connection_id)

    def require_session(self, connection_id: str) -> Session:
        """Return the Session or raise Unauthenticated."""
        session = self._sessions.get(connection_id)
        if session is None:
            raise Unauthenticated(connection_id)
        return session

    def has_live_session(self, user_id: int) -> bool:
        """True while at least one connection is authenticated as `user_id`."""
        return bool(self._by_user.get(user_id))

    def all_sessions(self) -> list[Session]:
        """Snapshot of all Sessions, in the order they were bound."""
        return list(self._sessions.values())

    # =========================================================================
    # Teardown
    # =========================================================================

    def drop(self, connection_id: str) -> tuple[Connection | None, Session | None]:
        """
        Remove the connection and its Session.

        Idempotent: dropping an unknown id returns (None, None).
        """
        connection = self._connections.pop(connection_id, None)
        session = self._sessions.pop(connection_id, None)
        if session is not None:
            self._unindex_user(session)
        return connection, session

    def _unindex_user(self, session: Session) -> None:
        connection_ids = self._by_user.get(session.user_id)
        if connection_ids is None:
            return
        connection_ids.discard(session.connection_id)
        if not connection_ids:
            del self._by_user[session.user_id]

    def get_stats(self) -> dict[str, int]:
        return {
            "connections": len(self._connections),
            "sessions": len(self._sessions),
            "distinct_users": len(self._by_user),
        }

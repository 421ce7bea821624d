"""
Presence coordination errors.

Raised by ConnectionManager operations and mapped to client frames (or
dropped) by the endpoint layer. None of them is fatal to the process or
affects other connections.
"""


class PresenceError(Exception):
    """Base class for presence coordination failures."""

    def __init__(self, connection_id: str, message: str = ""):
        self.connection_id = connection_id
        super().__init__(message or self.__class__.__name__)


class Unauthenticated(PresenceError):
    """The operation requires a Session the connection does not have."""


class UserNotFound(PresenceError):
    """authenticate named a user id the store does not know."""

    def __init__(self, connection_id: str, user_id: int):
        self.user_id = user_id
        super().__init__(connection_id, "User not found")


class NoCurrentRoom(PresenceError):
    """join-voice or send-message without having joined a room."""


class TargetUnreachable(PresenceError):
    """Signaling target is not a registered connection."""

    def __init__(self, connection_id: str, target_id: str):
        self.target_id = target_id
        super().__init__(connection_id, "Signaling target not connected")


class PersistenceError(Exception):
    """A ChatStore call failed or timed out."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")

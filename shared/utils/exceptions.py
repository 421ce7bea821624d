"""
HTTP errors raised by the REST routers.

Each one logs itself on construction with the keyword context it was given,
so routers raise without a separate logger call:

    raise RoomNotFoundError(room_id)
    raise DuplicateEntityError("User", username)
"""

import logging
from typing import Any

from fastapi import HTTPException, status

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    level: int = logging.WARNING

    def __init__(self, status_code: int, detail: str, **log_context: Any):
        logger.log_fields(self.level, detail, status_code=status_code, **log_context)
        super().__init__(status_code=status_code, detail=detail)


class RoomNotFoundError(AppException):
    """404 for an unknown room id."""

    def __init__(self, room_id: int, **log_context: Any):
        super().__init__(
            status.HTTP_404_NOT_FOUND,
            f"Room with ID {room_id} not found",
            room_id=room_id,
            **log_context,
        )


class AuthenticationError(AppException):
    """401. Same detail for an unknown username and a wrong password."""

    def __init__(self, **log_context: Any):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            "Invalid username or password",
            **log_context,
        )


class DuplicateEntityError(AppException):
    """409, e.g. a username that is already taken."""

    def __init__(self, entity: str, identifier: str, **log_context: Any):
        super().__init__(
            status.HTTP_409_CONFLICT,
            f"{entity} '{identifier}' already exists",
            entity=entity,
            **log_context,
        )


class DatabaseError(AppException):
    """500 when a write fails for a reason other than a constraint."""

    level = logging.ERROR

    def __init__(self, operation: str, **log_context: Any):
        super().__init__(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            f"Database error during {operation}. Please try again.",
            operation=operation,
            **log_context,
        )

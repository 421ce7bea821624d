"""
Utilities module: Exceptions, schemas, avatars.
"""

from shared.utils.exceptions import (
    AppException,
    RoomNotFoundError,
    AuthenticationError,
    DuplicateEntityError,
    DatabaseError,
)
from shared.utils.avatars import generate_avatar_url
from shared.utils.schemas import ErrorResponse

__all__ = [
    # exceptions
    "AppException",
    "RoomNotFoundError",
    "AuthenticationError",
    "DuplicateEntityError",
    "DatabaseError",
    # avatars
    "generate_avatar_url",
    # schemas
    "ErrorResponse",
]

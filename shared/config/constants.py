"""
Centralized constants for the backend application.

Usage:
    from shared.config.constants import UserStatus, RoomType, Limits

    if room.type == RoomType.VOICE:
        ...
"""

from typing import Final


# =============================================================================
# Entity Status Constants
# =============================================================================


class UserStatus:
    """Persisted user status values (advisory, see ConnectionRegistry)."""

    ONLINE: Final[str] = "online"
    OFFLINE: Final[str] = "offline"

    ALL: Final[list[str]] = [ONLINE, OFFLINE]


class RoomType:
    """Room type values."""

    TEXT: Final[str] = "text"
    VOICE: Final[str] = "voice"

    ALL: Final[list[str]] = [TEXT, VOICE]


# =============================================================================
# Validation Limits
# =============================================================================


class Limits:
    """Validation limits."""

    # Accounts
    MIN_USERNAME_LENGTH: Final[int] = 2
    MAX_USERNAME_LENGTH: Final[int] = 32
    MIN_PASSWORD_LENGTH: Final[int] = 4
    MAX_PASSWORD_LENGTH: Final[int] = 128
    MAX_EMAIL_LENGTH: Final[int] = 255

    # Rooms
    MAX_ROOM_NAME_LENGTH: Final[int] = 64
    MAX_ROOM_DESCRIPTION_LENGTH: Final[int] = 500

    # Message history pagination
    DEFAULT_HISTORY_LIMIT: Final[int] = 100
    MAX_HISTORY_LIMIT: Final[int] = 500

    # Primary keys are signed 64-bit integers
    MAX_ENTITY_ID: Final[int] = 2**63 - 1


# =============================================================================
# Default data
# =============================================================================

# (name, type, description) inserted at startup when missing
DEFAULT_ROOMS: Final[tuple[tuple[str, str, str], ...]] = (
    ("general", RoomType.TEXT, "Main channel"),
    ("random", RoomType.TEXT, "Off-topic conversation"),
    ("help", RoomType.TEXT, "Help and support"),
    ("voice-chat", RoomType.VOICE, "Voice channel"),
)

# Background colours used for generated avatars, picked by username length
AVATAR_COLORS: Final[tuple[str, ...]] = ("7289da", "43b581", "faa61a", "f04747", "747f8d")
AVATAR_BASE_URL: Final[str] = "https://ui-avatars.com/api/"

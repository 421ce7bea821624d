"""
Shared Pydantic schemas used across the application.

The REST API and the WebSocket gateway serialize users, rooms and messages
with the same shapes so clients can treat both sources alike.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.config.constants import Limits


# =============================================================================
# Common Types
# =============================================================================

RoomKind = Literal["text", "voice"]
PresenceStatus = Literal["online", "offline"]


# =============================================================================
# Authentication Schemas
# =============================================================================


class RegisterRequest(BaseModel):
    """Registration request body."""

    username: str = Field(min_length=Limits.MIN_USERNAME_LENGTH, max_length=Limits.MAX_USERNAME_LENGTH)
    password: str = Field(min_length=Limits.MIN_PASSWORD_LENGTH, max_length=Limits.MAX_PASSWORD_LENGTH)
    email: str | None = Field(default=None, max_length=Limits.MAX_EMAIL_LENGTH)

    @field_validator("username")
    @classmethod
    def strip_username(cls, value: str) -> str:
        value = value.strip()
        if len(value) < Limits.MIN_USERNAME_LENGTH:
            raise ValueError("username is too short")
        return value


class LoginRequest(BaseModel):
    """Login request body."""

    username: str = Field(min_length=1, max_length=Limits.MAX_USERNAME_LENGTH)
    password: str = Field(min_length=1, max_length=Limits.MAX_PASSWORD_LENGTH)


class UserInfo(BaseModel):
    """Public user information included in auth responses and presence events."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    avatar: str | None = None


class AuthResponse(BaseModel):
    """Response for register and login."""

    success: bool = True
    message: str
    user: UserInfo


# =============================================================================
# Chat Schemas
# =============================================================================


class RoomOutput(BaseModel):
    """Room metadata."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: RoomKind
    description: str | None = None


class MessageOutput(BaseModel):
    """A chat message joined with its author's public fields."""

    id: int
    room_id: int
    user_id: int
    content: str
    created_at: datetime
    username: str
    avatar: str | None = None


class OnlineUserOutput(BaseModel):
    """Entry of an online-users listing."""

    id: int
    username: str
    avatar: str | None = None
    status: PresenceStatus = "online"


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
    code: str | None = None

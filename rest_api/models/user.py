"""
User Model.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import Limits, UserStatus
from .base import Base, BigIntPK, TimestampMixin

if TYPE_CHECKING:
    from .message import Message


class User(TimestampMixin, Base):
    """
    Represents a chat account.

    `status` is advisory: the gateway's live sessions decide who is online,
    this column only mirrors it for REST consumers.
    """

    __tablename__ = "app_user"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    username: Mapped[str] = mapped_column(
        String(Limits.MAX_USERNAME_LENGTH), nullable=False, unique=True
    )
    password: Mapped[str] = mapped_column(Text, nullable=False)  # bcrypt hash
    email: Mapped[Optional[str]] = mapped_column(String(Limits.MAX_EMAIL_LENGTH))
    avatar: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=UserStatus.OFFLINE, server_default=UserStatus.OFFLINE
    )
    last_seen: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (Index("ix_user_status", "status"),)

    messages: Mapped[list["Message"]] = relationship(back_populates="user")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', status='{self.status}')>"

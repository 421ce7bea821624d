"""
Room Model.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import Limits, RoomType
from .base import Base, BigIntPK, TimestampMixin

if TYPE_CHECKING:
    from .message import Message


class Room(TimestampMixin, Base):
    """
    A named channel. Text rooms carry messages; voice rooms additionally
    host a voice sub-channel (any room can, the type is a UI hint).
    """

    __tablename__ = "room"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(
        String(Limits.MAX_ROOM_NAME_LENGTH), nullable=False, unique=True
    )
    type: Mapped[str] = mapped_column(String(16), nullable=False, default=RoomType.TEXT)
    description: Mapped[Optional[str]] = mapped_column(String(Limits.MAX_ROOM_DESCRIPTION_LENGTH))

    __table_args__ = (
        CheckConstraint("type IN ('text', 'voice')", name="chk_room_type"),
    )

    messages: Mapped[list["Message"]] = relationship(back_populates="room")

    def __repr__(self) -> str:
        return f"<Room(id={self.id}, name='{self.name}', type='{self.type}')>"

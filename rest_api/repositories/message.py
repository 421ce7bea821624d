"""
Message Repository - Data access for chat messages.

Guarantees eager loading of the author so serialized messages carry
username and avatar without extra queries.
"""

from typing import Sequence

from sqlalchemy import Select, select
from sqlalchemy.orm import Session, joinedload

from rest_api.models import Message
from shared.utils.schemas import MessageOutput
from .base import BaseRepository


class MessageRepository(BaseRepository[Message]):
    """Repository for Message entities."""

    @property
    def model(self) -> type[Message]:
        return Message

    def _base_query(self) -> Select:
        return select(Message).options(joinedload(Message.user))

    def create(self, room_id: int, user_id: int, content: str) -> Message:
        """Insert a message and load its author."""
        message = self.save(Message(room_id=room_id, user_id=user_id, content=content))
        # refresh() reloads columns only
        self._db.refresh(message, attribute_names=["user"])
        return message

    def list_recent(self, room_id: int, limit: int) -> Sequence[Message]:
        """
        Most recent `limit` messages of a room in chronological order.

        The query reads newest first so the limit keeps the latest rows,
        then the page is reversed for display.
        """
        query = (
            self._base_query()
            .where(Message.room_id == room_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(max(1, limit))
        )
        newest_first = self._db.execute(query).scalars().unique().all()
        return list(reversed(newest_first))


def to_message_output(message: Message) -> MessageOutput:
    """Serialize a message joined with its author's public fields."""
    return MessageOutput(
        id=message.id,
        room_id=message.room_id,
        user_id=message.user_id,
        content=message.content,
        created_at=message.created_at,
        username=message.user.username,
        avatar=message.user.avatar,
    )


def get_message_repository(db: Session) -> MessageRepository:
    """Factory function for MessageRepository."""
    return MessageRepository(db)

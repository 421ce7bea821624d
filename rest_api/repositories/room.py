"""
Room Repository - Data access for chat rooms.
"""

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from rest_api.models import Room
from shared.config.constants import RoomType
from .base import BaseRepository


class RoomRepository(BaseRepository[Room]):
    """Repository for Room entities, listed by name."""

    @property
    def model(self) -> type[Room]:
        return Room

    def _base_query(self) -> Select:
        return select(Room).order_by(Room.name)

    def find_by_name(self, name: str) -> Room | None:
        """Find a room by its unique name."""
        return self._db.scalar(select(Room).where(Room.name == name))

    def create(self, name: str, type: str = RoomType.TEXT, description: str | None = None) -> Room:
        """Insert a new room."""
        return self.save(Room(name=name, type=type, description=description))


def get_room_repository(db: Session) -> RoomRepository:
    """Factory function for RoomRepository."""
    return RoomRepository(db)

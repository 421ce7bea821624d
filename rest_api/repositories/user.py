"""
User Repository - Data access for chat accounts.
"""

from datetime import datetime, timezone
from typing import Sequence

from sqlalchemy import Select, select, update
from sqlalchemy.orm import Session

from rest_api.models import User
from shared.config.constants import UserStatus
from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User entities."""

    @property
    def model(self) -> type[User]:
        return User

    def _base_query(self) -> Select:
        return select(User).order_by(User.id)

    def find_by_username(self, username: str) -> User | None:
        """Find a user by exact username."""
        return self._db.scalar(select(User).where(User.username == username))

    def find_by_status(self, status: str) -> Sequence[User]:
        """Users whose persisted status equals `status`, ordered by username."""
        query = select(User).where(User.status == status).order_by(User.username)
        return self._db.execute(query).scalars().all()

    def create(
        self,
        username: str,
        password_hash: str,
        avatar: str | None = None,
        email: str | None = None,
    ) -> User:
        """Insert a new account. Raises IntegrityError on duplicate username."""
        return self.save(
            User(
                username=username,
                password=password_hash,
                email=email,
                avatar=avatar,
                status=UserStatus.OFFLINE,
            )
        )

    def set_status(self, user_id: int, status: str) -> bool:
        """
        Update the advisory status and last_seen of one user.

        Returns:
            True if a row was updated
        """
        result = self._db.execute(
            update(User)
            .where(User.id == user_id)
            .values(status=status, last_seen=datetime.now(timezone.utc))
        )
        return result.rowcount > 0

    def reset_all_statuses(self, status: str = UserStatus.OFFLINE) -> int:
        """Set every user's status; returns the number of rows changed."""
        result = self._db.execute(
            update(User).where(User.status != status).values(status=status)
        )
        return result.rowcount


def get_user_repository(db: Session) -> UserRepository:
    """Factory function for UserRepository."""
    return UserRepository(db)

"""
Base Repository implementation.
Provides common data access patterns shared by the chat repositories.
"""

from abc import ABC, abstractmethod
from typing import TypeVar, Generic, Sequence

from sqlalchemy.orm import Session
from sqlalchemy import Select, select, func


ModelT = TypeVar("ModelT")


class BaseRepository(ABC, Generic[ModelT]):
    """
    Abstract base repository with common operations.

    Subclasses must implement:
    - model: Return the SQLAlchemy model class
    - _base_query(): Return the base query with default ordering
    """

    def __init__(self, db: Session):
        self._db = db

    @property
    @abstractmethod
    def model(self) -> type[ModelT]:
        """Return the SQLAlchemy model class."""
        ...

    def _base_query(self) -> Select:
        """Return base query. Subclasses override to add ordering or eager loading."""
        return select(self.model)

    def find_all(self, limit: int | None = None, offset: int = 0) -> Sequence[ModelT]:
        """
        Find all entities.

        Args:
            limit: Maximum number of rows, None for no limit
            offset: Rows to skip

        Returns:
            List of entities
        """
        query = self._base_query().offset(max(0, offset))
        if limit is not None:
            query = query.limit(max(1, limit))
        return self._db.execute(query).scalars().unique().all()

    def find_by_id(self, entity_id: int) -> ModelT | None:
        """Find entity by ID."""
        return self._db.scalar(self._base_query().where(self.model.id == entity_id))

    def count(self) -> int:
        """Count all entities."""
        return self._db.scalar(select(func.count()).select_from(self.model)) or 0

    def save(self, entity: ModelT) -> ModelT:
        """
        Save entity (insert or update).

        Flushes so generated columns (id, created_at) are populated; the caller
        owns the commit.
        """
        self._db.add(entity)
        self._db.flush()
        self._db.refresh(entity)
        return entity

"""
Seed data for development and testing.
Creates the tables and the default chat rooms.
"""

from sqlalchemy.orm import Session

from rest_api.models import Base
from rest_api.repositories import get_room_repository
from shared.config.constants import DEFAULT_ROOMS
from shared.config.logging import get_logger
from shared.infrastructure.db import engine, get_db_context, safe_commit

logger = get_logger(__name__)


def seed_rooms(db: Session) -> int:
    """
    Insert the default rooms.
    Idempotent: rooms that already exist (by name) are left untouched.

    Returns:
        Number of rooms created
    """
    repo = get_room_repository(db)
    created = 0

    for name, room_type, description in DEFAULT_ROOMS:
        if repo.find_by_name(name) is not None:
            continue
        repo.create(name=name, type=room_type, description=description)
        created += 1

    if created:
        safe_commit(db)
        logger.info("Default rooms seeded", created=created)
    else:
        logger.info("Default rooms already present, skipping")

    return created


def prepare_database() -> int:
    """
    Create missing tables and the default rooms. Run by both service
    lifespans and `cli.py db-init`; safe to repeat.

    Returns:
        Number of rooms created
    """
    Base.metadata.create_all(bind=engine)
    with get_db_context() as db:
        return seed_rooms(db)

"""
SQLAlchemy ORM Models Package.

- base: Base class and TimestampMixin
- user: User
- room: Room
- message: Message
"""

# Base classes
from .base import Base, BigIntPK, TimestampMixin

# Accounts
from .user import User

# Chat
from .room import Room
from .message import Message

__all__ = [
    "Base",
    "BigIntPK",
    "TimestampMixin",
    "User",
    "Room",
    "Message",
]

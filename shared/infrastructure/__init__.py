"""
Infrastructure module: Database sessions and log correlation.

Provides:
- Database sessions and transactions (db.py)
- Correlation IDs for REST requests and WebSocket frames (correlation.py)
"""

from shared.infrastructure.db import (
    engine,
    SessionLocal,
    build_engine,
    get_db,
    get_db_context,
    safe_commit,
)
from shared.infrastructure.correlation import (
    CorrelationIdMiddleware,
    correlation_scope,
)

__all__ = [
    # db
    "engine",
    "SessionLocal",
    "build_engine",
    "get_db",
    "get_db_context",
    "safe_commit",
    # correlation
    "CorrelationIdMiddleware",
    "correlation_scope",
]

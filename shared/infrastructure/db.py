"""
Engine and session factory shared by the REST API, the gateway's ChatStore
and the CLI. SQLite by default; any SQLAlchemy URL in DATABASE_URL works.
"""

import os
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from shared.config.settings import DATABASE_URL


def _calculate_pool_size() -> int:
    # Two connections per core plus one, at most 20
    cores = os.cpu_count() or 4
    return min(cores * 2 + 1, 20)


def build_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine with pool settings suited to the backend.

    SQLite connections are shared with worker threads (the gateway runs
    queries through asyncio.to_thread), and in-memory SQLite must reuse a
    single connection or every checkout would see an empty database.
    """
    parsed = make_url(url)
    kwargs: dict[str, Any] = {"echo": echo}

    if parsed.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if parsed.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(
            pool_pre_ping=True,
            pool_size=_calculate_pool_size(),
            max_overflow=15,
            pool_timeout=30,
            pool_recycle=1800,
            connect_args={"connect_timeout": 10},
        )

    return create_engine(url, **kwargs)


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
)


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session: `db: Session = Depends(get_db)`."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """Session for code outside a request (lifespans, seeding, the CLI)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def safe_commit(db: Session) -> None:
    """Commit, or roll back and re-raise."""
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

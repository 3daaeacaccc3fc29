"""Database session management.

Provides engines and session factories for SQLite database access with
thread-safety for FastAPI concurrency.
"""

from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from blindtaste.core.config import DEFAULT_DB_PATH
from blindtaste.db.schema import Base

logger = logging.getLogger(__name__)

# Engines and session factories cached by resolved db path
_engine_cache: dict[str, Engine] = {}
_session_factory_cache: dict[str, sessionmaker] = {}


def _cache_key(db_path: Path | None) -> tuple[Path, str]:
    path = Path(db_path) if db_path is not None else DEFAULT_DB_PATH
    return path, str(path.resolve())


def get_engine(db_path: Path | None = None) -> Engine:
    """Get SQLAlchemy engine for the database.

    Engines are cached by resolved db_path; subsequent calls with the same
    path return the cached engine. Uses StaticPool and
    check_same_thread=False so a single SQLite connection can be shared
    across FastAPI worker threads.

    Args:
        db_path: Path to SQLite database file. Defaults to data/blindtaste.db.

    Returns:
        SQLAlchemy engine instance (cached).
    """
    path, key = _cache_key(db_path)

    if key in _engine_cache:
        return _engine_cache[key]

    path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(
        f"sqlite:///{path}",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    _engine_cache[key] = engine
    logger.debug(f"Created database engine for {path}")

    return engine


def get_session(db_path: Path | None = None) -> Session:
    """Get a database session.

    Caller is responsible for closing the session.

    Args:
        db_path: Path to SQLite database file.

    Returns:
        SQLAlchemy Session instance.
    """
    _, key = _cache_key(db_path)

    factory = _session_factory_cache.get(key)
    if factory is None:
        factory = sessionmaker(bind=get_engine(db_path))
        _session_factory_cache[key] = factory

    return factory()


def init_db(db_path: Path | None = None) -> None:
    """Create all tables if they do not exist.

    Args:
        db_path: Path to SQLite database file.
    """
    engine = get_engine(db_path)
    Base.metadata.create_all(engine)
    logger.info(f"Database schema ready at {engine.url.database}")

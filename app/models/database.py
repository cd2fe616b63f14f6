# app/models/database.py
"""
SQLAlchemy engine, session factory and declarative base.

Usage:
    from app.models.database import Base, engine, SessionLocal, session_scope

    with session_scope() as db:
        db.add(obj)

Tests build their own engine (in-memory SQLite) with `build_engine` and pass
a matching session factory into the stores instead of using the globals.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config.settings import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine for `url`. In-memory SQLite shares one connection across threads."""
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        eng = create_engine(url, echo=echo, **kwargs)
        event.listen(eng, "connect", _enable_sqlite_foreign_keys)
        return eng
    return create_engine(url, echo=echo, pool_pre_ping=True, pool_size=5, max_overflow=10)


def build_session_factory(eng: Engine) -> sessionmaker:
    return sessionmaker(bind=eng, autoflush=False, expire_on_commit=False)


engine = build_engine(settings.database_url, echo=settings.database_echo)
SessionLocal = build_session_factory(engine)


@contextmanager
def session_scope(factory: Optional[sessionmaker] = None) -> Iterator[Session]:
    """Transactional scope: commit on success, rollback and re-raise on error."""
    db = (factory or SessionLocal)()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(eng: Optional[Engine] = None) -> None:
    """Create all tables. Importing app.models registers every mapped class first."""
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=eng or engine)
    logger.info("Database tables ensured")


def health_check(eng: Optional[Engine] = None) -> bool:
    try:
        with (eng or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as exc:
        logger.warning("Database health check failed: %s", exc)
        return False


def utcnow() -> datetime:
    return datetime.now(timezone.utc)

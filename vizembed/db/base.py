"""Shared SQLAlchemy engine for the embeds service.

Repositories under `vizembed/logic/` issue SQL text against one
process-wide engine; there are no declarative models. PostgreSQL is the
production target, SQLite (file or in-memory) serves development and tests.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+pysqlite:///:memory:"

_engine: Optional[Engine] = None
_engine_url: Optional[str] = None


def database_url_from_env() -> str:
    return os.getenv("TEST_DATABASE_URL") or os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL


def _engine_options(url: str) -> dict:
    options: dict = {"future": True, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        # TestClient runs handlers in a worker thread
        options["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url:
            # One connection, otherwise every checkout sees an empty database
            options["poolclass"] = StaticPool
    return options


def get_engine(url: Optional[str] = None) -> Engine:
    """Return the process-wide engine, rebinding it when ``url`` differs.

    Without ``url`` the engine bound by the application factory is reused;
    before any binding the URL comes from the environment.
    """
    global _engine, _engine_url
    target = url or _engine_url or database_url_from_env()
    if _engine is not None and _engine_url == target:
        return _engine

    if _engine is not None:
        _engine.dispose()
    _engine = create_engine(target, **_engine_options(target))
    _engine_url = target
    logger.info("db.engine_created", extra={"dialect": _engine.dialect.name})
    return _engine


def get_sessionmaker(engine: Optional[Engine] = None) -> sessionmaker:
    return sessionmaker(bind=engine or get_engine(), future=True)


@contextmanager
def session_scope() -> Iterator[Session]:
    """Unit of work: commit when the block succeeds, roll back and re-raise otherwise."""
    session = get_sessionmaker()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.error("db.rollback", exc_info=True)
        raise
    finally:
        session.close()


__all__ = ["DEFAULT_DATABASE_URL", "database_url_from_env", "get_engine", "get_sessionmaker", "session_scope"]

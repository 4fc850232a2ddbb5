"""Database bootstrap utilities for the embeds service.

Exposes convenience imports for engine/session construction and the SQL
migrations runner that applies files from the package's migrations/
directory. ORM rows never leak into route handlers; repositories return
pydantic models.
"""

from vizembed.db.base import get_engine, get_sessionmaker, session_scope
from vizembed.db.migrations_runner import apply_migrations

__all__ = [
    "get_engine",
    "get_sessionmaker",
    "session_scope",
    "apply_migrations",
]

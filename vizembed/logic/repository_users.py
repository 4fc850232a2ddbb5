"""User and organization data access helpers.

Encapsulates SQL for accounts so session handling and routes stay free of
inline queries. Returns `Viewer` models for authenticated requesters.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import text as sql_text
from sqlalchemy.exc import IntegrityError

from vizembed.db.base import get_engine, session_scope
from vizembed.logic.passwords import new_auth_token, new_salt, password_digest, password_matches
from vizembed.models.visualization import Viewer

logger = logging.getLogger(__name__)


class DuplicateAccount(ValueError):
    """Raised when a username or organization name is already taken."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def create_organization(name: str) -> str:
    org_id = str(uuid.uuid4())
    try:
        with session_scope() as s:
            s.execute(
                sql_text(
                    "INSERT INTO organizations (organization_id, name, auth_token, created_at) "
                    "VALUES (:id, :name, :token, :at)"
                ),
                {"id": org_id, "name": name, "token": new_auth_token(), "at": _now()},
            )
    except IntegrityError as exc:
        raise DuplicateAccount(f"organization {name!r} already exists") from exc
    return org_id


def create_user(
    username: str,
    password: str,
    *,
    email: Optional[str] = None,
    organization_id: Optional[str] = None,
) -> str:
    user_id = str(uuid.uuid4())
    salt = new_salt()
    try:
        with session_scope() as s:
            s.execute(
                sql_text(
                    "INSERT INTO users (user_id, username, email, password_salt, password_digest, "
                    "auth_token, organization_id, created_at) "
                    "VALUES (:id, :username, :email, :salt, :digest, :token, :org, :at)"
                ),
                {
                    "id": user_id,
                    "username": username,
                    "email": email,
                    "salt": salt,
                    "digest": password_digest(password, salt),
                    "token": new_auth_token(),
                    "org": organization_id,
                    "at": _now(),
                },
            )
    except IntegrityError as exc:
        raise DuplicateAccount(f"user {username!r} already exists") from exc
    return user_id


_VIEWER_SQL = (
    "SELECT u.user_id, u.username, u.organization_id, u.auth_token, o.auth_token AS org_token, "
    "u.password_salt, u.password_digest "
    "FROM users u LEFT JOIN organizations o ON o.organization_id = u.organization_id "
)


def _viewer_from_row(row) -> Viewer:
    # Personal token first, then the organization's
    tokens = [row.auth_token]
    if row.org_token:
        tokens.append(row.org_token)
    return Viewer(
        user_id=row.user_id,
        username=row.username,
        organization_id=row.organization_id,
        auth_tokens=tuple(tokens),
    )


def get_viewer(user_id: str) -> Optional[Viewer]:
    """Return the Viewer for a user id, or None when the user does not exist."""
    with get_engine().connect() as conn:
        row = conn.execute(sql_text(_VIEWER_SQL + "WHERE u.user_id = :id"), {"id": user_id}).fetchone()
    return _viewer_from_row(row) if row is not None else None


def authenticate(username: str, password: str) -> Optional[Viewer]:
    """Return the Viewer when the credentials match, else None."""
    with get_engine().connect() as conn:
        row = conn.execute(sql_text(_VIEWER_SQL + "WHERE u.username = :u"), {"u": username}).fetchone()
    if row is None:
        return None
    if not password_matches(password, row.password_salt, row.password_digest):
        return None
    return _viewer_from_row(row)


__all__ = [
    "DuplicateAccount",
    "create_organization",
    "create_user",
    "get_viewer",
    "authenticate",
]

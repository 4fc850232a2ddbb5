"""Visualization data access helpers.

Loads visualizations together with their owner, auth tokens and ACL into a
single `Visualization` model, and applies privacy/password/ACL changes.
Privacy transitions keep tokens and passwords consistent:
- entering PROTECTED issues a fresh auth token;
- leaving PROTECTED drops the stored password and the tokens.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional, Union

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Connection
from sqlalchemy.orm import Session

from vizembed.db.base import get_engine, session_scope
from vizembed.logic.passwords import new_auth_token, new_salt, password_digest
from vizembed.models.privacy import Privacy
from vizembed.models.visualization import AclEntry, Owner, Visualization

logger = logging.getLogger(__name__)

_UNSET = object()


class InvalidPrivacyChange(ValueError):
    """Raised when a privacy change would leave a protected map without a password."""

    code = "PRIVACY_PASSWORD_REQUIRED"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def normalize_visualization_id(value: object) -> Optional[str]:
    """Canonical lowercase hyphenated form of a UUID id, or None when malformed.

    Accepts every spelling `uuid.UUID` does (uppercase, no hyphens, braces,
    `urn:uuid:`); ids are stored in the canonical form.
    """
    try:
        return str(uuid.UUID(str(value)))
    except (TypeError, ValueError):
        return None


def is_valid_visualization_id(value: str) -> bool:
    return normalize_visualization_id(value) is not None


def _load_state(raw: Optional[str]) -> Optional[dict]:
    if not raw:
        return None
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("visualization_state_unparseable")
        return None
    return parsed if isinstance(parsed, dict) else None


def _load(conn: Union[Connection, Session], visualization_id: str) -> Optional[Visualization]:
    row = conn.execute(
        sql_text(
            "SELECT v.visualization_id, v.name, v.description, v.privacy, v.password_salt, "
            "v.password_digest, v.state, v.updated_at, u.user_id, u.username, u.organization_id "
            "FROM visualizations v JOIN users u ON u.user_id = v.user_id "
            "WHERE v.visualization_id = :id"
        ),
        {"id": visualization_id},
    ).fetchone()
    if row is None:
        return None
    tokens = conn.execute(
        sql_text(
            "SELECT token FROM visualization_auth_tokens WHERE visualization_id = :id ORDER BY token_order"
        ),
        {"id": visualization_id},
    ).fetchall()
    acl = conn.execute(
        sql_text(
            "SELECT grantee_type, grantee_id, access FROM visualization_acl "
            "WHERE visualization_id = :id ORDER BY grantee_type, grantee_id"
        ),
        {"id": visualization_id},
    ).fetchall()
    return Visualization(
        id=row.visualization_id,
        name=row.name,
        description=row.description,
        privacy=Privacy.parse(row.privacy),
        owner=Owner(user_id=row.user_id, username=row.username, organization_id=row.organization_id),
        password_salt=row.password_salt,
        password_digest=row.password_digest,
        auth_tokens=tuple(t.token for t in tokens),
        acl=tuple(AclEntry(type=a.grantee_type, id=a.grantee_id, access=a.access) for a in acl),
        state=_load_state(row.state),
        updated_at=row.updated_at,
    )


def get_visualization(visualization_id: str) -> Optional[Visualization]:
    """Return the visualization or None when the id is malformed or unknown."""
    viz_id = normalize_visualization_id(visualization_id)
    if viz_id is None:
        return None
    with get_engine().connect() as conn:
        return _load(conn, viz_id)


def _issue_token(s, visualization_id: str) -> None:
    s.execute(sql_text("DELETE FROM visualization_auth_tokens WHERE visualization_id = :id"), {"id": visualization_id})
    s.execute(
        sql_text(
            "INSERT INTO visualization_auth_tokens (visualization_id, token_order, token) VALUES (:id, 0, :token)"
        ),
        {"id": visualization_id, "token": new_auth_token()},
    )


def create_visualization(
    user_id: str,
    name: str,
    *,
    description: Optional[str] = None,
    privacy: Privacy = Privacy.PUBLIC,
    password: Optional[str] = None,
    state: Optional[dict] = None,
) -> str:
    if privacy == Privacy.PROTECTED and not password:
        raise InvalidPrivacyChange("a password is required for protected visualizations")
    viz_id = str(uuid.uuid4())
    salt = new_salt() if password and privacy == Privacy.PROTECTED else None
    now = _now()
    with session_scope() as s:
        s.execute(
            sql_text(
                "INSERT INTO visualizations (visualization_id, user_id, name, description, privacy, "
                "password_salt, password_digest, state, created_at, updated_at) "
                "VALUES (:id, :user_id, :name, :description, :privacy, :salt, :digest, :state, :at, :at)"
            ),
            {
                "id": viz_id,
                "user_id": user_id,
                "name": name,
                "description": description,
                "privacy": privacy.value,
                "salt": salt,
                "digest": password_digest(password, salt) if salt else None,
                "state": json.dumps(state) if state is not None else None,
                "at": now,
            },
        )
        if privacy == Privacy.PROTECTED:
            _issue_token(s, viz_id)
    logger.info("visualization.created", extra={"visualization_id": viz_id, "privacy": privacy.value})
    return viz_id


def _lock_row(s, visualization_id: str, at: str) -> bool:
    """Take the row's write lock first so the following read cannot go stale."""
    result = s.execute(
        sql_text("UPDATE visualizations SET updated_at = :at WHERE visualization_id = :id"),
        {"id": visualization_id, "at": at},
    )
    return result.rowcount > 0


def update_visualization(
    visualization_id: str,
    *,
    name=_UNSET,
    description=_UNSET,
    privacy=_UNSET,
    password=_UNSET,
    state=_UNSET,
) -> Optional[Visualization]:
    """Apply the given changes; arguments left unset are untouched.

    Reads and writes happen in one unit of work behind a row lock, so
    concurrent privacy changes serialize. Returns the reloaded visualization,
    or None when it does not exist. Raises InvalidPrivacyChange when the
    result would be PROTECTED without a password.
    """
    viz_id = normalize_visualization_id(visualization_id)
    if viz_id is None:
        return None
    now = _now()

    with session_scope() as s:
        if not _lock_row(s, viz_id, now):
            return None
        current = _load(s, viz_id)

        new_privacy = Privacy.parse(privacy) if privacy is not _UNSET else current.privacy
        fields: dict[str, object] = {}
        if name is not _UNSET:
            fields["name"] = name
        if description is not _UNSET:
            fields["description"] = description
        if state is not _UNSET:
            fields["state"] = json.dumps(state) if state is not None else None

        if new_privacy == Privacy.PROTECTED:
            if password is not _UNSET and password:
                salt = new_salt()
                fields["password_salt"] = salt
                fields["password_digest"] = password_digest(password, salt)
            elif not current.has_password() or (password is not _UNSET and not password):
                raise InvalidPrivacyChange("a password is required for protected visualizations")
        else:
            fields["password_salt"] = None
            fields["password_digest"] = None
        fields["privacy"] = new_privacy.value

        assignments = ", ".join(f"{col} = :{col}" for col in fields)
        s.execute(
            sql_text(f"UPDATE visualizations SET {assignments} WHERE visualization_id = :visualization_id"),
            {**fields, "visualization_id": viz_id},
        )
        entering_protected = new_privacy == Privacy.PROTECTED and current.privacy != Privacy.PROTECTED
        if entering_protected or (new_privacy == Privacy.PROTECTED and not current.auth_tokens):
            _issue_token(s, viz_id)
        elif new_privacy != Privacy.PROTECTED:
            s.execute(sql_text("DELETE FROM visualization_auth_tokens WHERE visualization_id = :id"), {"id": viz_id})
        updated = _load(s, viz_id)

    logger.info(
        "visualization.updated",
        extra={
            "visualization_id": viz_id,
            "privacy_from": current.privacy.value,
            "privacy_to": new_privacy.value,
        },
    )
    return updated


def replace_acl(visualization_id: str, entries: Iterable[AclEntry]) -> Optional[Visualization]:
    """Replace every ACL grant of a visualization; returns the reloaded model."""
    viz_id = normalize_visualization_id(visualization_id)
    if viz_id is None:
        return None
    unique = {(e.type, e.id): e for e in entries}
    with session_scope() as s:
        if not _lock_row(s, viz_id, _now()):
            return None
        s.execute(sql_text("DELETE FROM visualization_acl WHERE visualization_id = :id"), {"id": viz_id})
        for entry in unique.values():
            s.execute(
                sql_text(
                    "INSERT INTO visualization_acl (visualization_id, grantee_type, grantee_id, access) "
                    "VALUES (:id, :type, :grantee, :access)"
                ),
                {"id": viz_id, "type": entry.type, "grantee": entry.id, "access": entry.access},
            )
        return _load(s, viz_id)


__all__ = [
    "InvalidPrivacyChange",
    "normalize_visualization_id",
    "is_valid_visualization_id",
    "get_visualization",
    "create_visualization",
    "update_visualization",
    "replace_acl",
]

"""Salted password digests shared by users and protected visualizations.

Digests are PBKDF2-SHA256 hex strings; comparison is constant-time and
case-sensitive (no normalisation of the candidate).
"""

from __future__ import annotations

import hashlib
import hmac
import secrets

PBKDF2_ITERATIONS = 120_000


def new_salt() -> str:
    return secrets.token_hex(16)


def password_digest(password: str, salt: str) -> str:
    raw = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), PBKDF2_ITERATIONS)
    return raw.hex()


def password_matches(candidate: str | None, salt: str | None, digest: str | None) -> bool:
    if candidate is None or not salt or not digest:
        return False
    return hmac.compare_digest(password_digest(candidate, salt), digest)


def new_auth_token() -> str:
    """Return an opaque auth token suitable for embedding in a page."""
    return secrets.token_hex(16)


__all__ = ["new_salt", "password_digest", "password_matches", "new_auth_token"]

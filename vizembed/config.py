"""Configuration utilities for the embeds service.

This module loads application configuration with the following rules:
- Primary source: `embeds_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_EMBEDS_CONFIG = Path("embeds_config.json")
logger = logging.getLogger(__name__)

_DEV_SESSION_SECRET = "dev-only-session-secret"


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


def _truthy(text: object) -> bool:
    return str(text).strip().lower() in {"1", "true", "yes", "on"}


class DatabaseConfig(BaseModel):
    dsn: str
    auto_migrate: bool = Field(default=True)

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v


class SessionConfig(BaseModel):
    secret_key: str
    cookie_name: str = Field(default="vizembed_session")
    https_only: bool = Field(default=False)
    max_age_seconds: int = Field(default=14 * 24 * 3600, gt=0)

    @field_validator("secret_key")
    @classmethod
    def secret_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("session.secret_key must be a non-empty string")
        return v


class EmbedsConfig(BaseModel):
    site_name: str = Field(default="CARTO")
    maps_api_http_template: str = Field(default="http://{user}.localhost.lan:8181")
    maps_api_https_template: str = Field(default="https://{user}.localhost.lan:4443")
    public_cache_max_age: int = Field(default=86400, ge=0)

    @field_validator("maps_api_http_template", "maps_api_https_template")
    @classmethod
    def template_needs_user(cls, v: str) -> str:
        if "{user}" not in v:
            raise ValueError("maps API templates must contain the {user} placeholder")
        return v


class AppConfig(BaseModel):
    database: DatabaseConfig
    session: SessionConfig
    embeds: EmbedsConfig


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) embeds_config.json at project root (primary base)
    4) Safe defaults for development
    """

    base = _read_json_file(ROOT_EMBEDS_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    def _pick(env_key: str, file_key: str, base_key: str, default: Optional[str] = None) -> Optional[str]:
        return _env(env_key) or _read_config_file(file_key) or _base(base_key, default)

    # Database
    dsn = (
        _env("TEST_DATABASE_URL")
        or _pick("DATABASE_URL", "database.url", "database.dsn", "sqlite+pysqlite:///:memory:")
    )
    auto_migrate_text = _pick("AUTO_APPLY_MIGRATIONS", "database.auto_migrate", "database.auto_migrate", "true")

    # Session cookie
    secret = _pick("SESSION_SECRET_KEY", "session.secret_key", "session.secret_key", _DEV_SESSION_SECRET)
    cookie_name = _pick("SESSION_COOKIE_NAME", "session.cookie_name", "session.cookie_name", "vizembed_session")
    https_only_text = _pick("SESSION_HTTPS_ONLY", "session.https_only", "session.https_only", "false")
    max_age_text = _pick("SESSION_MAX_AGE", "session.max_age", "session.max_age_seconds", str(14 * 24 * 3600))

    # Embeds
    site_name = _pick("EMBEDS_SITE_NAME", "embeds.site_name", "embeds.site_name", "CARTO")
    http_tpl = _pick(
        "MAPS_API_HTTP_TEMPLATE", "embeds.maps_api.http", "embeds.maps_api_http_template",
        "http://{user}.localhost.lan:8181",
    )
    https_tpl = _pick(
        "MAPS_API_HTTPS_TEMPLATE", "embeds.maps_api.https", "embeds.maps_api_https_template",
        "https://{user}.localhost.lan:4443",
    )
    cache_age_text = _pick("EMBEDS_PUBLIC_CACHE_MAX_AGE", "embeds.cache.max_age", "embeds.public_cache_max_age", "86400")

    if secret == _DEV_SESSION_SECRET:
        logger.warning("config.session_secret_default; set SESSION_SECRET_KEY outside development")

    try:
        cfg = AppConfig(
            database=DatabaseConfig(dsn=dsn, auto_migrate=_truthy(auto_migrate_text)),
            session=SessionConfig(
                secret_key=secret or "",
                cookie_name=cookie_name,
                https_only=_truthy(https_only_text),
                max_age_seconds=int(str(max_age_text).strip()),
            ),
            embeds=EmbedsConfig(
                site_name=site_name,
                maps_api_http_template=http_tpl,
                maps_api_https_template=https_tpl,
                public_cache_max_age=int(str(cache_age_text).strip()),
            ),
        )
        return cfg
    except PydanticValidationError as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "SessionConfig",
    "EmbedsConfig",
    "load_config",
]

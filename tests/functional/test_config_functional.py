"""Functional tests for configuration loading and the migrations runner."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError
from sqlalchemy import create_engine, inspect

import vizembed
from vizembed.config import EmbedsConfig, load_config
from vizembed.db.migrations_runner import DEFAULT_MIGRATIONS_DIR, apply_migrations

_ENV_KEYS = [
    "TEST_DATABASE_URL",
    "DATABASE_URL",
    "AUTO_APPLY_MIGRATIONS",
    "SESSION_SECRET_KEY",
    "SESSION_COOKIE_NAME",
    "SESSION_HTTPS_ONLY",
    "SESSION_MAX_AGE",
    "EMBEDS_SITE_NAME",
    "MAPS_API_HTTP_TEMPLATE",
    "MAPS_API_HTTPS_TEMPLATE",
    "EMBEDS_PUBLIC_CACHE_MAX_AGE",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run load_config from an empty directory with no config variables set."""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_defaults(clean_env):
    cfg = load_config()

    assert cfg.database.dsn == "sqlite+pysqlite:///:memory:"
    assert cfg.database.auto_migrate is True
    assert cfg.session.cookie_name == "vizembed_session"
    assert cfg.session.https_only is False
    assert cfg.embeds.site_name == "CARTO"
    assert cfg.embeds.public_cache_max_age == 86400


def test_json_file_is_the_base(clean_env):
    (clean_env / "embeds_config.json").write_text(
        json.dumps({"embeds": {"site_name": "Maps Inc", "public_cache_max_age": 60}, "session": {"https_only": True}}),
        encoding="utf-8",
    )

    cfg = load_config()

    assert cfg.embeds.site_name == "Maps Inc"
    assert cfg.embeds.public_cache_max_age == 60
    assert cfg.session.https_only is True


def test_config_dir_overrides_json_and_env_overrides_both(clean_env, monkeypatch):
    (clean_env / "embeds_config.json").write_text(json.dumps({"embeds": {"site_name": "From JSON"}}), encoding="utf-8")
    (clean_env / "config").mkdir()
    (clean_env / "config" / "embeds.site_name").write_text("From file\n", encoding="utf-8")

    assert load_config().embeds.site_name == "From file"

    monkeypatch.setenv("EMBEDS_SITE_NAME", "From env")
    assert load_config().embeds.site_name == "From env"


def test_test_database_url_wins(clean_env, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///prod.db")
    monkeypatch.setenv("TEST_DATABASE_URL", "sqlite:///test.db")

    assert load_config().database.dsn == "sqlite:///test.db"


@pytest.mark.parametrize("text, expected", [("1", True), ("yes", True), ("TRUE", True), ("0", False), ("no", False)])
def test_https_only_parsing(clean_env, monkeypatch, text, expected):
    monkeypatch.setenv("SESSION_HTTPS_ONLY", text)

    assert load_config().session.https_only is expected


def test_negative_cache_age_is_rejected(clean_env, monkeypatch):
    monkeypatch.setenv("EMBEDS_PUBLIC_CACHE_MAX_AGE", "-1")

    with pytest.raises(ValidationError):
        load_config()


def test_maps_api_template_needs_user_placeholder():
    with pytest.raises(ValidationError):
        EmbedsConfig(maps_api_http_template="http://maps.example.com")


def test_migrations_are_applied_once(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'migrate.db'}")

    first = apply_migrations(engine)
    second = apply_migrations(engine)

    assert first == ["001_core_schema.sql"]
    assert second == []
    tables = set(inspect(engine).get_table_names())
    assert {"visualizations", "users", "organizations", "visualization_acl", "schema_migrations"} <= tables
    engine.dispose()


def test_rollback_files_are_skipped(tmp_path):
    migrations = tmp_path / "migrations"
    migrations.mkdir()
    (migrations / "001_widgets.sql").write_text(
        "-- widgets\nCREATE TABLE widgets (id INTEGER PRIMARY KEY);\nCREATE INDEX ix_widgets ON widgets (id);\n",
        encoding="utf-8",
    )
    (migrations / "001_widgets_rollback.sql").write_text("DROP TABLE widgets;", encoding="utf-8")
    engine = create_engine(f"sqlite:///{tmp_path / 'custom.db'}")

    assert apply_migrations(engine, migrations) == ["001_widgets.sql"]
    assert "widgets" in inspect(engine).get_table_names()
    engine.dispose()


def test_default_migrations_ship_inside_the_package():
    package_dir = Path(vizembed.__file__).resolve().parent

    assert DEFAULT_MIGRATIONS_DIR.parent == package_dir
    assert (DEFAULT_MIGRATIONS_DIR / "001_core_schema.sql").is_file()


def test_missing_migrations_directory_is_an_error(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'nowhere.db'}")

    with pytest.raises(FileNotFoundError):
        apply_migrations(engine, tmp_path / "missing")
    engine.dispose()

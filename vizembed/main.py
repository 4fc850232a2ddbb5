from __future__ import annotations

import logging
import os
from typing import Callable, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text as sql_text
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.sessions import SessionMiddleware

from vizembed.config import AppConfig, load_config
from vizembed.db.base import get_engine
from vizembed.db.migrations_runner import apply_migrations
from vizembed.http.problem import (
    handle_http_exception,
    handle_request_validation_error,
    handle_unexpected_error,
)
from vizembed.http.request_id import FrameOptionsMiddleware, RequestIdMiddleware
from vizembed.logic import events
from vizembed.logging_setup import configure_logging
from vizembed.routes import api_router

logger = logging.getLogger(__name__)


def _health_check() -> Callable[[], dict]:
    def check() -> dict:
        try:
            with get_engine().connect() as conn:
                conn.execute(sql_text("SELECT 1"))
            return {"status": "ok", "db": True}
        except SQLAlchemyError as e:
            logger.warning("health.db_unreachable: %s", e)
            return {"status": "degraded", "db": False}

    return check


def create_app(config: Optional[AppConfig] = None, *, enable_test_support: Optional[bool] = None) -> FastAPI:
    """Build the embeds application.

    Loads configuration (unless given), binds the database engine, applies
    pending migrations when enabled, and wires middleware, exception handlers
    and routers.
    """
    configure_logging()
    cfg = config or load_config()

    engine = get_engine(cfg.database.dsn)
    if cfg.database.auto_migrate:
        applied = apply_migrations(engine)
        if applied:
            logger.info("startup.migrations_applied count=%d", len(applied))

    app = FastAPI(title="Vizembed", version="1.0.0")
    app.state.config = cfg

    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    # Last added runs first: request id wraps everything, sessions wrap routes
    app.add_middleware(
        SessionMiddleware,
        secret_key=cfg.session.secret_key,
        session_cookie=cfg.session.cookie_name,
        max_age=cfg.session.max_age_seconds,
        https_only=cfg.session.https_only,
        same_site="lax",
    )
    app.add_middleware(FrameOptionsMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router)

    if enable_test_support is None:
        enable_test_support = os.getenv("ENABLE_TEST_SUPPORT", "").strip().lower() in {"1", "true", "yes", "on"}
    # Events are only buffered for the /__test__ feed
    events.set_buffering(enable_test_support)
    if enable_test_support:
        from vizembed.routes.test_support import router as test_support_router

        app.include_router(test_support_router)

    health = _health_check()

    @app.get("/health", tags=["Health"])
    def health_endpoint() -> dict:
        return health()

    logger.info("startup.app_created", extra={"site_name": cfg.embeds.site_name})
    return app


__all__ = ["create_app"]

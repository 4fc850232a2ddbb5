"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import Request

from vizembed.config import AppConfig


def get_app_config(request: Request) -> AppConfig:
    """Return the configuration loaded by the application factory."""
    return request.app.state.config


__all__ = ["get_app_config"]

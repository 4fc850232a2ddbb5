"""APIRouter registration for the embeds service."""

from __future__ import annotations

from fastapi import APIRouter

from vizembed.routes.embeds import router as embeds_router
from vizembed.routes.sessions import router as sessions_router
from vizembed.routes.visualizations import router as visualizations_router

api_router = APIRouter()
api_router.include_router(embeds_router)
api_router.include_router(sessions_router)
api_router.include_router(visualizations_router)

__all__ = ["api_router"]

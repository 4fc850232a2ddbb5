"""Resolve the requester from the signed session cookie."""

from __future__ import annotations

import logging

from fastapi import Depends, Request

from vizembed.http.problem import problem_exception
from vizembed.logic.repository_users import get_viewer
from vizembed.models.visualization import Viewer

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"


def get_current_viewer(request: Request) -> Viewer:
    """FastAPI dependency: the session's user, or an anonymous viewer."""
    user_id = request.session.get(SESSION_USER_KEY)
    if not user_id:
        return Viewer.anonymous()
    viewer = get_viewer(str(user_id))
    if viewer is None:
        # Account removed after login; the stale cookie grants nothing
        logger.warning("session.unknown_user", extra={"user_id": user_id})
        request.session.pop(SESSION_USER_KEY, None)
        return Viewer.anonymous()
    return viewer


def require_authenticated_viewer(viewer: Viewer = Depends(get_current_viewer)) -> Viewer:
    if not viewer.is_authenticated:
        raise problem_exception(401, "AUTH_REQUIRED", "Login required")
    return viewer


__all__ = ["SESSION_USER_KEY", "get_current_viewer", "require_authenticated_viewer"]

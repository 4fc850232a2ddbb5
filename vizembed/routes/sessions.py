"""Login/logout endpoints backed by the signed session cookie."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import Response
from pydantic import BaseModel, Field

from vizembed.http.problem import problem_exception
from vizembed.logic.current_viewer import SESSION_USER_KEY
from vizembed.logic.repository_users import authenticate

router = APIRouter()
logger = logging.getLogger(__name__)


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


@router.post("/session", status_code=204, summary="Log in", tags=["Sessions"])
def login(payload: LoginRequest, request: Request) -> Response:
    viewer = authenticate(payload.username, payload.password)
    if viewer is None:
        logger.info("session.login_failed", extra={"username": payload.username})
        raise problem_exception(401, "AUTH_INVALID_CREDENTIALS", "Invalid username or password")
    request.session.clear()
    request.session[SESSION_USER_KEY] = viewer.user_id
    logger.info("session.login", extra={"user_id": viewer.user_id})
    return Response(status_code=204)


@router.delete("/session", status_code=204, summary="Log out", tags=["Sessions"])
def logout(request: Request) -> Response:
    request.session.clear()
    return Response(status_code=204)


__all__ = ["router", "login", "logout"]

"""Problem+JSON utilities and global exception handlers.

Defines the RFC7807 media type, a payload builder used by the JSON API
routes, and handler callables registered on the application. HTML embed
routes render their own error pages and never reach these handlers.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
import logging
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)

_TITLES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    422: "Invalid Request",
    500: "Internal Server Error",
}


def problem(status: int, code: str, detail: str, *, title: Optional[str] = None) -> Dict[str, Any]:
    """Return a problem+json payload with a stable machine-readable code."""
    payload = {
        "title": title or _TITLES.get(status, "Error"),
        "status": status,
        "detail": detail,
        "code": code,
    }
    logger.info("error_handler.handle", extra={"code": code, "status": status})
    return payload


def problem_exception(status: int, code: str, detail: str, headers: Optional[dict] = None) -> HTTPException:
    """Build an HTTPException whose detail is already a problem payload."""
    return HTTPException(status_code=status, detail=problem(status, code, detail), headers=headers)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:  # noqa: D401
    status_code = int(getattr(exc, "status_code", 500) or 500)
    if isinstance(exc.detail, dict):
        detail = exc.detail
    else:
        detail = {
            "title": _TITLES.get(status_code, "Error"),
            "status": status_code,
            "detail": str(exc.detail or ""),
        }
    headers = {str(k): str(v) for k, v in (exc.headers or {}).items()}
    return JSONResponse(
        detail,
        status_code=status_code,
        media_type=PROBLEM_MEDIA_TYPE,
        headers=headers or None,
    )


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    problem_body = {
        "title": "Invalid Request",
        "status": 422,
        "detail": "Request validation failed",
        "code": "REQUEST_INVALID",
        # ctx may hold exception instances; keep only JSON-safe keys
        "errors": [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
            for err in exc.errors()
        ],
    }
    return JSONResponse(problem_body, status_code=422, media_type=PROBLEM_MEDIA_TYPE)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error("unexpected_error path=%s", request.url.path, exc_info=exc)
    return JSONResponse(
        {"title": "Internal Server Error", "status": 500, "code": "INTERNAL_ERROR"},
        status_code=500,
        media_type=PROBLEM_MEDIA_TYPE,
    )


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "problem",
    "problem_exception",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_unexpected_error",
]

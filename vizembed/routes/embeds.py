"""Public embed endpoints.

Implements:
- GET /embed/{visualization_id}[?vector=true]
  - 200 renders the embed page (vizjson, state and auth tokens)
  - 403 renders the private error page or the password form
  - 404 for malformed or unknown ids
- POST /embed/{visualization_id}/protected
  - Checks the submitted password; 200 renders the embed page with the
    visualization's auth tokens, 403 re-renders the form with an error
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse

from vizembed.config import AppConfig
from vizembed.http.dependencies import get_app_config
from vizembed.http.error_mapping import EMBED_DENIAL_MAP, EMBED_NOT_FOUND
from vizembed.logic.current_viewer import get_current_viewer
from vizembed.logic.embed_access import decide
from vizembed.logic.events import EMBED_DENIED, EMBED_VIEWED, publish
from vizembed.logic.header_emitter import emit_embed_headers
from vizembed.logic.rendering import render, render_embed
from vizembed.logic.repository_visualizations import get_visualization
from vizembed.logic.vizjson import to_vizjson
from vizembed.models.decision import Denied
from vizembed.models.visualization import Viewer

router = APIRouter()
logger = logging.getLogger(__name__)


def _flag(value: Optional[str]) -> bool:
    return str(value or "").strip().lower() == "true"


def _respond(
    request: Request,
    visualization_id: str,
    viewer: Viewer,
    cfg: AppConfig,
    *,
    supplied_password: Optional[str],
    vector: bool,
) -> HTMLResponse:
    site_name = cfg.embeds.site_name
    max_age = cfg.embeds.public_cache_max_age
    request_id = getattr(request.state, "request_id", "-")
    personalized = cfg.session.cookie_name in request.cookies

    visualization = get_visualization(visualization_id)
    if visualization is None:
        logger.info(
            "embed.not_found",
            extra={"visualization_id": visualization_id, "code": EMBED_NOT_FOUND["code"], "request_id": request_id},
        )
        response = HTMLResponse(render(EMBED_NOT_FOUND["template"], site_name=site_name), status_code=EMBED_NOT_FOUND["status"])
        emit_embed_headers(response, privacy=None, granted=False, max_age=max_age, personalized=personalized)
        return response

    decision = decide(visualization, viewer, supplied_password)

    if isinstance(decision, Denied):
        entry = EMBED_DENIAL_MAP[decision.reason]
        logger.info(
            "embed.denied",
            extra={
                "visualization_id": visualization.id,
                "code": entry["code"],
                "authenticated": viewer.is_authenticated,
                "request_id": request_id,
            },
        )
        publish(EMBED_DENIED, {"visualization_id": visualization.id, "reason": decision.reason.value})
        html = render(
            entry["template"],
            site_name=site_name,
            visualization_id=visualization.id,
            password_error=entry["password_error"],
            vector=vector,
        )
        response = HTMLResponse(html, status_code=entry["status"])
        emit_embed_headers(response, privacy=visualization.privacy, granted=False, max_age=max_age, personalized=personalized)
        return response

    vizjson = to_vizjson(
        visualization,
        cfg.embeds,
        vector=vector,
        https_request=request.url.scheme == "https",
    )
    html = render_embed(
        site_name=site_name,
        visualization_id=visualization.id,
        title=visualization.name,
        description=visualization.description,
        vizjson=vizjson,
        state=visualization.state,
        auth_tokens=decision.tokens,
    )
    logger.info(
        "embed.show",
        extra={
            "visualization_id": visualization.id,
            "privacy": visualization.privacy.value,
            "vector": vector,
            "tokens": len(decision.tokens),
            "request_id": request_id,
        },
    )
    publish(
        EMBED_VIEWED,
        {
            "visualization_id": visualization.id,
            "privacy": visualization.privacy.value,
            "authenticated": viewer.is_authenticated,
        },
    )
    response = HTMLResponse(html, status_code=200)
    emit_embed_headers(response, privacy=visualization.privacy, granted=True, max_age=max_age, personalized=personalized)
    return response


@router.get(
    "/embed/{visualization_id}",
    summary="Render the embeddable page for a visualization",
    response_class=HTMLResponse,
    tags=["Embeds"],
)
def show(
    visualization_id: str,
    request: Request,
    vector: Optional[str] = None,
    viewer: Viewer = Depends(get_current_viewer),
    cfg: AppConfig = Depends(get_app_config),
) -> HTMLResponse:
    return _respond(request, visualization_id, viewer, cfg, supplied_password=None, vector=_flag(vector))


@router.post(
    "/embed/{visualization_id}/protected",
    summary="Unlock a password protected embed",
    response_class=HTMLResponse,
    tags=["Embeds"],
)
def show_protected(
    visualization_id: str,
    request: Request,
    password: Optional[str] = Form(None),
    vector: Optional[str] = None,
    viewer: Viewer = Depends(get_current_viewer),
    cfg: AppConfig = Depends(get_app_config),
) -> HTMLResponse:
    # Older embed links post the password as a query parameter
    supplied = password if password is not None else request.query_params.get("password")
    return _respond(
        request,
        visualization_id,
        viewer,
        cfg,
        supplied_password=supplied if supplied is not None else "",
        vector=_flag(vector),
    )


__all__ = ["router", "show", "show_protected"]

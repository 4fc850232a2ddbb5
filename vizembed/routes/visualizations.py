"""Owner-facing visualization management endpoints.

Implements:
- POST /api/v1/visualizations
- GET /api/v1/visualizations/{visualization_id}
- PUT /api/v1/visualizations/{visualization_id}
- PUT /api/v1/visualizations/{visualization_id}/permission

All routes require a logged-in owner; visualizations owned by someone else
are reported as 404 so ids cannot be probed.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from vizembed.http.problem import problem_exception
from vizembed.logic.current_viewer import require_authenticated_viewer
from vizembed.logic.events import VISUALIZATION_UPDATED, publish
from vizembed.logic.repository_visualizations import (
    InvalidPrivacyChange,
    create_visualization,
    get_visualization,
    replace_acl,
    update_visualization,
)
from vizembed.models.api import PermissionUpdate, VisualizationCreate, VisualizationOut, VisualizationUpdate
from vizembed.models.visualization import Viewer, Visualization

router = APIRouter(prefix="/api/v1/visualizations", tags=["Visualizations"])
logger = logging.getLogger(__name__)


def _owned_or_404(visualization_id: str, viewer: Viewer) -> Visualization:
    viz = get_visualization(visualization_id)
    if viz is None or viz.owner.user_id != viewer.user_id:
        raise problem_exception(404, "VISUALIZATION_NOT_FOUND", "visualization not found")
    return viz


def _privacy_problem(exc: InvalidPrivacyChange):
    return problem_exception(422, exc.code, str(exc))


@router.post("", status_code=201, summary="Create a visualization")
def create(payload: VisualizationCreate, viewer: Viewer = Depends(require_authenticated_viewer)) -> JSONResponse:
    try:
        viz_id = create_visualization(
            viewer.user_id,
            payload.name,
            description=payload.description,
            privacy=payload.privacy,
            password=payload.password,
            state=payload.state,
        )
    except InvalidPrivacyChange as exc:
        raise _privacy_problem(exc) from exc
    viz = get_visualization(viz_id)
    body = VisualizationOut.from_model(viz).model_dump()
    return JSONResponse(body, status_code=201, headers={"Location": f"/api/v1/visualizations/{viz_id}"})


@router.get("/{visualization_id}", summary="Get a visualization", response_model=VisualizationOut)
def read(visualization_id: str, viewer: Viewer = Depends(require_authenticated_viewer)) -> VisualizationOut:
    return VisualizationOut.from_model(_owned_or_404(visualization_id, viewer))


@router.put("/{visualization_id}", summary="Update a visualization", response_model=VisualizationOut)
def update(
    visualization_id: str,
    payload: VisualizationUpdate,
    viewer: Viewer = Depends(require_authenticated_viewer),
) -> VisualizationOut:
    current = _owned_or_404(visualization_id, viewer)
    changes = payload.model_dump(exclude_unset=True)
    # name and privacy are not nullable; an explicit null leaves them unchanged
    for key in ("name", "privacy"):
        if key in changes and changes[key] is None:
            changes.pop(key)
    try:
        viz = update_visualization(visualization_id, **changes)
    except InvalidPrivacyChange as exc:
        raise _privacy_problem(exc) from exc
    if viz is None:
        raise problem_exception(404, "VISUALIZATION_NOT_FOUND", "visualization not found")
    publish(
        VISUALIZATION_UPDATED,
        {
            "visualization_id": viz.id,
            "privacy_from": current.privacy.value,
            "privacy_to": viz.privacy.value,
            "fields": sorted(k for k in changes if k != "password"),
        },
    )
    return VisualizationOut.from_model(viz)


@router.put("/{visualization_id}/permission", summary="Replace the sharing ACL", response_model=VisualizationOut)
def update_permission(
    visualization_id: str,
    payload: PermissionUpdate,
    viewer: Viewer = Depends(require_authenticated_viewer),
) -> VisualizationOut:
    _owned_or_404(visualization_id, viewer)
    viz = replace_acl(visualization_id, [entry.to_entry() for entry in payload.acl])
    if viz is None:
        raise problem_exception(404, "VISUALIZATION_NOT_FOUND", "visualization not found")
    logger.info("visualization.permission_updated", extra={"visualization_id": viz.id, "acl_size": len(viz.acl)})
    publish(VISUALIZATION_UPDATED, {"visualization_id": viz.id, "fields": ["acl"]})
    return VisualizationOut.from_model(viz)


__all__ = ["router", "create", "read", "update", "update_permission"]

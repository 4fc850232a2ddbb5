"""vizjson presentation of a visualization for the embed page.

The client library boots a map from this document. Only public metadata goes
in here; auth tokens travel separately so denial paths never serialize them.
"""

from __future__ import annotations

import json

from vizembed.config import EmbedsConfig
from vizembed.models.visualization import Visualization

VIZJSON_VERSION = "3.0.0"


def maps_api_template(cfg: EmbedsConfig, username: str, https_request: bool) -> str:
    template = cfg.maps_api_https_template if https_request else cfg.maps_api_http_template
    return template.replace("{user}", username)


def to_vizjson(
    visualization: Visualization,
    cfg: EmbedsConfig,
    *,
    vector: bool = False,
    https_request: bool = False,
) -> dict:
    username = visualization.owner.username
    return {
        "id": visualization.id,
        "version": VIZJSON_VERSION,
        "title": visualization.name,
        "description": visualization.description,
        "updated_at": visualization.updated_at,
        "vector": bool(vector),
        "user": {"fullname": username},
        "datasource": {
            "user_name": username,
            "maps_api_template": maps_api_template(cfg, username, https_request),
            "stat_tag": visualization.id,
        },
    }


def dumps_compact(value: object) -> str:
    """Serialize without whitespace so keys read as ``"vector":false``."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


__all__ = ["VIZJSON_VERSION", "maps_api_template", "to_vizjson", "dumps_compact"]

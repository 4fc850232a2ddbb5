"""Central error mapping for embed pages.

Single source of truth for turning access denials and missing
visualizations into a template, an HTTP status and a log code. Route
modules import from here instead of hardcoding templates or numbers.
"""

from __future__ import annotations

from vizembed.logic.rendering import (
    TEMPLATE_EMBED_ERROR,
    TEMPLATE_EMBED_PROTECTED,
    TEMPLATE_NOT_FOUND,
)
from vizembed.models.decision import DenialReason

EMBED_DENIAL_MAP = {
    DenialReason.PRIVATE: {
        "code": "EMBED_PRIVATE",
        "status": 403,
        "template": TEMPLATE_EMBED_ERROR,
        "password_error": False,
    },
    DenialReason.PASSWORD_REQUIRED: {
        "code": "EMBED_PASSWORD_REQUIRED",
        "status": 403,
        "template": TEMPLATE_EMBED_PROTECTED,
        "password_error": False,
    },
    DenialReason.INVALID_PASSWORD: {
        "code": "EMBED_PASSWORD_INVALID",
        "status": 403,
        "template": TEMPLATE_EMBED_PROTECTED,
        "password_error": True,
    },
}

EMBED_NOT_FOUND = {
    "code": "EMBED_NOT_FOUND",
    "status": 404,
    "template": TEMPLATE_NOT_FOUND,
}

__all__ = ["EMBED_DENIAL_MAP", "EMBED_NOT_FOUND"]

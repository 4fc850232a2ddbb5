"""HTML rendering for embed pages.

Jinja2 templates with HTML autoescaping. Values that land inside JavaScript
string literals go through ``escape_js`` instead, which escapes the way the
client-side ``JSON.parse('...')`` calls expect.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from vizembed.logic.vizjson import dumps_compact

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"

TEMPLATE_EMBED = "embed.html"
TEMPLATE_EMBED_ERROR = "embed_error.html"
TEMPLATE_EMBED_PROTECTED = "embed_protected.html"
TEMPLATE_NOT_FOUND = "not_found.html"

_JS_ESCAPE_MAP = {
    "\\": "\\\\",
    "</": "<\\/",
    "\r\n": "\\n",
    "\n": "\\n",
    "\r": "\\n",
    '"': '\\"',
    "'": "\\'",
    "`": "\\`",
    "$": "\\$",
    "\u2028": "&#x2028;",
    "\u2029": "&#x2029;",
}
_JS_ESCAPE_RE = re.compile("|".join(re.escape(k) for k in sorted(_JS_ESCAPE_MAP, key=len, reverse=True)))


def escape_js(value: object) -> Markup:
    """Escape text for a single- or double-quoted JavaScript string literal."""
    if value is None:
        return Markup("")
    text = str(value)
    return Markup(_JS_ESCAPE_RE.sub(lambda m: _JS_ESCAPE_MAP[m.group(0)], text))


def serialize_auth_tokens(tokens: Optional[Iterable[str]]) -> str:
    """JSON for the page's authTokens; no tokens serializes as ``null``, never ``[]``."""
    token_list = list(tokens or ())
    return dumps_compact(token_list) if token_list else "null"


def _build_environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["escape_js"] = escape_js
    return env


_ENV: Environment | None = None


def get_environment() -> Environment:
    global _ENV
    if _ENV is None:
        _ENV = _build_environment()
    return _ENV


def render(template_name: str, **context: object) -> str:
    return get_environment().get_template(template_name).render(**context)


def render_embed(
    *,
    site_name: str,
    visualization_id: str,
    title: str,
    description: Optional[str],
    vizjson: dict,
    state: Optional[dict],
    auth_tokens: Iterable[str],
) -> str:
    return render(
        TEMPLATE_EMBED,
        site_name=site_name,
        visualization_id=visualization_id,
        title=title,
        description=description,
        vizjson=dumps_compact(vizjson),
        state=dumps_compact(state or {}),
        auth_tokens=serialize_auth_tokens(auth_tokens),
    )


__all__ = [
    "TEMPLATE_EMBED",
    "TEMPLATE_EMBED_ERROR",
    "TEMPLATE_EMBED_PROTECTED",
    "TEMPLATE_NOT_FOUND",
    "escape_js",
    "serialize_auth_tokens",
    "get_environment",
    "render",
    "render_embed",
]

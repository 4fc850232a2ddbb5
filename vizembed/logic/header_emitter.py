"""Centralised header emitter for embed responses.

Embeds are meant to live inside third-party iframes, so `FrameOptionsMiddleware`
leaves /embed/ responses frameable. Caching depends on what the response
carries: anonymous open (public/link) renders are cacheable by shared caches.
Anything that may hold tokens, every denial, and every request that came
with a session cookie (the session middleware may answer it with its own
Set-Cookie) is private and not stored.
"""

from __future__ import annotations

from fastapi import Response

from vizembed.models.privacy import OPEN_PRIVACIES, Privacy

PRIVATE_CACHE_CONTROL = "private, no-store"


def public_cache_control(max_age: int) -> str:
    return f"no-cache,max-age={int(max_age)},must-revalidate,public"


def emit_embed_headers(
    response: Response,
    *,
    privacy: Privacy | None,
    granted: bool,
    max_age: int,
    personalized: bool = False,
) -> None:
    """Set Cache-Control on an embed response.

    ``privacy`` is None when the visualization could not be found.
    ``personalized`` marks requests that carried a session cookie.
    """
    if granted and privacy in OPEN_PRIVACIES and not personalized:
        response.headers["Cache-Control"] = public_cache_control(max_age)
    else:
        response.headers["Cache-Control"] = PRIVATE_CACHE_CONTROL


__all__ = ["PRIVATE_CACHE_CONTROL", "public_cache_control", "emit_embed_headers"]

"""Request ID and frame-options middleware.

`RequestIdMiddleware` reuses an inbound X-Request-Id (or generates one),
stores it in the ASGI scope state for handlers and log records, and echoes
it on the response. `FrameOptionsMiddleware` adds X-Frame-Options to every
response outside the embeddable path prefixes.
"""

from __future__ import annotations

import re
import uuid
from typing import Iterable

_SAFE_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def _header(scope, name: bytes) -> str | None:  # type: ignore[no-untyped-def]
    for k, v in scope.get("headers") or []:
        if k.lower() == name:
            return v.decode("latin-1")
    return None


def _append_header(message, name: str, value: str) -> dict:  # type: ignore[no-untyped-def]
    headers = list(message.get("headers") or [])
    header_bytes = name.lower().encode("latin-1")
    if not any(k.lower() == header_bytes for k, _ in headers):
        headers.append((name.encode("latin-1"), value.encode("latin-1")))
    return {**message, "headers": headers}


class RequestIdMiddleware:
    def __init__(self, app, header_name: str = "X-Request-Id") -> None:  # type: ignore[no-untyped-def]
        self.app = app
        self.header_name = header_name

    async def __call__(self, scope, receive, send):  # type: ignore[no-untyped-def]
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        inbound = _header(scope, self.header_name.lower().encode("latin-1"))
        request_id = inbound if inbound and _SAFE_REQUEST_ID.match(inbound) else str(uuid.uuid4())
        scope.setdefault("state", {})["request_id"] = request_id

        async def send_wrapper(message):  # type: ignore[no-untyped-def]
            if message.get("type") == "http.response.start":
                message = _append_header(message, self.header_name, request_id)
            await send(message)

        await self.app(scope, receive, send_wrapper)


class FrameOptionsMiddleware:
    def __init__(self, app, exempt_prefixes: Iterable[str] = ("/embed/",), value: str = "SAMEORIGIN") -> None:  # type: ignore[no-untyped-def]
        self.app = app
        self.exempt_prefixes = tuple(exempt_prefixes)
        self.value = value

    async def __call__(self, scope, receive, send):  # type: ignore[no-untyped-def]
        path = str(scope.get("path") or "")
        if scope.get("type") != "http" or path.startswith(self.exempt_prefixes):
            await self.app(scope, receive, send)
            return

        async def send_wrapper(message):  # type: ignore[no-untyped-def]
            if message.get("type") == "http.response.start":
                message = _append_header(message, "X-Frame-Options", self.value)
            await send(message)

        await self.app(scope, receive, send_wrapper)


__all__ = ["RequestIdMiddleware", "FrameOptionsMiddleware"]

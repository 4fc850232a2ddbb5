"""FastAPI application package for the embeds service.

This package exposes the application factory. It wires cross-cutting
middleware (request id, frame options, signed sessions) and mounts the
routers. Business logic lives in `vizembed/logic/` and route handlers in
`vizembed/routes/`.
"""

from __future__ import annotations

from vizembed.main import create_app

__all__ = ["create_app"]

"""Run the embeds service with uvicorn: ``python -m vizembed``."""

from __future__ import annotations

import os

import uvicorn

from vizembed.main import create_app


def main() -> None:
    uvicorn.run(
        create_app(),
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        proxy_headers=True,
        log_config=None,
    )


if __name__ == "__main__":
    main()

"""Process-wide logging for the embeds service.

One stdout handler on the root logger (uvicorn's loggers share it), so
modules only call ``logging.getLogger(__name__)``. Records are event-style
(``embed.show``, ``embed.denied``, ``session.login_failed``) with context in
``extra``; each line ends with the request id, ``-`` outside a request.
"""
from __future__ import annotations

import logging
from logging.config import dictConfig

LOG_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(message)s [rid=%(request_id)s]"


class RequestIdFilter(logging.Filter):
    """Default ``request_id`` so the formatter never fails on plain records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = "-"
        return True


def _stdout_logger(level: str = "INFO") -> dict:
    return {"level": level, "handlers": ["stdout"], "propagate": False}


LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {"request_id": {"()": RequestIdFilter}},
    "formatters": {"event": {"format": LOG_FORMAT}},
    "handlers": {
        "stdout": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "formatter": "event",
            "filters": ["request_id"],
        }
    },
    "root": {"level": "INFO", "handlers": ["stdout"]},
    "loggers": {name: _stdout_logger() for name in ("uvicorn", "uvicorn.error", "uvicorn.access")},
}


def configure_logging() -> None:
    """Apply ``LOGGING`` unless the root logger is already configured.

    Reloaders and pytest's log capture install root handlers first; adding
    ours on top would print every record twice.
    """
    if logging.getLogger().handlers:
        return
    dictConfig(LOGGING)

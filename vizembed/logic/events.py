"""Domain event constants and publisher.

Embed renders, denials and visualization changes are published here. Events
are always logged. They are also kept in a bounded in-process buffer, but only
while buffering is switched on (the app factory does so when test support is
mounted) so integration tests can observe them.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, Dict, List
import logging

logger = logging.getLogger(__name__)

EMBED_VIEWED = "embed.viewed"
EMBED_DENIED = "embed.denied"
VISUALIZATION_UPDATED = "visualization.updated"

EVENT_BUFFER_SIZE = 1000

# In-memory buffer for domain events (test-only visibility)
EVENT_BUFFER: Deque[Dict[str, Any]] = deque(maxlen=EVENT_BUFFER_SIZE)
_buffering = False


def set_buffering(enabled: bool) -> None:
    """Switch event buffering on or off; switching off drops buffered events."""
    global _buffering
    _buffering = bool(enabled)
    if not _buffering:
        EVENT_BUFFER.clear()


def is_buffering() -> bool:
    return _buffering


def publish(event_type: str, payload: Dict[str, Any]) -> None:
    """Publish a domain event. Payloads must never contain tokens or passwords."""
    logger.info("event_publish type=%s payload=%s", event_type, payload)
    if _buffering:
        EVENT_BUFFER.append({"type": event_type, "payload": dict(payload)})


def get_buffered_events(clear: bool = True) -> List[Dict[str, Any]]:
    """Return buffered domain events; optionally clear the buffer."""
    events = list(EVENT_BUFFER)
    if clear:
        EVENT_BUFFER.clear()
    return events


__all__ = [
    "EMBED_VIEWED",
    "EMBED_DENIED",
    "VISUALIZATION_UPDATED",
    "EVENT_BUFFER_SIZE",
    "set_buffering",
    "is_buffering",
    "publish",
    "get_buffered_events",
    "EVENT_BUFFER",
]

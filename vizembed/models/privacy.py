"""Privacy states a visualization can be in."""

from __future__ import annotations

from enum import Enum


class Privacy(str, Enum):
    PUBLIC = "public"
    LINK = "link"
    PRIVATE = "private"
    PROTECTED = "password"

    @classmethod
    def parse(cls, value: object) -> "Privacy":
        """Accept enum members, values ('password') or names ('PROTECTED'), case-insensitively."""
        if isinstance(value, cls):
            return value
        token = str(value or "").strip().lower()
        for member in cls:
            if token in (member.value, member.name.lower()):
                return member
        raise ValueError(f"unknown privacy: {value!r}")


# Privacy states whose embeds never carry tokens and may be cached publicly
OPEN_PRIVACIES = frozenset({Privacy.PUBLIC, Privacy.LINK})


__all__ = ["Privacy", "OPEN_PRIVACIES"]

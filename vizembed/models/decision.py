"""Access decision values produced for an embed request."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class DenialReason(str, Enum):
    PRIVATE = "private"
    PASSWORD_REQUIRED = "password_required"
    INVALID_PASSWORD = "invalid_password"


@dataclass(frozen=True)
class Granted:
    tokens: tuple[str, ...] = field(default_factory=tuple)

    @property
    def allowed(self) -> bool:
        return True


@dataclass(frozen=True)
class Denied:
    reason: DenialReason

    @property
    def allowed(self) -> bool:
        return False


AccessDecision = Union[Granted, Denied]


__all__ = ["DenialReason", "Granted", "Denied", "AccessDecision"]

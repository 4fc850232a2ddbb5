"""Visualization and viewer models handed to the access decision.

Repositories build these from database rows; they carry everything the
decision needs so it never reaches back into storage.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from vizembed.logic.passwords import password_matches
from vizembed.models.privacy import Privacy

ACL_USER = "user"
ACL_ORG = "org"


class AclEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    id: str
    access: str = "r"


class Owner(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    username: str
    organization_id: Optional[str] = None


class Viewer(BaseModel):
    """The requester: anonymous, or an authenticated user with personal tokens."""

    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = None
    username: Optional[str] = None
    organization_id: Optional[str] = None
    auth_tokens: tuple[str, ...] = ()

    @classmethod
    def anonymous(cls) -> "Viewer":
        return cls()

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def get_auth_tokens(self) -> tuple[str, ...]:
        return self.auth_tokens


class Visualization(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: Optional[str] = None
    privacy: Privacy = Privacy.PUBLIC
    owner: Owner
    password_salt: Optional[str] = Field(default=None, repr=False)
    password_digest: Optional[str] = Field(default=None, repr=False)
    auth_tokens: tuple[str, ...] = ()
    acl: tuple[AclEntry, ...] = ()
    state: Optional[dict] = None
    updated_at: Optional[str] = None

    def has_password(self) -> bool:
        return bool(self.password_salt and self.password_digest)

    def password_valid(self, candidate: str | None) -> bool:
        return self.has_password() and password_matches(candidate, self.password_salt, self.password_digest)

    def get_auth_tokens(self) -> tuple[str, ...]:
        return self.auth_tokens

    def is_organization_shared(self) -> bool:
        """A private visualization with at least one ACL grant lives in an organization context."""
        return self.privacy == Privacy.PRIVATE and len(self.acl) > 0

    def has_read_permission(self, viewer: Viewer) -> bool:
        if not viewer.is_authenticated:
            return False
        if viewer.user_id == self.owner.user_id:
            return True
        for entry in self.acl:
            if entry.type == ACL_USER and entry.id == viewer.user_id:
                return True
            if entry.type == ACL_ORG and viewer.organization_id and entry.id == viewer.organization_id:
                return True
        return False


__all__ = ["ACL_USER", "ACL_ORG", "AclEntry", "Owner", "Viewer", "Visualization"]

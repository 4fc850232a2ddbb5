"""Request and response bodies for the visualization management API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vizembed.models.privacy import Privacy
from vizembed.models.visualization import ACL_ORG, ACL_USER, AclEntry, Visualization


def _privacy(value: object) -> Optional[Privacy]:
    if value is None:
        return None
    return Privacy.parse(value)


class VisualizationCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    privacy: Privacy = Privacy.PUBLIC
    password: Optional[str] = None
    state: Optional[dict] = None

    @field_validator("privacy", mode="before")
    @classmethod
    def parse_privacy(cls, v: object) -> Optional[Privacy]:
        return _privacy(v)


class VisualizationUpdate(BaseModel):
    """Partial update; only fields present in the body are applied."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    privacy: Optional[Privacy] = None
    password: Optional[str] = None
    state: Optional[dict] = None

    @field_validator("privacy", mode="before")
    @classmethod
    def parse_privacy(cls, v: object) -> Optional[Privacy]:
        return _privacy(v)


class AclEntryIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: str
    id: str = Field(min_length=1)
    access: str = "r"

    @field_validator("type")
    @classmethod
    def type_is_known(cls, v: str) -> str:
        if v not in (ACL_USER, ACL_ORG):
            raise ValueError(f"type must be one of {[ACL_USER, ACL_ORG]}")
        return v

    @field_validator("access")
    @classmethod
    def access_is_known(cls, v: str) -> str:
        if v not in ("r", "rw"):
            raise ValueError("access must be 'r' or 'rw'")
        return v

    def to_entry(self) -> AclEntry:
        return AclEntry(type=self.type, id=self.id, access=self.access)


class PermissionUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    acl: list[AclEntryIn] = Field(default_factory=list)


class VisualizationOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    privacy: str
    has_password: bool
    owner: str
    acl: list[dict]
    state: Optional[dict] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_model(cls, viz: Visualization) -> "VisualizationOut":
        return cls(
            id=viz.id,
            name=viz.name,
            description=viz.description,
            privacy=viz.privacy.name.lower(),
            has_password=viz.has_password(),
            owner=viz.owner.username,
            acl=[e.model_dump() for e in viz.acl],
            state=viz.state,
            updated_at=viz.updated_at,
        )


__all__ = [
    "VisualizationCreate",
    "VisualizationUpdate",
    "AclEntryIn",
    "PermissionUpdate",
    "VisualizationOut",
]

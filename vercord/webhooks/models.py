"""Vercel webhook event models."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EventKind(str, Enum):
    """Event types the bridge distinguishes; everything else is OTHER."""

    SUCCEEDED = "deployment.succeeded"
    CANCELED = "deployment.canceled"
    ERROR = "deployment.error"
    OTHER = "other"

    @classmethod
    def from_type(cls, event_type: str) -> EventKind:
        for kind in (cls.SUCCEEDED, cls.CANCELED, cls.ERROR):
            if kind.value == event_type:
                return kind
        return cls.OTHER

    @property
    def is_terminal(self) -> bool:
        return self is not EventKind.OTHER


class DeploymentMeta(BaseModel):
    """Git metadata Vercel attaches to a deployment."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    commit_sha: str | None = Field(default=None, alias="githubCommitSha")
    commit_message: str | None = Field(default=None, alias="githubCommitMessage")
    commit_ref: str | None = Field(default=None, alias="githubCommitRef")
    commit_org: str | None = Field(default=None, alias="githubCommitOrg")
    commit_repo: str | None = Field(default=None, alias="githubCommitRepo")


class Deployment(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    name: str
    url: str | None = None
    meta: DeploymentMeta = Field(default_factory=DeploymentMeta)


class DeploymentLinks(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    deployment: str = ""
    project: str = ""


class DeploymentPayload(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    deployment: Deployment
    links: DeploymentLinks = Field(default_factory=DeploymentLinks)


class VercelEvent(BaseModel):
    """Webhook envelope.

    Only the shape of a JSON object is enforced here. ``payload`` stays
    untyped until the kind is known, and a missing or non-string ``type``
    reads as an ignored event.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: Any = None
    type: str = ""
    payload: Any = None

    @field_validator("type", mode="before")
    @classmethod
    def _untyped_as_ignored(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @property
    def kind(self) -> EventKind:
        return EventKind.from_type(self.type)

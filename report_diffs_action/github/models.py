"""Pydantic models for GitHub REST API responses."""

from collections.abc import Sequence
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, TypeAdapter

type CommitState = Literal["error", "failure", "pending", "success"]

type DeploymentState = Literal[
    "error",
    "failure",
    "inactive",
    "in_progress",
    "queued",
    "pending",
    "success",
]


class Deployment(BaseModel):
    """A deployment from the deployments API."""

    id: int
    sha: str
    ref: str
    environment: str
    created_at: datetime


class DeploymentStatus(BaseModel):
    """A status reported for a deployment."""

    id: int
    state: DeploymentState
    environment_url: str | None = None
    target_url: str | None = None
    created_at: datetime


class IssueComment(BaseModel):
    """A comment on an issue or pull request."""

    id: int
    body: str | None = None
    html_url: str


DeploymentList = TypeAdapter(Sequence[Deployment])
DeploymentStatusList = TypeAdapter(Sequence[DeploymentStatus])
IssueCommentList = TypeAdapter(Sequence[IssueComment])

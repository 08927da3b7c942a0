"""Models for the CI events that can trigger a test run."""

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import Field

from report_diffs_action.models.base import Model


class GitRef(Model):
    """One side (head or base) of a pull request."""

    sha: str
    ref: str


class PullRequest(Model):
    """Subset of the pull request object from the event payload."""

    number: int
    head: GitRef
    base: GitRef
    html_url: str | None = None


class PushPayload(Model):
    """Payload of a `push` event."""

    before: str
    after: str
    ref: str


class PullRequestPayload(Model):
    """Payload of a `pull_request` event."""

    action: str | None = None
    pull_request: PullRequest


class WorkflowDispatchPayload(Model):
    """Payload of a `workflow_dispatch` event."""

    ref: str | None = None
    inputs: Mapping[str, Any] | None = None


class PushEvent(Model):
    """A push to a branch."""

    type: Literal["push"] = "push"
    payload: PushPayload


class PullRequestEvent(Model):
    """A pull request being opened or updated."""

    type: Literal["pull_request"] = "pull_request"
    payload: PullRequestPayload

    @property
    def pull_request(self) -> PullRequest:
        """The pull request the event refers to."""
        return self.payload.pull_request


class WorkflowDispatchEvent(Model):
    """A manual run of the workflow."""

    type: Literal["workflow_dispatch"] = "workflow_dispatch"
    payload: WorkflowDispatchPayload = Field(default_factory=WorkflowDispatchPayload)


class UnsupportedEvent(Model):
    """Any event the action does not know how to test."""

    type: Literal["unsupported"] = "unsupported"
    event_name: str


type CodeChangeEvent = (
    PushEvent | PullRequestEvent | WorkflowDispatchEvent | UnsupportedEvent
)


def get_code_change_event(
    event_name: str, payload: Mapping[str, Any]
) -> CodeChangeEvent:
    """Classify the triggering event.

    Args:
        event_name: Value of GITHUB_EVENT_NAME (e.g., "push", "pull_request")
        payload: Parsed JSON of the event payload file

    Returns:
        The matching event, or UnsupportedEvent for any other event name

    """
    if event_name == "push":
        return PushEvent(payload=PushPayload.model_validate(payload))
    if event_name == "pull_request":
        return PullRequestEvent(payload=PullRequestPayload.model_validate(payload))
    if event_name == "workflow_dispatch":
        return WorkflowDispatchEvent(
            payload=WorkflowDispatchPayload.model_validate(payload)
        )
    return UnsupportedEvent(event_name=event_name)

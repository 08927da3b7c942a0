"""Description of the CI environment a test run executes in."""

from typing import Literal

from report_diffs_action.config import GitHubContext
from report_diffs_action.models.base import CamelModel
from report_diffs_action.models.event import (
    CodeChangeEvent,
    PullRequestEvent,
    UnsupportedEvent,
)


class GitHubEnvironmentContext(CamelModel):
    """Where in GitHub the run was triggered from."""

    type: Literal["github"] = "github"
    event: Literal["push", "pull_request", "workflow_dispatch"]
    head_sha: str
    pull_request_number: int | None = None
    run_url: str | None = None


class Environment(CamelModel):
    """Environment descriptor attached to a test run."""

    is_ci: bool = True
    context: GitHubEnvironmentContext


def get_environment(
    *, event: CodeChangeEvent, head: str, context: GitHubContext
) -> Environment:
    """Describe the workflow run for the executor."""
    if isinstance(event, UnsupportedEvent):
        raise ValueError(f"No environment for unsupported event '{event.event_name}'")

    pull_request_number = (
        event.pull_request.number if isinstance(event, PullRequestEvent) else None
    )
    return Environment(
        context=GitHubEnvironmentContext(
            event=event.type,
            head_sha=head,
            pull_request_number=pull_request_number,
            run_url=context.run_url,
        )
    )

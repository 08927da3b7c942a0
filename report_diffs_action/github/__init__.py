"""GitHub REST API client."""

from report_diffs_action.github.client import GitHubApiError, GitHubClient
from report_diffs_action.github.models import (
    CommitState,
    Deployment,
    DeploymentStatus,
    IssueComment,
)

__all__ = [
    "CommitState",
    "Deployment",
    "DeploymentStatus",
    "GitHubApiError",
    "GitHubClient",
    "IssueComment",
]

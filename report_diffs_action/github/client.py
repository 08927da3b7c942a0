"""GitHub REST API client used to report results and find deployments."""

import logging
from collections.abc import AsyncGenerator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import aiohttp
from pydantic import BaseModel, SecretStr

from report_diffs_action.github.models import (
    CommitState,
    Deployment,
    DeploymentList,
    DeploymentStatus,
    DeploymentStatusList,
    IssueComment,
    IssueCommentList,
)

log = logging.getLogger(__name__)

PAGE_SIZE = 100


class GitHubApiError(RuntimeError):
    """Raised when the GitHub API answers with an unexpected status."""


class GitHubConfig(BaseModel):
    """Connection settings for the GitHub API."""

    token: SecretStr
    owner: str
    repo: str
    api_url: str = "https://api.github.com"


@dataclass(frozen=True, kw_only=True)
class GitHubClient:
    """Repository-scoped GitHub API client."""

    config: GitHubConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: GitHubConfig
    ) -> AsyncGenerator["GitHubClient", None]:
        """Create client with managed session lifecycle."""
        headers = {
            "Authorization": f"Bearer {config.token.get_secret_value()}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        async with aiohttp.ClientSession(headers=headers) as session:
            yield cls(config=config, session=session)

    def _url(self, path: str) -> str:
        return (
            f"{self.config.api_url.rstrip('/')}"
            f"/repos/{self.config.owner}/{self.config.repo}{path}"
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        expected: int = 200,
        json: Mapping[str, Any] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> Any:
        url = self._url(path)
        log.debug("GitHub API %s %s params=%s", method, url, params)
        async with self.session.request(
            method, url, json=json, params=params
        ) as response:
            if response.status != expected:
                text = await response.text()
                raise GitHubApiError(
                    f"GitHub API {method} {path} failed: {response.status} {text}"
                )
            if response.status == 204:
                return None
            return await response.json()

    async def create_commit_status(
        self,
        sha: str,
        *,
        state: CommitState,
        context: str,
        description: str,
        target_url: str | None = None,
    ) -> None:
        """Set a commit status shown in the pull request checks list."""
        payload: dict[str, Any] = {
            "state": state,
            "context": context,
            # The API rejects descriptions longer than 140 characters
            "description": truncate(description, 140),
        }
        if target_url is not None:
            payload["target_url"] = target_url
        await self._request("POST", f"/statuses/{sha}", expected=201, json=payload)

    async def list_issue_comments(self, issue_number: int) -> Sequence[IssueComment]:
        """List all comments on a pull request, following pagination."""
        comments: list[IssueComment] = []
        page = 1
        while True:
            data = await self._request(
                "GET",
                f"/issues/{issue_number}/comments",
                params={"per_page": str(PAGE_SIZE), "page": str(page)},
            )
            batch = IssueCommentList.validate_python(data)
            comments.extend(batch)
            if len(batch) < PAGE_SIZE:
                return comments
            page += 1

    async def create_issue_comment(self, issue_number: int, body: str) -> IssueComment:
        data = await self._request(
            "POST",
            f"/issues/{issue_number}/comments",
            expected=201,
            json={"body": body},
        )
        return IssueComment.model_validate(data)

    async def update_issue_comment(self, comment_id: int, body: str) -> IssueComment:
        data = await self._request(
            "PATCH", f"/issues/comments/{comment_id}", json={"body": body}
        )
        return IssueComment.model_validate(data)

    async def dispatch_workflow(
        self,
        workflow_id: str,
        *,
        ref: str,
        inputs: Mapping[str, str] | None = None,
    ) -> None:
        """Trigger a workflow_dispatch run, without waiting for it."""
        log.info("Dispatching workflow %s on ref %s", workflow_id, ref)
        await self._request(
            "POST",
            f"/actions/workflows/{workflow_id}/dispatches",
            expected=204,
            json={"ref": ref, "inputs": dict(inputs or {})},
        )

    async def list_deployments(self, sha: str) -> Sequence[Deployment]:
        """List deployments created for a commit, most recent first."""
        data = await self._request(
            "GET", "/deployments", params={"sha": sha, "per_page": str(PAGE_SIZE)}
        )
        return DeploymentList.validate_python(data)

    async def list_deployment_statuses(
        self, deployment_id: int
    ) -> Sequence[DeploymentStatus]:
        """List statuses of a deployment, most recent first."""
        data = await self._request(
            "GET",
            f"/deployments/{deployment_id}/statuses",
            params={"per_page": str(PAGE_SIZE)},
        )
        return DeploymentStatusList.validate_python(data)


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "…"

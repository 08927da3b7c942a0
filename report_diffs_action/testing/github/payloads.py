"""Payload helpers for GitHub webhook events and API responses in tests."""

from typing import Any

HEAD_SHA = "1111111111111111111111111111111111111111"
BASE_SHA = "2222222222222222222222222222222222222222"


def pull_request_event(
    *,
    number: int = 42,
    head_sha: str = HEAD_SHA,
    head_ref: str = "feature",
    base_sha: str = BASE_SHA,
    base_ref: str = "main",
    action: str = "synchronize",
) -> dict[str, Any]:
    """Create a `pull_request` webhook payload for testing."""
    return {
        "action": action,
        "number": number,
        "pull_request": {
            "number": number,
            "state": "open",
            "title": "Update the landing page",
            "html_url": f"https://github.com/test-owner/test-repo/pull/{number}",
            "head": {
                "label": f"test-owner:{head_ref}",
                "ref": head_ref,
                "sha": head_sha,
            },
            "base": {
                "label": f"test-owner:{base_ref}",
                "ref": base_ref,
                "sha": base_sha,
            },
        },
        "repository": {"full_name": "test-owner/test-repo"},
    }


def push_event(
    *,
    before: str = BASE_SHA,
    after: str = HEAD_SHA,
    ref: str = "refs/heads/main",
) -> dict[str, Any]:
    """Create a `push` webhook payload for testing."""
    return {
        "ref": ref,
        "before": before,
        "after": after,
        "created": before == "0" * 40,
        "forced": False,
        "repository": {"full_name": "test-owner/test-repo"},
    }


def workflow_dispatch_event(*, ref: str = "refs/heads/main") -> dict[str, Any]:
    """Create a `workflow_dispatch` webhook payload for testing."""
    return {
        "ref": ref,
        "inputs": {},
        "workflow": ".github/workflows/visual-tests.yml",
        "repository": {"full_name": "test-owner/test-repo"},
    }


def deployment(
    *,
    deployment_id: int = 1,
    sha: str = HEAD_SHA,
    environment: str = "Preview",
    created_at: str = "2099-01-01T12:00:00Z",
) -> dict[str, Any]:
    """Create a deployment payload as returned by the deployments API."""
    return {
        "id": deployment_id,
        "url": (
            "https://api.github.com/repos/test-owner/test-repo/deployments/"
            f"{deployment_id}"
        ),
        "sha": sha,
        "ref": "feature",
        "task": "deploy",
        "environment": environment,
        "description": None,
        "creator": {"login": "vercel[bot]"},
        "created_at": created_at,
        "updated_at": created_at,
    }


def deployment_status(
    *,
    status_id: int = 1,
    state: str = "success",
    environment_url: str | None = "https://preview.example.com",
    target_url: str | None = None,
    created_at: str = "2099-01-01T12:01:00Z",
) -> dict[str, Any]:
    """Create a deployment status payload."""
    return {
        "id": status_id,
        "state": state,
        "description": "",
        "environment_url": environment_url,
        "target_url": target_url,
        "log_url": target_url,
        "created_at": created_at,
        "updated_at": created_at,
    }


def issue_comment(
    *,
    comment_id: int = 1,
    body: str = "Looks good to me",
) -> dict[str, Any]:
    """Create an issue comment payload."""
    return {
        "id": comment_id,
        "body": body,
        "html_url": (
            "https://github.com/test-owner/test-repo/pull/42"
            f"#issuecomment-{comment_id}"
        ),
        "user": {"login": "github-actions[bot]"},
        "created_at": "2099-01-01T12:00:00Z",
        "updated_at": "2099-01-01T12:00:00Z",
    }

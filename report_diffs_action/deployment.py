"""Wait for a preview deployment of the head commit to become ready."""

import asyncio
import logging
from collections.abc import Sequence

from sentry_sdk.tracing import Span

from report_diffs_action.github import Deployment, DeploymentStatus, GitHubClient
from report_diffs_action.logs import short_sha

log = logging.getLogger(__name__)

FAILED_STATES = frozenset({"failure", "error"})


class DeploymentFailedError(RuntimeError):
    """Raised when every deployment of the commit failed."""


async def wait_for_deployment_url(
    *,
    github: GitHubClient,
    commit_sha: str,
    allowed_environments: Sequence[str],
    transaction: Span,
    timeout: float = 1800,
    poll_interval: float = 10,
) -> str:
    """Poll the deployments API until a deployment of the commit succeeds.

    Args:
        github: Client for the repository the deployments belong to
        commit_sha: Commit whose deployment to wait for
        allowed_environments: Environment names to consider (empty means any)
        transaction: Telemetry transaction the wait is recorded under
        timeout: Maximum wait time in seconds (default: 30 minutes)
        poll_interval: Seconds between polls (default: 10)

    Returns:
        The URL the deployment is reachable at

    Raises:
        DeploymentFailedError: If all matching deployments failed
        TimeoutError: If no deployment is ready within timeout

    """
    with transaction.start_child(
        op="wait_for_deployment_url",
        description=f"Wait for deployment of {short_sha(commit_sha)}",
    ):
        deadline = asyncio.get_running_loop().time() + timeout
        log.info("Waiting for a deployment of commit %s", short_sha(commit_sha))

        while True:
            url = await find_deployment_url(github, commit_sha, allowed_environments)
            if url is not None:
                log.info("Deployment ready at %s", url)
                return url

            if asyncio.get_running_loop().time() >= deadline:
                raise TimeoutError(
                    f"No deployment of commit {short_sha(commit_sha)} became "
                    f"available within {timeout} seconds"
                )

            await asyncio.sleep(poll_interval)


async def find_deployment_url(
    github: GitHubClient, commit_sha: str, allowed_environments: Sequence[str]
) -> str | None:
    """Check once for a successful deployment of the commit.

    Returns:
        The deployment URL, or None if no deployment is ready yet

    Raises:
        DeploymentFailedError: If there are deployments and all of them failed

    """
    deployments = [
        deployment
        for deployment in await github.list_deployments(commit_sha)
        if is_allowed(deployment, allowed_environments)
    ]
    if not deployments:
        log.debug("No deployments yet for %s", short_sha(commit_sha))
        return None

    latest_states: list[str] = []
    for deployment in deployments:
        status = latest_status(await github.list_deployment_statuses(deployment.id))
        if status is None:
            latest_states.append("pending")
            continue

        latest_states.append(status.state)
        log.debug(
            "Deployment %s (%s) is %s",
            deployment.id,
            deployment.environment,
            status.state,
        )
        if status.state == "success":
            if url := status.environment_url or status.target_url:
                return url
            log.warning(
                "Deployment %s succeeded but has no environment URL", deployment.id
            )

    if all(state in FAILED_STATES for state in latest_states):
        environments = ", ".join(sorted({d.environment for d in deployments}))
        raise DeploymentFailedError(
            f"Deployment of commit {short_sha(commit_sha)} failed "
            f"(environments: {environments})"
        )
    return None


def is_allowed(deployment: Deployment, allowed_environments: Sequence[str]) -> bool:
    return not allowed_environments or deployment.environment in allowed_environments


def latest_status(statuses: Sequence[DeploymentStatus]) -> DeploymentStatus | None:
    if not statuses:
        return None
    return max(statuses, key=lambda status: status.created_at)

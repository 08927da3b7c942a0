"""Make sure there is a baseline test run to compare the head commit against."""

import logging

from report_diffs_action.config import GitHubContext
from report_diffs_action.executors.base import TestRunExecutor
from report_diffs_action.github import GitHubClient
from report_diffs_action.logs import short_sha
from report_diffs_action.models.event import CodeChangeEvent, PullRequestEvent

log = logging.getLogger(__name__)


async def ensure_base_test_run_exists(
    *,
    event: CodeChangeEvent,
    base: str | None,
    executor: TestRunExecutor,
    github: GitHubClient,
    context: GitHubContext,
) -> str | None:
    """Find the commit whose test run the head commit is compared against.

    When a pull request's base has never been tested, the workflow is
    triggered on the base branch without waiting for it, so that later runs
    against the same base have something to compare to.

    Pushes never dispatch: a workflow_dispatch runs on the tip of a branch
    and cannot target the earlier commit a push compares against.

    Returns:
        The base SHA if it has a test run, None otherwise

    """
    if base is None:
        log.info("No base commit to compare against")
        return None

    if await executor.get_latest_test_run(base) is not None:
        return base

    if not isinstance(event, PullRequestEvent):
        log.info("No test run found for base commit %s", short_sha(base))
        return None

    base_ref = event.pull_request.base.ref
    workflow_file = context.workflow_file
    if workflow_file is None:
        log.warning(
            "No test run found for base commit %s and GITHUB_WORKFLOW_REF is not "
            "set, cannot trigger tests on '%s'",
            short_sha(base),
            base_ref,
        )
        return None

    await github.dispatch_workflow(workflow_file, ref=base_ref)
    log.info(
        "No test run found for base commit %s. Triggered workflow %s on '%s' so "
        "that future runs have a baseline to compare against.",
        short_sha(base),
        workflow_file,
        base_ref,
    )
    return None


async def safe_ensure_base_test_run_exists(
    *,
    event: CodeChangeEvent,
    base: str | None,
    executor: TestRunExecutor,
    github: GitHubClient,
    context: GitHubContext,
) -> str | None:
    """Same as ensure_base_test_run_exists, but never fails the action.

    Without a baseline the run still generates snapshots for the head commit.
    """
    try:
        return await ensure_base_test_run_exists(
            event=event,
            base=base,
            executor=executor,
            github=github,
            context=context,
        )
    except Exception as e:
        log.warning("Error while checking for a base test run: %s", e, exc_info=e)
        return None

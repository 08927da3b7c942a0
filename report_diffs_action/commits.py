"""Resolve the head commit to test and the base commit to compare against."""

import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path

from report_diffs_action.models.event import (
    CodeChangeEvent,
    PullRequestEvent,
    PushEvent,
    UnsupportedEvent,
)

log = logging.getLogger(__name__)

SHA_PATTERN = re.compile(r"^[0-9a-f]{40}$")
ZERO_SHA = "0" * 40


@dataclass(frozen=True, kw_only=True)
class BaseAndHead:
    """Commits of a test run: the one tested and the one it is compared to."""

    base: str | None
    head: str


async def get_base_and_head_commit_shas(
    event: CodeChangeEvent,
    *,
    sha: str,
    use_deployment_url: bool,
    cwd: Path | None = None,
) -> BaseAndHead:
    """Determine which commits to test and compare against.

    Args:
        event: The classified triggering event
        sha: GITHUB_SHA, the commit the workflow runs on
        use_deployment_url: Whether tests run against the PR head's deployment
        cwd: Git checkout of the repository (default: current directory)

    Returns:
        The base and head SHAs. base is None when there is nothing to compare to.

    """
    if isinstance(event, PullRequestEvent):
        head = event.pull_request.head.sha
        base = event.pull_request.base.sha
        if use_deployment_url:
            return BaseAndHead(base=base, head=head)
        merge_base = await try_get_merge_base(
            head, event.pull_request.base.ref, cwd=cwd
        )
        return BaseAndHead(base=merge_base or base, head=head)

    if isinstance(event, PushEvent):
        before = event.payload.before
        return BaseAndHead(
            base=None if before == ZERO_SHA else before,
            head=event.payload.after,
        )

    if isinstance(event, UnsupportedEvent):
        raise ValueError(f"Cannot resolve commits for '{event.event_name}' events")

    return BaseAndHead(base=None, head=sha)


async def try_get_merge_base(
    head_sha: str, base_ref: str, *, cwd: Path | None = None
) -> str | None:
    """Find the commit the pull request branched off from.

    Comparing against the merge base rather than the tip of the base branch
    keeps unrelated changes merged into the base branch out of the diff.
    Returns None, after logging a warning, if git cannot compute it.
    """
    try:
        await mark_git_directory_as_safe(cwd)
        await run_git("fetch", "origin", head_sha, cwd=cwd)
        await run_git("fetch", "origin", base_ref, cwd=cwd)
        merge_base = await run_git(
            "merge-base", head_sha, f"origin/{base_ref}", cwd=cwd
        )
    except (RuntimeError, OSError) as e:
        log.warning("Could not determine merge base of %s: %s", head_sha, e)
        return None

    if not SHA_PATTERN.match(merge_base):
        log.warning("git merge-base returned an invalid SHA: %r", merge_base)
        return None
    return merge_base


async def mark_git_directory_as_safe(cwd: Path | None = None) -> None:
    """Allow git to operate on a checkout owned by another user.

    Container actions run as root on a workspace owned by the runner user.
    """
    directory = cwd or Path.cwd()
    await run_git(
        "config", "--global", "--add", "safe.directory", str(directory), cwd=cwd
    )


async def run_git(*args: str, cwd: Path | None = None) -> str:
    """Run a git command and return its stripped stdout."""
    process = await asyncio.create_subprocess_exec(
        "git",
        *args,
        cwd=cwd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await process.communicate()

    if process.returncode != 0:
        raise RuntimeError(f"git {args[0]} failed: {stderr.decode().strip()}")

    return stdout.decode().strip()

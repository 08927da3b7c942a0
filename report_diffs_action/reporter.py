"""Report test run progress and results on the commit and pull request."""

import logging
from dataclasses import dataclass, field
from typing import Literal

from report_diffs_action.github import CommitState, GitHubClient
from report_diffs_action.logs import short_sha
from report_diffs_action.models.event import CodeChangeEvent, PullRequestEvent
from report_diffs_action.models.test_run import RunningTestRun, TestRunResult

log = logging.getLogger(__name__)

type ReporterState = Literal["created", "started", "finished", "errored"]

COMMENT_MARKER = "<!-- report-diffs-action:{suite} -->"


@dataclass(kw_only=True)
class ResultsReporter:
    """Reports one test run of one commit.

    Lifecycle: test_run_started, any number of test_finished, then exactly one
    of test_run_finished or error_running_tests. Terminal calls after the
    first one are ignored so the commit never ends up with two final statuses.
    A terminal state is only entered once its status was posted, so an error
    status can still follow a final status that failed to post.
    """

    github: GitHubClient
    event: CodeChangeEvent
    head_sha: str
    base_sha: str | None
    base_ref: str | None
    test_suite_id: str | None = None

    state: ReporterState = field(default="created", init=False)
    test_run: RunningTestRun | None = field(default=None, init=False)

    @property
    def status_context(self) -> str:
        if self.test_suite_id:
            return f"Meticulous ({self.test_suite_id})"
        return "Meticulous"

    async def test_run_started(self, test_run: RunningTestRun) -> None:
        """Mark the commit as being tested."""
        if self.state != "created":
            log.warning("Ignoring test run start in state %s", self.state)
            return
        self.state = "started"
        self.test_run = test_run

        if self.base_sha is None:
            description = "Generating visual snapshots..."
        else:
            description = (
                f"Comparing visual snapshots against {short_sha(self.base_sha)}..."
            )
        await self._set_status("pending", description)

    async def test_finished(self, test_run: RunningTestRun) -> None:
        """Report progress after sessions completed."""
        if self.state != "started":
            log.debug("Ignoring progress report in state %s", self.state)
            return
        self.test_run = test_run

        progress = test_run.progress
        total = progress.completed + progress.running
        description = f"Tested {progress.completed}/{total} sessions"
        if progress.failed:
            description += f", {progress.failed} with differences"
        await self._set_status("pending", description)

    async def test_run_finished(self, results: TestRunResult) -> None:
        """Post the final status and summary."""
        if self._already_reported("finished"):
            return

        if self.base_sha is None:
            state: CommitState = "success"
            description = f"Generated snapshots for {len(results.test_cases)} sessions"
        elif results.has_diffs:
            state = "failure"
            description = (
                f"{results.failed} of {len(results.test_cases)} sessions have "
                "visual differences"
            )
        else:
            state = "success"
            description = f"No visual differences in {len(results.test_cases)} sessions"

        await self._set_status(state, description, target_url=results.url)
        self.state = "finished"
        if isinstance(self.event, PullRequestEvent):
            await self._upsert_comment(
                self.event.pull_request.number,
                format_summary(
                    results,
                    base_sha=self.base_sha,
                    base_ref=self.base_ref,
                    marker=self.marker,
                ),
            )

    async def error_running_tests(self) -> None:
        """Post a failed status when the tests could not be run at all."""
        if self._already_reported("errored"):
            return
        await self._set_status("error", "Error running visual tests")
        self.state = "errored"

    @property
    def marker(self) -> str:
        return COMMENT_MARKER.format(suite=self.test_suite_id or "default")

    def _already_reported(self, state: ReporterState) -> bool:
        if self.state in ("finished", "errored"):
            log.warning(
                "Test run already reported as %s, ignoring %s", self.state, state
            )
            return True
        return False

    async def _set_status(
        self,
        state: CommitState,
        description: str,
        target_url: str | None = None,
    ) -> None:
        if target_url is None and self.test_run is not None:
            target_url = self.test_run.url
        log.debug(
            "Setting status %s on %s: %s", state, short_sha(self.head_sha), description
        )
        await self.github.create_commit_status(
            self.head_sha,
            state=state,
            context=self.status_context,
            description=description,
            target_url=target_url,
        )

    async def _upsert_comment(self, issue_number: int, body: str) -> None:
        for comment in await self.github.list_issue_comments(issue_number):
            if comment.body and self.marker in comment.body:
                await self.github.update_issue_comment(comment.id, body)
                return
        await self.github.create_issue_comment(issue_number, body)


def format_summary(
    results: TestRunResult,
    *,
    base_sha: str | None,
    base_ref: str | None = None,
    marker: str = "",
) -> str:
    """Render a test run result as markdown."""
    lines = [marker] if marker else []
    if base_sha is None:
        lines.append("### Visual snapshots generated")
        lines.append("")
        lines.append(
            f"Captured {len(results.test_cases)} sessions. There was no test run "
            "of the base commit to compare against."
        )
    else:
        heading = (
            "### Visual differences found"
            if results.has_diffs
            else "### No visual differences"
        )
        lines.append(heading)
        lines.append("")
        compared_to = f"`{short_sha(base_sha)}`"
        if base_ref:
            compared_to += f" on `{base_ref}`"
        lines.append(f"Compared against {compared_to}.")
        lines.append("")
        lines.append("| Result | Sessions |")
        lines.append("| --- | --- |")
        lines.append(f"| Passed | {results.passed} |")
        lines.append(f"| With differences | {results.failed} |")
        lines.append(f"| Flaky | {results.flaky} |")
        if results.screenshots_with_diffs:
            lines.append("")
            lines.append(
                f"{results.screenshots_with_diffs} screenshots differ from the base."
            )
    lines.append("")
    lines.append(f"[View test run]({results.url})")
    return "\n".join(lines)

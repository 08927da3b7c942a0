"""Abstract base class for test run executors."""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from report_diffs_action.environment import Environment
from report_diffs_action.models.options import ExecutionOptions, ScreenshottingOptions
from report_diffs_action.models.test_run import RunningTestRun, TestRunResult

log = logging.getLogger(__name__)

type OnTestRunCreated = Callable[[RunningTestRun], Awaitable[None]]
type OnTestFinished = Callable[[RunningTestRun], None]


@dataclass(frozen=True, kw_only=True)
class TestRunRequest:
    """Everything the executor needs to replay sessions for one commit."""

    __test__ = False

    tests_file: str | None
    commit_sha: str
    base_commit_sha: str | None
    base_test_run_id: str | None
    app_url: str | None
    execution_options: ExecutionOptions
    screenshotting_options: ScreenshottingOptions
    parallel_tasks: int | None
    max_retries_on_failure: int
    rerun_tests_n_times: int
    github_summary: bool
    environment: Environment
    max_semantic_version_supported: int
    logical_environment_version: int
    local_data_dir: Path


@dataclass(frozen=True, kw_only=True)
class TestRunExecutor(ABC):
    """Abstract base for services that execute visual test runs.

    The executor owns replay, screenshot diffing, retries and parallelism.
    This class only drives a run from creation to its final result.
    """

    __test__ = False

    @abstractmethod
    async def get_latest_test_run(self, commit_sha: str) -> RunningTestRun | None:
        """Return the most recent test run for a commit, if any.

        Args:
            commit_sha: Full SHA of the commit

        Returns:
            The test run, or None if no run was ever recorded for the commit

        """

    @abstractmethod
    async def start_test_run(self, request: TestRunRequest) -> RunningTestRun:
        """Create a test run and return it as soon as it is scheduled."""

    @abstractmethod
    async def poll_test_run(
        self, test_run: RunningTestRun
    ) -> RunningTestRun | TestRunResult:
        """Check on a test run.

        Args:
            test_run: Run returned from start_test_run or a previous poll

        Returns:
            The final result if the run is over, otherwise its current progress

        """

    async def execute_test_run(
        self,
        request: TestRunRequest,
        *,
        on_test_run_created: OnTestRunCreated,
        on_test_finished: OnTestFinished,
        timeout: float = 3600,
        poll_interval: float = 5,
    ) -> TestRunResult:
        """Run tests and wait for the result.

        Args:
            request: Test run parameters
            on_test_run_created: Awaited once the run exists
            on_test_finished: Called each time more sessions have completed
            timeout: Maximum wait time in seconds (default: 1 hour)
            poll_interval: Seconds between polls (default: 5)

        Returns:
            The final test run result

        Raises:
            TimeoutError: If the run does not finish within timeout

        """
        test_run = await self.start_test_run(request)
        log.info("Test run %s created: %s", test_run.id, test_run.url)
        await on_test_run_created(test_run)

        deadline = asyncio.get_running_loop().time() + timeout
        completed = test_run.progress.completed

        while True:
            polled = await self.poll_test_run(test_run)
            if isinstance(polled, TestRunResult):
                return polled

            test_run = polled
            if test_run.progress.completed > completed:
                completed = test_run.progress.completed
                on_test_finished(test_run)

            if asyncio.get_running_loop().time() >= deadline:
                raise TimeoutError(
                    f"Test run {test_run.id} did not complete within {timeout} seconds"
                )

            await asyncio.sleep(poll_interval)

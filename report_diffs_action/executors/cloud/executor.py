"""Executor that runs tests on the hosted test run service."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import aiohttp

from report_diffs_action.executors.base import (
    OnTestFinished,
    OnTestRunCreated,
    TestRunExecutor,
    TestRunRequest,
)
from report_diffs_action.executors.cloud.config import CloudExecutorConfig
from report_diffs_action.executors.cloud.models import ApiTestRun
from report_diffs_action.models.test_run import RunningTestRun, TestRunResult

log = logging.getLogger(__name__)


class ExecutorApiError(RuntimeError):
    """Raised when the test run API answers with an unexpected status."""


@dataclass(frozen=True, kw_only=True)
class CloudExecutor(TestRunExecutor):
    """Executes test runs remotely and polls them until they finish."""

    config: CloudExecutorConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: CloudExecutorConfig
    ) -> AsyncGenerator["CloudExecutor", None]:
        """Create executor with managed session lifecycle."""
        headers = {
            "Authorization": config.api_token.get_secret_value(),
            "Accept": "application/json",
        }
        async with aiohttp.ClientSession(headers=headers) as session:
            yield cls(config=config, session=session)

    def _url(self, path: str) -> str:
        return f"{self.config.api_url.rstrip('/')}/{path}"

    async def get_latest_test_run(self, commit_sha: str) -> RunningTestRun | None:
        """Find the latest test run recorded for a commit."""
        async with self.session.get(
            self._url("test-runs/latest"), params={"commitSha": commit_sha}
        ) as response:
            if response.status == 404:
                return None
            if response.status != 200:
                text = await response.text()
                raise ExecutorApiError(
                    f"Failed to get latest test run: {response.status} {text}"
                )
            data = await response.json()

        return ApiTestRun.model_validate(data).to_running()

    async def start_test_run(self, request: TestRunRequest) -> RunningTestRun:
        """Create a test run for the request's commit."""
        payload = build_payload(request)
        log.info(
            "Starting test run: commit_sha=%s, base_commit_sha=%s, app_url=%s",
            request.commit_sha,
            request.base_commit_sha,
            request.app_url,
        )

        async with self.session.post(
            self._url("test-runs"), json=payload
        ) as response:
            if response.status not in (200, 201):
                text = await response.text()
                raise ExecutorApiError(
                    f"Failed to start test run: {response.status} {text}"
                )
            data = await response.json()

        return ApiTestRun.model_validate(data).to_running()

    async def poll_test_run(
        self, test_run: RunningTestRun
    ) -> RunningTestRun | TestRunResult:
        """Fetch the current state of a test run."""
        async with self.session.get(
            self._url(f"test-runs/{test_run.id}")
        ) as response:
            if response.status != 200:
                text = await response.text()
                raise ExecutorApiError(
                    f"Failed to get test run {test_run.id}: {response.status} {text}"
                )
            data = await response.json()

        api_run = ApiTestRun.model_validate(data)
        if not api_run.is_finished:
            log.debug(
                "Test run %s still in status=%s (%d completed)",
                api_run.id,
                api_run.status,
                api_run.progress.completed,
            )
            return api_run.to_running()

        return api_run.to_result()

    async def execute_test_run(
        self,
        request: TestRunRequest,
        *,
        on_test_run_created: OnTestRunCreated,
        on_test_finished: OnTestFinished,
        timeout: float | None = None,
        poll_interval: float | None = None,
    ) -> TestRunResult:
        """Run tests with the configured wait limits and keep a copy of the result."""
        result = await super().execute_test_run(
            request,
            on_test_run_created=on_test_run_created,
            on_test_finished=on_test_finished,
            timeout=self.config.timeout if timeout is None else timeout,
            poll_interval=(
                self.config.poll_interval if poll_interval is None else poll_interval
            ),
        )
        save_result(request.local_data_dir, result)
        return result


def save_result(local_data_dir: Path, result: TestRunResult) -> Path:
    """Write the result to `<local data dir>/test-runs/<id>.json`."""
    results_dir = local_data_dir / "test-runs"
    results_dir.mkdir(parents=True, exist_ok=True)
    path = results_dir / f"{result.test_run_id}.json"
    path.write_text(result.model_dump_json(by_alias=True, indent=2))
    log.debug("Saved test run result to %s", path)
    return path


def build_payload(request: TestRunRequest) -> dict[str, Any]:
    """Serialize a test run request for the API."""
    return {
        "testsFile": request.tests_file,
        "commitSha": request.commit_sha,
        "baseCommitSha": request.base_commit_sha,
        "baseTestRunId": request.base_test_run_id,
        "appUrl": request.app_url,
        "executionOptions": request.execution_options.model_dump(by_alias=True),
        "screenshottingOptions": request.screenshotting_options.model_dump(
            by_alias=True
        ),
        "parallelTasks": request.parallel_tasks,
        "maxRetriesOnFailure": request.max_retries_on_failure,
        "rerunTestsNTimes": request.rerun_tests_n_times,
        "githubSummary": request.github_summary,
        "environment": request.environment.model_dump(by_alias=True),
        "maxSemanticVersionSupported": request.max_semantic_version_supported,
        "logicalEnvironmentVersion": request.logical_environment_version,
    }

"""Integration tests for the cloud executor."""

import json
import re
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from aioresponses import aioresponses as aioresponses_cls
from pydantic import SecretStr
from yarl import URL

from report_diffs_action.executors.cloud import (
    CloudExecutor,
    CloudExecutorConfig,
    ExecutorApiError,
)
from report_diffs_action.models.test_run import RunningTestRun, TestRunResult
from report_diffs_action.testing.cloud.payloads import (
    api_test_case_result,
    api_test_run,
)
from report_diffs_action.testing.config import make_test_run_request
from report_diffs_action.testing.factories import RunningTestRunFactory
from report_diffs_action.testing.github.payloads import BASE_SHA, HEAD_SHA

API_BASE_URL = "http://meticulous.test/api"


@pytest.fixture
def config() -> CloudExecutorConfig:
    """Create test configuration."""
    return CloudExecutorConfig(
        api_token=SecretStr("test-token"),
        api_url=API_BASE_URL,
        timeout=5,
        poll_interval=0.01,
    )


@pytest.fixture
async def executor(
    config: CloudExecutorConfig, aioresponses: aioresponses_cls
) -> AsyncGenerator[CloudExecutor, None]:
    """Create executor with managed session."""
    async with CloudExecutor.from_config(config) as impl:
        yield impl


class TestGetLatestTestRun:
    """Tests for get_latest_test_run."""

    async def test_returns_test_run(
        self, executor: CloudExecutor, aioresponses: aioresponses_cls
    ) -> None:
        """Returns the latest run of the commit."""
        aioresponses.get(
            f"{API_BASE_URL}/test-runs/latest?commitSha={BASE_SHA}",
            payload=api_test_run(test_run_id="base-run", status="Success"),
        )

        test_run = await executor.get_latest_test_run(BASE_SHA)

        assert test_run is not None
        assert test_run.id == "base-run"
        assert executor.session.headers["Authorization"] == "test-token"

    async def test_returns_none_when_not_found(
        self, executor: CloudExecutor, aioresponses: aioresponses_cls
    ) -> None:
        """Returns None for commits that were never tested."""
        aioresponses.get(
            f"{API_BASE_URL}/test-runs/latest?commitSha={BASE_SHA}", status=404
        )

        assert await executor.get_latest_test_run(BASE_SHA) is None

    async def test_raises_on_error(
        self, executor: CloudExecutor, aioresponses: aioresponses_cls
    ) -> None:
        """Raises ExecutorApiError for other failures."""
        aioresponses.get(
            f"{API_BASE_URL}/test-runs/latest?commitSha={BASE_SHA}",
            status=401,
            body="Invalid API token",
        )

        with pytest.raises(ExecutorApiError, match="401 Invalid API token"):
            await executor.get_latest_test_run(BASE_SHA)


class TestStartTestRun:
    """Tests for start_test_run."""

    async def test_posts_request(
        self, executor: CloudExecutor, aioresponses: aioresponses_cls
    ) -> None:
        """Sends the request with camelCase keys."""
        url = f"{API_BASE_URL}/test-runs"
        aioresponses.post(url, status=201, payload=api_test_run(status="Scheduled"))

        test_run = await executor.start_test_run(make_test_run_request())

        assert test_run.status == "Scheduled"
        payload = aioresponses.requests[("POST", URL(url))][0].kwargs["json"]
        assert payload["commitSha"] == HEAD_SHA
        assert payload["baseCommitSha"] == BASE_SHA
        assert payload["appUrl"] == "https://app.example.com"
        assert payload["executionOptions"]["noSandbox"] is True
        assert payload["screenshottingOptions"]["diffOptions"] == {
            "diffThreshold": 0.00001,
            "diffPixelThreshold": 0.01,
        }
        assert payload["environment"]["context"]["event"] == "push"
        assert payload["logicalEnvironmentVersion"] == 2

    async def test_raises_on_error(
        self, executor: CloudExecutor, aioresponses: aioresponses_cls
    ) -> None:
        """Raises ExecutorApiError when the run cannot be created."""
        aioresponses.post(
            f"{API_BASE_URL}/test-runs", status=500, body="Internal Server Error"
        )

        with pytest.raises(ExecutorApiError, match="Failed to start test run: 500"):
            await executor.start_test_run(make_test_run_request())


class TestPollTestRun:
    """Tests for poll_test_run."""

    async def test_running(
        self, executor: CloudExecutor, aioresponses: aioresponses_cls
    ) -> None:
        """Returns progress while the run is going."""
        aioresponses.get(
            f"{API_BASE_URL}/test-runs/run-123",
            payload=api_test_run(passed=2, failed=1, running=3),
        )

        polled = await executor.poll_test_run(RunningTestRunFactory.build(id="run-123"))

        assert isinstance(polled, RunningTestRun)
        assert polled.progress.completed == 3

    @pytest.mark.parametrize(
        ("status", "expected"),
        [("Success", "success"), ("Failure", "failure"), ("ExecutionError", "error")],
    )
    async def test_finished(
        self,
        executor: CloudExecutor,
        aioresponses: aioresponses_cls,
        status: str,
        expected: str,
    ) -> None:
        """Returns the result once the run is over."""
        aioresponses.get(
            f"{API_BASE_URL}/test-runs/run-123",
            payload=api_test_run(
                status=status,
                results=[
                    api_test_case_result(session_id="a"),
                    api_test_case_result(
                        session_id="b", result="fail", screenshots_with_diffs=2
                    ),
                ],
            ),
        )

        polled = await executor.poll_test_run(RunningTestRunFactory.build(id="run-123"))

        assert isinstance(polled, TestRunResult)
        assert polled.status == expected
        assert [case.session_id for case in polled.test_cases] == ["a", "b"]
        assert polled.screenshots_with_diffs == 2


class TestExecuteTestRun:
    """Tests for execute_test_run."""

    async def test_runs_to_completion_and_saves_result(
        self,
        executor: CloudExecutor,
        aioresponses: aioresponses_cls,
        tmp_path: Path,
    ) -> None:
        """Polls until the run finishes and keeps a copy of the result."""
        aioresponses.post(
            f"{API_BASE_URL}/test-runs", status=201, payload=api_test_run(running=2)
        )
        poll_url = re.compile(rf"^{re.escape(API_BASE_URL)}/test-runs/run-123$")
        aioresponses.get(poll_url, payload=api_test_run(passed=1, running=1))
        aioresponses.get(
            poll_url,
            payload=api_test_run(
                status="Success",
                results=[
                    api_test_case_result(session_id="a"),
                    api_test_case_result(session_id="b"),
                ],
            ),
        )
        created: list[RunningTestRun] = []
        finished: list[RunningTestRun] = []

        async def on_test_run_created(test_run: RunningTestRun) -> None:
            created.append(test_run)

        result = await executor.execute_test_run(
            make_test_run_request(local_data_dir=tmp_path),
            on_test_run_created=on_test_run_created,
            on_test_finished=finished.append,
        )

        assert result.status == "success"
        assert [run.id for run in created] == ["run-123"]
        assert [run.progress.completed for run in finished] == [1]

        saved = json.loads((tmp_path / "test-runs" / "run-123.json").read_text())
        assert saved["testRunId"] == "run-123"
        assert len(saved["testCases"]) == 2

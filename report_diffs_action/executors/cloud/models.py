"""Pydantic models for the test run API responses."""

from collections.abc import Sequence
from typing import Literal

from pydantic import Field

from report_diffs_action.models.base import CamelModel
from report_diffs_action.models.test_run import (
    RunningTestRun,
    TestCaseResult,
    TestRunProgress,
    TestRunResult,
    TestRunStatus,
)

STATUS_TO_RESULT: dict[TestRunStatus, Literal["success", "failure", "error"]] = {
    "Success": "success",
    "Failure": "failure",
    "ExecutionError": "error",
}


class ApiResultData(CamelModel):
    """Per-session results, present once a test run is over."""

    results: Sequence[TestCaseResult] = Field(default_factory=list)


class ApiTestRun(CamelModel):
    """A test run as returned by the API."""

    id: str
    url: str
    status: TestRunStatus
    progress: TestRunProgress = Field(default_factory=TestRunProgress)
    result_data: ApiResultData | None = None

    @property
    def is_finished(self) -> bool:
        return self.status in STATUS_TO_RESULT

    def to_running(self) -> RunningTestRun:
        return RunningTestRun(
            id=self.id, url=self.url, status=self.status, progress=self.progress
        )

    def to_result(self) -> TestRunResult:
        results = self.result_data.results if self.result_data else []
        return TestRunResult(
            test_run_id=self.id,
            url=self.url,
            status=STATUS_TO_RESULT[self.status],
            test_cases=results,
        )

"""Cloud executor module."""

from report_diffs_action.executors.cloud.config import CloudExecutorConfig
from report_diffs_action.executors.cloud.executor import CloudExecutor, ExecutorApiError
from report_diffs_action.executors.cloud.manifest import cloud_manifest

__all__ = ["CloudExecutor", "CloudExecutorConfig", "ExecutorApiError", "cloud_manifest"]

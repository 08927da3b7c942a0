"""Cloud executor manifest."""

from report_diffs_action.executors.cloud.config import CloudExecutorConfig
from report_diffs_action.executors.cloud.executor import CloudExecutor
from report_diffs_action.executors.manifest import ExecutorManifest

cloud_manifest = ExecutorManifest(
    config_cls=CloudExecutorConfig,
    executor_factory=CloudExecutor.from_config,
)

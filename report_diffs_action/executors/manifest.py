"""Executor manifest definition for the plugin system."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from pydantic import BaseModel

from report_diffs_action.executors.base import TestRunExecutor


@dataclass(frozen=True, kw_only=True)
class ExecutorManifest[ConfigT: BaseModel]:
    """Manifest describing an executor plugin.

    The manifest contains references to the configuration class and the
    executor factory function for lazy loading of executors based on their key.
    """

    config_cls: type[ConfigT]
    executor_factory: Callable[[ConfigT], AbstractAsyncContextManager[TestRunExecutor]]

"""Loading of executors registered as entry points."""

from importlib.metadata import entry_points
from typing import Any

from report_diffs_action.executors.manifest import ExecutorManifest

ENTRY_POINT_GROUP = "report_diffs_action.executors"


class ExecutorNotFoundError(Exception):
    """Raised when no executor is registered under the requested key."""


def load_executor_manifest(key: str) -> ExecutorManifest[Any]:
    """Load the manifest of the executor selected with the `executor` input.

    Raises:
        ExecutorNotFoundError: If no executor with the given key is installed
        TypeError: If the entry point does not refer to an ExecutorManifest

    """
    matches = entry_points(group=ENTRY_POINT_GROUP, name=key)
    if not matches:
        available = sorted(entry_points(group=ENTRY_POINT_GROUP).names)
        raise ExecutorNotFoundError(
            f"Executor '{key}' not found. Available executors: {available}"
        )

    entry = next(iter(matches))
    manifest = entry.load()
    if not isinstance(manifest, ExecutorManifest):
        raise TypeError(
            f"Entry point '{entry.value}' is not an ExecutorManifest: {manifest!r}"
        )
    return manifest

"""GitHub Actions workflow commands."""

import logging
from pathlib import Path

log = logging.getLogger(__name__)


def escape_data(value: str) -> str:
    """Escape a workflow command message the way the runner expects."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def set_failed(message: str) -> None:
    """Mark the step as failed with the given message."""
    print(f"::error::{escape_data(message)}", flush=True)


def append_job_summary(summary_path: Path | None, markdown: str) -> None:
    """Append markdown to the job summary page, when the runner provides one."""
    if summary_path is None:
        log.debug("GITHUB_STEP_SUMMARY not set, skipping job summary")
        return
    with summary_path.open("a", encoding="utf-8") as f:
        f.write(markdown)
        f.write("\n")

"""Logging setup for the action."""

import logging
import math
import sys
from collections.abc import Mapping

TRACE = 5
logging.addLevelName(TRACE, "TRACE")


def is_runner_debug(environ: Mapping[str, str]) -> bool:
    """Whether the workflow was re-run with debug logging enabled.

    RUNNER_DEBUG is set to "1" by GitHub, any finite non-zero number counts.
    """
    try:
        value = float(environ.get("RUNNER_DEBUG", "0") or "0")
    except ValueError:
        return False
    return math.isfinite(value) and value != 0


def configure_logging(*, debug: bool = False) -> None:
    """Send log records to stderr, which the runner shows in the job log."""
    logging.basicConfig(
        level=TRACE if debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def short_sha(sha: str) -> str:
    return sha[:7]

"""Error and performance monitoring with Sentry."""

import logging
from importlib.metadata import PackageNotFoundError, version

import sentry_sdk
from sentry_sdk.tracing import Span

log = logging.getLogger(__name__)

TRANSACTION_NAME = "report-diffs-action.run"
CLOSE_TIMEOUT = 5.0


def package_version() -> str | None:
    try:
        return version("report-diffs-action")
    except PackageNotFoundError:
        return None


def init_telemetry() -> None:
    """Initialise Sentry.

    The DSN is read from SENTRY_DSN; without one the SDK does not send
    anything. Every run of the action is traced, the executor applies its
    own sample rate to the work it does.
    """
    sentry_sdk.init(
        traces_sample_rate=1.0,
        release=package_version(),
        environment="github-actions",
    )


def start_transaction() -> Span:
    """Start the transaction covering one run of the action."""
    return sentry_sdk.start_transaction(name=TRANSACTION_NAME, op=TRANSACTION_NAME)


def close_telemetry(timeout: float = CLOSE_TIMEOUT) -> None:
    """Send buffered events, waiting at most `timeout` seconds."""
    log.debug("Flushing telemetry")
    sentry_sdk.get_client().close(timeout=timeout)

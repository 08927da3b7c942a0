"""CLI entry point for the report diffs action."""

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import AsyncGenerator
from contextlib import AsyncExitStack, asynccontextmanager

from pydantic import ValidationError
from sentry_sdk.tracing import Span

from report_diffs_action import telemetry
from report_diffs_action.baseline import safe_ensure_base_test_run_exists
from report_diffs_action.commits import get_base_and_head_commit_shas
from report_diffs_action.config import (
    ActionInputs,
    ConfigurationError,
    GitHubContext,
    load_context,
    load_inputs,
)
from report_diffs_action.connectivity import throw_if_cannot_connect_to_origin
from report_diffs_action.debounce import Debouncer
from report_diffs_action.deployment import wait_for_deployment_url
from report_diffs_action.environment import Environment, get_environment
from report_diffs_action.executors.base import TestRunExecutor, TestRunRequest
from report_diffs_action.executors.loading import load_executor_manifest
from report_diffs_action.github import GitHubClient
from report_diffs_action.github.client import GitHubConfig
from report_diffs_action.localhost import add_localhost_aliases, spin_up_proxy_if_needed
from report_diffs_action.logs import configure_logging, is_runner_debug, short_sha
from report_diffs_action.models.event import (
    PullRequestEvent,
    UnsupportedEvent,
    get_code_change_event,
)
from report_diffs_action.models.options import (
    EXECUTION_OPTIONS,
    DiffOptions,
    ScreenshottingOptions,
)
from report_diffs_action.models.test_run import RunningTestRun
from report_diffs_action.reporter import ResultsReporter, format_summary
from report_diffs_action.workflow import append_job_summary, set_failed

log = logging.getLogger("report_diffs_action")

LOGICAL_ENVIRONMENT_VERSION = 2
MAX_SEMANTIC_VERSION_SUPPORTED = 1
REPORT_DEBOUNCE_WAIT = 5
REPORT_DEBOUNCE_MAX_WAIT = 15


async def run(inputs: ActionInputs, context: GitHubContext) -> int:
    """Run the action and return its exit code.

    Any error is reported as the step's failure message and as the status of
    the telemetry transaction.
    """
    transaction = telemetry.start_transaction()
    try:
        await run_tests_action(inputs, context, transaction)
    except Exception as error:
        log.debug("Action failed", exc_info=error)
        set_failed(str(error) or repr(error))
        transaction.set_status("unknown_error")
        exit_code = 1
    else:
        transaction.set_status("ok")
        exit_code = 0
    finally:
        transaction.finish()
        telemetry.close_telemetry()

    return exit_code


async def run_tests_action(
    inputs: ActionInputs, context: GitHubContext, transaction: Span
) -> None:
    """Test the head commit and report the results."""
    if inputs.github_token is None:
        raise ConfigurationError("github-token is required")

    event = get_code_change_event(context.event_name, context.load_payload())
    if isinstance(event, UnsupportedEvent):
        log.warning(
            "Running report-diffs-action is only supported for 'push', "
            "'pull_request' and 'workflow_dispatch' events, but was triggered "
            "on a '%s' event. Skipping execution.",
            event.event_name,
        )
        return

    manifest = load_executor_manifest(inputs.executor)
    try:
        executor_config = manifest.config_cls.model_validate(
            {**inputs.executor_config, "api_token": inputs.api_token}
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid executor-config: {e}") from e

    github_config = GitHubConfig(
        token=inputs.github_token,
        owner=context.owner,
        repo=context.repo,
        api_url=context.api_url,
    )

    commits = await get_base_and_head_commit_shas(
        event,
        sha=context.sha,
        use_deployment_url=inputs.use_deployment_url,
        cwd=context.workspace,
    )
    head = commits.head
    environment = get_environment(event=event, head=head, context=context)

    async with (
        GitHubClient.from_config(github_config) as github,
        manifest.executor_factory(executor_config) as executor,
    ):
        sha_to_compare_against = await safe_ensure_base_test_run_exists(
            event=event,
            base=commits.base,
            executor=executor,
            github=github,
            context=context,
        )

        if sha_to_compare_against is not None and isinstance(event, PullRequestEvent):
            log.info(
                "Comparing visual snapshots for the commit head of this PR, %s, "
                "against %s",
                short_sha(head),
                short_sha(sha_to_compare_against),
            )
        elif sha_to_compare_against is not None:
            log.info(
                "Comparing visual snapshots for commit %s against commit %s",
                short_sha(head),
                short_sha(sha_to_compare_against),
            )
        else:
            log.info("Generating visual snapshots for commit %s", short_sha(head))

        reporter = ResultsReporter(
            github=github,
            event=event,
            head_sha=head,
            base_sha=sha_to_compare_against,
            base_ref=(
                event.pull_request.base.ref
                if isinstance(event, PullRequestEvent)
                else None
            ),
            test_suite_id=inputs.test_suite_id,
        )

        try:
            await add_localhost_aliases(
                app_url=inputs.app_url, localhost_aliases=inputs.localhost_aliases
            )

            if inputs.use_deployment_url:
                url_to_test_against: str | None = await wait_for_deployment_url(
                    github=github,
                    commit_sha=head,
                    allowed_environments=inputs.allowed_environments,
                    transaction=transaction,
                )
            else:
                url_to_test_against = inputs.app_url

            request = build_test_run_request(
                inputs,
                head=head,
                base=sha_to_compare_against,
                app_url=url_to_test_against,
                environment=environment,
            )
            async with target_url(url_to_test_against):
                await execute_and_report(
                    executor, reporter, request=request, context=context
                )
        except Exception:
            try:
                await reporter.error_running_tests()
            except Exception as report_error:
                log.error(
                    "Could not report the error on the commit: %s",
                    report_error,
                    exc_info=report_error,
                )
            raise


def build_test_run_request(
    inputs: ActionInputs,
    *,
    head: str,
    base: str | None,
    app_url: str | None,
    environment: Environment,
) -> TestRunRequest:
    return TestRunRequest(
        tests_file=inputs.tests_file,
        commit_sha=head,
        base_commit_sha=base,
        base_test_run_id=None,
        app_url=app_url,
        execution_options=EXECUTION_OPTIONS,
        screenshotting_options=ScreenshottingOptions(
            diff_options=DiffOptions(
                diff_threshold=inputs.max_allowed_proportion_of_changed_pixels,
                diff_pixel_threshold=inputs.max_allowed_color_difference,
            ),
        ),
        parallel_tasks=inputs.parallel_tasks,
        max_retries_on_failure=inputs.max_retries_on_failure,
        rerun_tests_n_times=0,
        github_summary=True,
        environment=environment,
        max_semantic_version_supported=MAX_SEMANTIC_VERSION_SUPPORTED,
        logical_environment_version=LOGICAL_ENVIRONMENT_VERSION,
        local_data_dir=inputs.local_data_dir,
    )


@asynccontextmanager
async def target_url(url: str | None) -> AsyncGenerator[None, None]:
    """Make sure the app under test is reachable for the duration of the run."""
    async with AsyncExitStack() as stack:
        if url is not None:
            await stack.enter_async_context(spin_up_proxy_if_needed(url))
            await throw_if_cannot_connect_to_origin(url)
        yield


async def execute_and_report(
    executor: TestRunExecutor,
    reporter: ResultsReporter,
    *,
    request: TestRunRequest,
    context: GitHubContext,
) -> None:
    """Execute the test run, reporting progress and the final result."""
    report_test_finished = Debouncer[RunningTestRun](
        func=reporter.test_finished,
        wait=REPORT_DEBOUNCE_WAIT,
        max_wait=REPORT_DEBOUNCE_MAX_WAIT,
    )
    try:
        results = await executor.execute_test_run(
            request,
            on_test_run_created=reporter.test_run_started,
            on_test_finished=report_test_finished,
        )
    finally:
        # A late progress report must not overwrite the final status
        report_test_finished.cancel()

    await reporter.test_run_finished(results)
    append_job_summary(
        context.step_summary,
        format_summary(
            results, base_sha=request.base_commit_sha, base_ref=reporter.base_ref
        ),
    )


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description=(
            "Run visual regression tests for the current commit and report "
            "differences. Configured through the GitHub Actions environment."
        )
    )
    parser.parse_args()

    configure_logging(debug=is_runner_debug(os.environ))
    telemetry.init_telemetry()

    try:
        inputs = load_inputs()
        context = load_context()
    except ConfigurationError as e:
        set_failed(str(e))
        telemetry.close_telemetry()
        sys.exit(1)

    exit_code = asyncio.run(run(inputs, context))
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()

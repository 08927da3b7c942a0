"""Option bags passed through to the test run executor."""

from report_diffs_action.models.base import CamelModel


class ExecutionOptions(CamelModel):
    """Browser and replay settings for each session in a test run."""

    headless: bool = True
    dev_tools: bool = False
    bypass_csp: bool = False
    shift_time: bool = True
    network_stubbing: bool = True
    skip_pauses: bool = True
    move_before_click: bool = False
    disable_remote_fonts: bool = False
    no_sandbox: bool = False
    max_duration_ms: int | None = None
    max_event_count: int | None = None
    essential_features_only: bool = False


class StoryboardOptions(CamelModel):
    """Whether to capture intermediate screenshots during replay."""

    enabled: bool = True


class DiffOptions(CamelModel):
    """Thresholds above which a screenshot counts as changed."""

    diff_threshold: float
    diff_pixel_threshold: float


class ScreenshottingOptions(CamelModel):
    """Screenshot capture and comparison settings."""

    enabled: bool = True
    storyboard_options: StoryboardOptions = StoryboardOptions()
    diff_options: DiffOptions


# Runners on GitHub-hosted machines cannot use the Chrome sandbox.
EXECUTION_OPTIONS = ExecutionOptions(no_sandbox=True)

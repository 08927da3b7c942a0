"""Configuration read from the GitHub Actions runner environment."""

import json
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Annotated, Any

from pydantic import (
    AliasChoices,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class ConfigurationError(ValueError):
    """Raised when the action inputs or runner environment are invalid."""


def action_input(name: str, **kwargs: Any) -> Any:
    """Declare a field read from the `INPUT_<NAME>` variable GitHub sets.

    GitHub keeps hyphens in input names (`INPUT_API-TOKEN`), the underscore
    spelling is accepted too so that the inputs can be set from a shell.
    """
    env_name = f"INPUT_{name.upper()}"
    return Field(
        validation_alias=AliasChoices(env_name, env_name.replace("-", "_")),
        **kwargs,
    )


def split_list(value: Any) -> Any:
    """Split a comma-separated input into its non-empty items."""
    if isinstance(value, str):
        return tuple(item.strip() for item in value.split(",") if item.strip())
    return value


class ActionInputs(BaseSettings):
    """Inputs declared in action.yml."""

    model_config = SettingsConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
    )

    api_token: SecretStr = action_input("api-token")
    github_token: SecretStr | None = action_input("github-token", default=None)
    app_url: str | None = action_input("app-url", default=None)
    tests_file: str | None = action_input("tests-file", default=None)
    max_retries_on_failure: int = action_input(
        "max-retries-on-failure", default=5, ge=0
    )
    parallel_tasks: int | None = action_input("parallel-tasks", default=None, ge=1)
    localhost_aliases: Annotated[Sequence[str], NoDecode] = action_input(
        "localhost-aliases", default=()
    )
    max_allowed_color_difference: float = action_input(
        "max-allowed-color-difference", default=0.01, ge=0, le=1
    )
    max_allowed_proportion_of_changed_pixels: float = action_input(
        "max-allowed-proportion-of-changed-pixels", default=0.00001, ge=0, le=1
    )
    use_deployment_url: bool = action_input("use-deployment-url", default=False)
    allowed_environments: Annotated[Sequence[str], NoDecode] = action_input(
        "allowed-environments", default=()
    )
    test_suite_id: str | None = action_input("test-suite-id", default=None)
    executor: str = action_input("executor", default="cloud")
    executor_config: Annotated[Mapping[str, Any], NoDecode] = action_input(
        "executor-config", default_factory=dict
    )
    local_data_dir: Path = action_input(
        "local-data-dir", default_factory=lambda: Path.home() / ".meticulous"
    )

    @model_validator(mode="before")
    @classmethod
    def drop_empty_inputs(cls, data: Any) -> Any:
        """Treat inputs left empty in the workflow as not set."""
        if isinstance(data, Mapping):
            return {key: value for key, value in data.items() if value != ""}
        return data

    @field_validator("localhost_aliases", "allowed_environments", mode="before")
    @classmethod
    def parse_list(cls, value: Any) -> Any:
        return split_list(value)

    @field_validator("executor_config", mode="before")
    @classmethod
    def parse_json_object(cls, value: Any) -> Any:
        if isinstance(value, str):
            return json.loads(value)
        return value

    @model_validator(mode="after")
    def check_target_url(self) -> "ActionInputs":
        """Only one way of choosing the URL to test against may be given."""
        if self.use_deployment_url and self.app_url is not None:
            raise ValueError("Cannot specify both app-url and use-deployment-url")
        return self


class GitHubContext(BaseSettings):
    """Workflow run context exposed by the runner as GITHUB_* variables."""

    model_config = SettingsConfigDict(
        env_prefix="GITHUB_",
        frozen=True,
        extra="ignore",
    )

    event_name: str
    event_path: Path | None = None
    repository: str
    sha: str
    workflow_ref: str | None = None
    api_url: str = "https://api.github.com"
    server_url: str = "https://github.com"
    run_id: str | None = None
    step_summary: Path | None = None
    workspace: Path | None = None

    @field_validator("repository")
    @classmethod
    def check_repository(cls, value: str) -> str:
        if value.count("/") != 1:
            raise ValueError(f"Expected 'owner/repo', got '{value}'")
        return value

    @property
    def owner(self) -> str:
        return self.repository.split("/")[0]

    @property
    def repo(self) -> str:
        return self.repository.split("/")[1]

    @property
    def workflow_file(self) -> str | None:
        """File name of the running workflow, used to dispatch it again.

        GITHUB_WORKFLOW_REF looks like
        `owner/repo/.github/workflows/visual-tests.yml@refs/heads/main`.
        """
        if not self.workflow_ref:
            return None
        path = self.workflow_ref.split("@", 1)[0]
        return path.rsplit("/", 1)[-1]

    @property
    def run_url(self) -> str | None:
        if self.run_id is None:
            return None
        return f"{self.server_url}/{self.repository}/actions/runs/{self.run_id}"

    def load_payload(self) -> Mapping[str, Any]:
        """Read the webhook payload of the triggering event."""
        if self.event_path is None or not self.event_path.exists():
            return {}
        payload: Mapping[str, Any] = json.loads(self.event_path.read_text())
        return payload


def load_inputs() -> ActionInputs:
    """Load the action inputs, raising ConfigurationError when invalid."""
    try:
        return ActionInputs()  # type: ignore[call-arg]
    except (ValidationError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Invalid action inputs: {e}") from e


def load_context() -> GitHubContext:
    """Load the workflow run context, raising ConfigurationError when invalid."""
    try:
        return GitHubContext()  # type: ignore[call-arg]
    except ValidationError as e:
        raise ConfigurationError(
            f"Not running inside GitHub Actions or context is incomplete: {e}"
        ) from e

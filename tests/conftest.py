"""Shared fixtures."""

from collections.abc import Generator

import pytest
from aioresponses import aioresponses as aioresponses_cls

from report_diffs_action.config import ActionInputs, GitHubContext
from report_diffs_action.testing.config import make_context, make_inputs


@pytest.fixture
def aioresponses() -> Generator[aioresponses_cls, None, None]:
    """Intercept aiohttp requests."""
    with aioresponses_cls() as mocked:
        yield mocked


@pytest.fixture
def inputs() -> ActionInputs:
    """Action inputs testing against a fixed app URL."""
    return make_inputs()


@pytest.fixture
def context() -> GitHubContext:
    """Context of a workflow triggered by a pull request."""
    return make_context()

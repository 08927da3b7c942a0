"""Tests for GitHub Actions workflow commands."""

from pathlib import Path

import pytest

from report_diffs_action.workflow import append_job_summary, escape_data, set_failed


def test_escape_data() -> None:
    """Escapes characters that would end the workflow command."""
    assert escape_data("50% done\r\nnext line") == "50%25 done%0D%0Anext line"


def test_set_failed(capsys: pytest.CaptureFixture[str]) -> None:
    """Prints an error command on stdout."""
    set_failed("Could not connect\nPlease check")

    assert capsys.readouterr().out == "::error::Could not connect%0APlease check\n"


def test_append_job_summary(tmp_path: Path) -> None:
    """Appends to the summary file, keeping what other steps wrote."""
    summary = tmp_path / "summary.md"
    summary.write_text("# Build\n")

    append_job_summary(summary, "### No visual differences")

    assert summary.read_text() == "# Build\n### No visual differences\n"


def test_append_job_summary_without_file() -> None:
    """Does nothing when the runner provides no summary file."""
    append_job_summary(None, "### No visual differences")

"""Fixtures for integration tests."""

from pathlib import Path

import pytest

from report_diffs_action.testing.git import CommitFn, git


@pytest.fixture(autouse=True)
def git_identity(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Isolate git from the user's global configuration."""
    global_config = tmp_path / "gitconfig"
    global_config.touch()
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(global_config))
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    return global_config


@pytest.fixture
def git_commit() -> CommitFn:
    """Return a function to create commits."""

    def _commit(repo: Path, message: str) -> str:
        git("commit", "--allow-empty", "-m", message, cwd=repo)
        return git("rev-parse", "HEAD", cwd=repo)

    return _commit


@pytest.fixture
def upstream_repo(tmp_path: Path, git_commit: CommitFn) -> Path:
    """Create the repository pull requests are opened against, on `main`."""
    upstream = tmp_path / "upstream"
    upstream.mkdir()
    git("init", "-b", "main", cwd=upstream)
    git("config", "uploadpack.allowAnySHA1InWant", "true", cwd=upstream)
    git_commit(upstream, "Initial commit")
    return upstream


@pytest.fixture
def checkout(tmp_path: Path, upstream_repo: Path) -> Path:
    """Clone of the upstream repository, like actions/checkout creates."""
    clone = tmp_path / "checkout"
    git("clone", str(upstream_repo), str(clone), cwd=tmp_path)
    return clone

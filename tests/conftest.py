"""Test fixtures for thoughts-cli."""

import subprocess
from pathlib import Path

import pytest

from thoughts_cli.config import ResolvedProfileConfig


def git(repo: Path, *args: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        ["git", *args], cwd=repo, capture_output=True, text=True, check=True,
    )


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point HOME and XDG_CONFIG_HOME at a temp directory for each test."""
    home = tmp_path / "home"
    home.mkdir()

    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("USER", "alice")

    # commits in throwaway repositories need an identity
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")

    yield home


@pytest.fixture
def run_git():
    """Run a git command in a repository, raising on failure."""
    return git


@pytest.fixture
def code_repo(tmp_path):
    """A freshly initialised git repository named my-project."""
    repo = tmp_path / "code" / "my-project"
    repo.mkdir(parents=True)
    git(repo, "init")
    return repo.resolve()


@pytest.fixture
def thoughts_config(tmp_path):
    """Resolved configuration pointing at an empty thoughts repo location."""
    return ResolvedProfileConfig(
        thoughts_repo=str(tmp_path / "thoughts"),
        repos_dir="repos",
        global_dir="global",
    )

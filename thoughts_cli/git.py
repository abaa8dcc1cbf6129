"""Thin wrappers around the git command line."""

import subprocess
from pathlib import Path
from typing import Optional

from .errors import GitError, NotAGitRepository


def run_git(args: list[str], cwd: Path, check: bool = True) -> subprocess.CompletedProcess:
    """Run ``git <args>`` in ``cwd``.

    Args:
        args: Arguments after ``git``
        cwd: Working directory
        check: Raise GitError on a non-zero exit status

    Returns:
        The completed process with text stdout/stderr
    """
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=str(cwd),
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as e:
        raise GitError(args, f"git executable not found ({e})") from e

    if check and result.returncode != 0:
        raise GitError(args, result.stderr or result.stdout)
    return result


def get_repo_root(path: Path) -> Path:
    """Top level of the git work tree containing ``path``."""
    result = run_git(["rev-parse", "--show-toplevel"], path, check=False)
    if result.returncode != 0:
        raise NotAGitRepository(f"{path} is not inside a git repository")
    return Path(result.stdout.strip())


def get_common_dir(repo_path: Path) -> Path:
    """The git directory shared by all worktrees of ``repo_path``."""
    result = run_git(["rev-parse", "--git-common-dir"], repo_path, check=False)
    if result.returncode != 0:
        return repo_path / ".git"

    common_dir = Path(result.stdout.strip())
    if not common_dir.is_absolute():
        common_dir = repo_path / common_dir
    return common_dir


def init_repo(path: Path) -> None:
    run_git(["init"], path)


def add_all(repo_path: Path) -> None:
    run_git(["add", "-A"], repo_path)


def has_staged_changes(repo_path: Path) -> bool:
    result = run_git(["diff", "--cached", "--quiet"], repo_path, check=False)
    if result.returncode not in (0, 1):
        raise GitError(["diff", "--cached", "--quiet"], result.stderr)
    return result.returncode == 1


def commit(repo_path: Path, message: str) -> None:
    run_git(["commit", "-m", message], repo_path)


def get_remote_url(repo_path: Path, remote: str = "origin") -> Optional[str]:
    result = run_git(["remote", "get-url", remote], repo_path, check=False)
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def pull_rebase(repo_path: Path) -> None:
    run_git(["pull", "--rebase"], repo_path)


def has_upstream(repo_path: Path) -> bool:
    result = run_git(["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"], repo_path, check=False)
    return result.returncode == 0


def push(repo_path: Path, set_upstream: Optional[str] = None) -> None:
    """Push the current branch, optionally setting ``set_upstream`` as its remote."""
    args = ["push"]
    if set_upstream:
        args += ["-u", set_upstream, "HEAD"]
    run_git(args, repo_path)


def status_porcelain(repo_path: Path) -> list[str]:
    """Changed paths reported by ``git status --porcelain``."""
    result = run_git(["status", "--porcelain"], repo_path)
    return [line for line in result.stdout.splitlines() if line.strip()]


def last_commit(repo_path: Path) -> Optional[str]:
    """One-line summary of HEAD, or None for a repository with no commits."""
    result = run_git(["log", "-1", "--pretty=format:%h %s (%cr)"], repo_path, check=False)
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def tracked_files(repo_path: Path, pathspec: str) -> list[str]:
    result = run_git(["ls-files", "--", pathspec], repo_path, check=False)
    return [line for line in result.stdout.splitlines() if line.strip()]

"""Commit and push the thoughts repository, then refresh the code repository view."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from . import git
from .config import ResolvedProfileConfig
from .errors import GitError
from .searchable import IndexResult, build_searchable_index
from .symlinks import get_thoughts_dir, update_symlinks_for_new_users


@dataclass
class SyncResult:
    """What a sync did."""
    committed: bool = False
    pulled: bool = False
    pushed: bool = False
    remote: Optional[str] = None
    warnings: list[str] = field(default_factory=list)
    new_users: list[str] = field(default_factory=list)
    index: IndexResult = field(default_factory=IndexResult)


def default_commit_message() -> str:
    return f"Sync thoughts - {datetime.now().isoformat(timespec='seconds')}"


def commit_and_push(thoughts_repo: Path, message: Optional[str] = None) -> SyncResult:
    """Stage everything in the thoughts repository, commit, and push.

    Nothing to commit is not an error. Pull and push failures are recorded as
    warnings on the result and the local commit is kept.
    """
    result = SyncResult()

    git.add_all(thoughts_repo)
    if git.has_staged_changes(thoughts_repo):
        git.commit(thoughts_repo, message or default_commit_message())
        result.committed = True

    result.remote = git.get_remote_url(thoughts_repo)
    if not result.remote:
        return result

    # a branch with no upstream yet is pushed and starts tracking origin
    upstream = git.has_upstream(thoughts_repo)
    if upstream:
        try:
            git.pull_rebase(thoughts_repo)
            result.pulled = True
        except GitError as e:
            result.warnings.append(
                f"Could not pull latest thoughts, resolve manually in {thoughts_repo}: {(e.stderr or '').strip() or e}"
            )
            return result

    try:
        git.push(thoughts_repo, set_upstream=None if upstream else "origin")
        result.pushed = True
    except GitError as e:
        result.warnings.append(f"Could not push to remote: {(e.stderr or '').strip() or e}")

    return result


def sync_thoughts(
    code_repo_path: Path,
    config: ResolvedProfileConfig,
    repo_name: str,
    user: str,
    message: Optional[str] = None,
    rebuild_index: bool = False,
) -> SyncResult:
    """Sync the thoughts repository and refresh a code repository's thoughts/ view.

    Runs commit/push first so that teammate links and the search index
    reflect the synced state.
    """
    result = commit_and_push(config.root, message)
    result.new_users = update_symlinks_for_new_users(code_repo_path, config, repo_name, user)
    result.index = build_searchable_index(get_thoughts_dir(code_repo_path), rebuild=rebuild_index)
    return result

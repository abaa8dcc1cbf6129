"""Symlinks from a code repository's thoughts/ directory into the thoughts repository."""

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console

from .config import GLOBAL_LINK, SHARED_DIR, THOUGHTS_DIR, ResolvedProfileConfig

console = Console()


@dataclass
class LinkResult:
    """Outcome of linking a code repository."""
    created: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)  # occupied by something that is not a symlink


def get_thoughts_dir(code_repo_path: Path) -> Path:
    return Path(code_repo_path) / THOUGHTS_DIR


def _create_link(link: Path, target: Path) -> bool:
    """Create ``link`` pointing at ``target`` unless ``link`` already exists.

    Any existing object counts, including a dangling symlink.
    """
    if os.path.lexists(link):
        return False
    try:
        os.symlink(target, link, target_is_directory=True)
    except FileExistsError:
        return False
    return True


def _report_conflict(link: Path) -> bool:
    if link.is_symlink():
        return False
    console.print(f"[yellow]Skipping {link.name}: {link} exists and is not a symlink[/yellow]")
    return True


def update_symlinks_for_new_users(
    code_repo_path: Path,
    config: ResolvedProfileConfig,
    repo_name: str,
    current_user: str,
) -> list[str]:
    """Link teammate directories that appeared since the repository was set up.

    Safe to run on every sync: entries that already exist in thoughts/ are
    left alone.

    Args:
        code_repo_path: Root of the code repository
        config: Resolved thoughts configuration
        repo_name: Directory name of this repository under reposDir
        current_user: User whose own link is managed elsewhere

    Returns:
        Names linked by this call, in directory listing order
    """
    thoughts_dir = get_thoughts_dir(code_repo_path)
    repo_thoughts_path = config.repo_thoughts_path(repo_name)

    if not thoughts_dir.is_dir() or not repo_thoughts_path.is_dir():
        return []

    added = []
    with os.scandir(repo_thoughts_path) as entries:
        for entry in entries:
            name = entry.name
            if name == SHARED_DIR or name == current_user or name.startswith("."):
                continue
            if not entry.is_dir():
                continue

            link = thoughts_dir / name
            if _create_link(link, Path(entry.path)):
                added.append(name)
            else:
                _report_conflict(link)

    return added


def link_thoughts_directory(
    code_repo_path: Path,
    config: ResolvedProfileConfig,
    repo_name: str,
    user: str,
) -> LinkResult:
    """Create thoughts/ in the code repository and link it to the thoughts repository.

    Links the user's own directory, the repo's shared directory and the global
    directory, then any teammates already present.
    """
    thoughts_dir = get_thoughts_dir(code_repo_path)
    thoughts_dir.mkdir(parents=True, exist_ok=True)

    repo_thoughts_path = config.repo_thoughts_path(repo_name)
    links = (
        (user, repo_thoughts_path / user),
        (SHARED_DIR, repo_thoughts_path / SHARED_DIR),
        (GLOBAL_LINK, config.global_thoughts_path),
    )

    result = LinkResult()
    for name, target in links:
        link = thoughts_dir / name
        if _create_link(link, target):
            result.created.append(name)
        elif _report_conflict(link):
            result.skipped.append(name)

    result.created.extend(
        update_symlinks_for_new_users(code_repo_path, config, repo_name, user)
    )
    return result


def unlink_thoughts_directory(code_repo_path: Path) -> bool:
    """Remove the code repository's thoughts/ directory.

    Symlinks are removed, never followed, so the thoughts repository is
    untouched.

    Returns:
        True if anything was removed
    """
    thoughts_dir = get_thoughts_dir(code_repo_path)
    if not os.path.lexists(thoughts_dir):
        return False

    if thoughts_dir.is_symlink() or not thoughts_dir.is_dir():
        thoughts_dir.unlink()
    else:
        shutil.rmtree(thoughts_dir)
    return True

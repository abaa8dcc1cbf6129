"""Thoughts repository bootstrap and directory layout."""

from pathlib import Path

from . import git
from .config import SHARED_DIR, ResolvedProfileConfig
from .templates import DEFAULT_GITIGNORE, GLOBAL_README, REPO_README


def ensure_thoughts_repo_exists(config: ResolvedProfileConfig) -> bool:
    """Create the thoughts repository and its top-level directories if missing.

    A git repository is initialised (with a default .gitignore) only when the
    root has no ``.git`` yet; an existing .gitignore is never rewritten.

    Returns:
        True if ``git init`` was run
    """
    root = config.root
    for path in (root, config.repos_path, config.global_thoughts_path):
        path.mkdir(parents=True, exist_ok=True)

    initialized = False
    if not (root / ".git").exists():
        git.init_repo(root)
        initialized = True

    gitignore = root / ".gitignore"
    if not gitignore.exists():
        gitignore.write_text(DEFAULT_GITIGNORE, encoding="utf-8")

    return initialized


def _write_if_absent(path: Path, content: str) -> bool:
    try:
        with path.open("x", encoding="utf-8") as handle:
            handle.write(content)
    except FileExistsError:
        return False
    return True


def create_thoughts_directory_structure(
    config: ResolvedProfileConfig,
    repo_name: str,
    user: str,
) -> list[Path]:
    """Create the per-repo and global user/shared directories.

    README placeholders are added to the repo directory and the global
    directory only where no README.md exists yet.

    Returns:
        Paths that were created by this call
    """
    repo_path = config.repo_thoughts_path(repo_name)
    global_path = config.global_thoughts_path

    created = []
    for path in (
        repo_path / user,
        repo_path / SHARED_DIR,
        global_path / user,
        global_path / SHARED_DIR,
    ):
        if not path.is_dir():
            path.mkdir(parents=True, exist_ok=True)
            created.append(path)

    readmes = (
        (repo_path / "README.md", REPO_README.format(repo_name=repo_name, user=user)),
        (global_path / "README.md", GLOBAL_README.format(user=user)),
    )
    for path, content in readmes:
        if _write_if_absent(path, content):
            created.append(path)

    return created

"""Path expansion and repository naming helpers."""

import os
import re
from pathlib import Path

# Used when a repository path has no usable final segment
UNNAMED_REPO = "unnamed_repo"


def expand_path(path: str) -> Path:
    """Expand a leading ``~`` and make the path absolute.

    ``~`` and ``~/...`` resolve against the home directory, other relative
    paths against the current working directory. Symlinks are not resolved.
    """
    if path == "~":
        return Path.home()
    if path.startswith("~/"):
        return Path.home() / path[2:]
    return Path(os.path.abspath(path))


def get_repo_name_from_path(repo_path: str) -> str:
    """Derive a repository name from the last segment of its path."""
    name = Path(repo_path).name if repo_path else ""
    return name or UNNAMED_REPO


def sanitize_directory_name(name: str) -> str:
    """Replace anything outside ``[A-Za-z0-9_-]`` with an underscore."""
    return re.sub(r"[^a-zA-Z0-9_-]", "_", name)


def contract_home(path: str) -> str:
    """Abbreviate the home directory prefix of ``path`` to ``~``."""
    home = str(Path.home())
    if path == home:
        return "~"
    if path.startswith(home + os.sep):
        return "~" + path[len(home):]
    return path

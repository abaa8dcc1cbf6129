"""Git hooks installed into code repositories.

pre-commit refuses commits that stage anything under thoughts/, post-commit
kicks off a background ``thoughts sync``. Both carry a version marker so a
newer release can upgrade them in place, and both chain to a ``<hook>.old``
backup of whatever hook was there before.
"""

import os
import re
import stat
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from . import git

# Bump when a template changes so installed hooks get rewritten
HOOK_VERSION = 1

HOOK_MARKER = "# thoughts-cli:"
VERSION_PATTERN = re.compile(r"^# Version: (\d+)\s*$", re.MULTILINE)

PRE_COMMIT_HOOK = """#!/bin/bash
# thoughts-cli: keep the thoughts directory out of the code repository
# Version: {version}

if git diff --cached --name-only | grep -q "^thoughts/"; then
    echo "❌ Cannot commit thoughts/ to code repository"
    echo "The thoughts directory should only exist in your separate thoughts repository."
    git reset HEAD -- thoughts/ >/dev/null 2>&1
    exit 1
fi

# Call any existing pre-commit hook
if [ -x "$(dirname "$0")/pre-commit.old" ]; then
    "$(dirname "$0")/pre-commit.old" "$@"
fi
"""

POST_COMMIT_HOOK = """#!/bin/bash
# thoughts-cli: auto-sync thoughts after each commit
# Version: {version}

# Check if we're in a worktree
if [ -f .git ]; then
    # Skip auto-sync in worktrees to avoid repository boundary confusion
    exit 0
fi

# Get the commit message
COMMIT_MSG=$(git log -1 --pretty=%B)

# Sync in the background, a failed sync never fails the commit
if command -v thoughts >/dev/null 2>&1; then
    (thoughts sync --message "Auto-sync with commit: $COMMIT_MSG" >/dev/null 2>&1 &)
fi

# Call any existing post-commit hook
if [ -x "$(dirname "$0")/post-commit.old" ]; then
    "$(dirname "$0")/post-commit.old" "$@"
fi

exit 0
"""

HOOK_TEMPLATES = {
    "pre-commit": PRE_COMMIT_HOOK,
    "post-commit": POST_COMMIT_HOOK,
}


class HookState(Enum):
    ABSENT = "absent"
    CURRENT = "current"
    STALE = "stale"
    FOREIGN = "foreign"


@dataclass
class HookSetupResult:
    """Hooks written by setup_git_hooks."""
    updated: list[str] = field(default_factory=list)
    backed_up: list[str] = field(default_factory=list)


def get_hook_version(content: str) -> int:
    match = VERSION_PATTERN.search(content)
    return int(match.group(1)) if match else 0


def classify_hook(content: Optional[str]) -> HookState:
    """Work out whether an existing hook is ours and whether it is current."""
    if content is None:
        return HookState.ABSENT
    if HOOK_MARKER not in content:
        return HookState.FOREIGN
    if get_hook_version(content) < HOOK_VERSION:
        return HookState.STALE
    return HookState.CURRENT


def render_hook(name: str) -> str:
    return HOOK_TEMPLATES[name].format(version=HOOK_VERSION)


def get_hooks_dir(repo_path: Path) -> Path:
    return git.get_common_dir(Path(repo_path)) / "hooks"


def _make_executable(path: Path) -> None:
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def _read_hook(path: Path) -> Optional[str]:
    if not os.path.lexists(path):
        return None
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        # dangling symlink
        return ""


def get_hook_states(repo_path: Path) -> dict[str, HookState]:
    hooks_dir = get_hooks_dir(repo_path)
    return {name: classify_hook(_read_hook(hooks_dir / name)) for name in HOOK_TEMPLATES}


def setup_git_hooks(repo_path: Path) -> HookSetupResult:
    """Install or upgrade the thoughts hooks in a code repository.

    Hooks already at the current version are left alone, so running this
    twice reports nothing updated the second time. A hook that is not ours is
    moved to ``<hook>.old`` (keeping its mode) before ours replaces it.
    """
    hooks_dir = get_hooks_dir(repo_path)
    hooks_dir.mkdir(parents=True, exist_ok=True)

    result = HookSetupResult()
    for name in HOOK_TEMPLATES:
        hook_path = hooks_dir / name
        state = classify_hook(_read_hook(hook_path))

        if state is HookState.CURRENT:
            continue

        if state is HookState.FOREIGN:
            os.replace(hook_path, hooks_dir / f"{name}.old")
            result.backed_up.append(name)

        hook_path.write_text(render_hook(name), encoding="utf-8")
        _make_executable(hook_path)
        result.updated.append(name)

    return result

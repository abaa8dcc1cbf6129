"""Exceptions raised by thoughts operations."""

from typing import Optional


class ThoughtsError(RuntimeError):
    """Base class for errors surfaced to the user."""


class ConfigNotFound(ThoughtsError):
    """Raised when no thoughts configuration can be resolved."""


class ProfileNotFound(ConfigNotFound):
    """Raised when a named profile does not exist."""

    def __init__(self, name: str):
        super().__init__(f'Profile "{name}" does not exist')
        self.name = name


class ProfileExists(ThoughtsError):
    """Raised when creating a profile whose name is already taken."""

    def __init__(self, name: str):
        super().__init__(f'Profile "{name}" already exists')
        self.name = name


class ProfileInUse(ThoughtsError):
    """Raised when deleting a profile that repo mappings still reference."""

    def __init__(self, name: str, repos: list[str]):
        super().__init__(
            f'Profile "{name}" is used by {len(repos)} repository mapping(s)'
        )
        self.name = name
        self.repos = repos


class NotAGitRepository(ThoughtsError):
    """Raised when a command needs a git work tree and there is none."""


class InvalidName(ThoughtsError):
    """Raised for empty or reserved user, directory and profile names."""


class GitError(ThoughtsError):
    """Raised when a git invocation exits non-zero."""

    def __init__(self, args: list[str], stderr: Optional[str] = None):
        message = f"git {' '.join(args)} failed"
        if stderr:
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)
        self.git_args = args
        self.stderr = stderr or ""

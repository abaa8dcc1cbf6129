"""Configuration file handling and thoughts settings."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from rich.console import Console

from .errors import InvalidName
from .paths import expand_path

console = Console()
err_console = Console(stderr=True)

# Defaults offered by `thoughts init`
DEFAULT_THOUGHTS_REPO = "~/thoughts"
DEFAULT_REPOS_DIR = "repos"
DEFAULT_GLOBAL_DIR = "global"

# Config lookup: ./thoughts.json first, then $XDG_CONFIG_HOME/thoughts/config.json
LOCAL_CONFIG_FILE = "thoughts.json"
CONFIG_DIR_NAME = "thoughts"
CONFIG_FILE_NAME = "config.json"

# Entries inside a code repository's thoughts/ directory
THOUGHTS_DIR = "thoughts"
SHARED_DIR = "shared"
GLOBAL_LINK = "global"
SEARCHABLE_DIR = "searchable"

# A user directory with one of these names would collide with the links above
RESERVED_USER_NAMES = {SHARED_DIR, GLOBAL_LINK, SEARCHABLE_DIR}


def get_default_config_path() -> Path:
    """Return the per-user config file path, honouring XDG_CONFIG_HOME."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(config_home) if config_home else Path.home() / ".config"
    return base / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def get_default_thoughts_repo() -> Path:
    """Default location of the thoughts repository."""
    return expand_path(DEFAULT_THOUGHTS_REPO)


def find_config_path(config_file: Optional[Path] = None) -> Path:
    """The config file that is (or would be) used."""
    if config_file:
        return Path(config_file)
    local = Path.cwd() / LOCAL_CONFIG_FILE
    if local.exists():
        return local
    return get_default_config_path()


def _warn(message: str) -> None:
    err_console.print(f"[yellow]Warning: {message}[/yellow]")


def _entries(data: dict, key: str) -> dict:
    """The object stored under ``key``, or {} with a warning if it is not one."""
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        _warn(f"Ignoring {key} in config: expected a JSON object")
        return {}
    return value


def _read_json(path: Path) -> Optional[dict]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        err_console.print(f"[yellow]Warning: Could not parse config file {path}: {e}[/yellow]")
        return None

    if not isinstance(data, dict):
        err_console.print(f"[yellow]Warning: Config file {path} does not contain a JSON object[/yellow]")
        return None
    return data


def load_config_file(config_file: Optional[Path] = None) -> dict:
    """Load the raw config mapping.

    Args:
        config_file: Explicit config path. When omitted the local
            ``thoughts.json`` and then the per-user config are tried.

    Returns:
        The parsed mapping, or an empty dict if nothing usable was found.
    """
    if config_file:
        return _read_json(Path(config_file)) or {}

    # these do not merge, first existing file wins
    for candidate in (Path.cwd() / LOCAL_CONFIG_FILE, get_default_config_path()):
        if candidate.exists():
            data = _read_json(candidate)
            if data is not None:
                return data

    return {}


def save_config_file(data: dict, config_file: Optional[Path] = None) -> Path:
    """Write the config mapping as indented JSON and return the path used."""
    path = Path(config_file) if config_file else get_default_config_path()
    console.print(f"[dim]Writing config to {path}[/dim]")

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


def validate_dir_name(value: str, label: str) -> str:
    """Ensure ``value`` is a single relative path segment."""
    if (
        not value
        or value in (".", "..")
        or os.path.isabs(value)
        or "/" in value
        or os.sep in value
    ):
        raise InvalidName(f"{label} must be a single directory name, got {value!r}")
    return value


@dataclass(frozen=True)
class ResolvedProfileConfig:
    """Effective thoughts settings for one invocation."""
    thoughts_repo: str  # may start with ~
    repos_dir: str
    global_dir: str
    profile_name: Optional[str] = None

    def __post_init__(self):
        validate_dir_name(self.repos_dir, "reposDir")
        validate_dir_name(self.global_dir, "globalDir")

    @property
    def root(self) -> Path:
        return expand_path(self.thoughts_repo)

    @property
    def repos_path(self) -> Path:
        return self.root / self.repos_dir

    @property
    def global_thoughts_path(self) -> Path:
        return self.root / self.global_dir

    def repo_thoughts_path(self, repo_name: str) -> Path:
        return self.repos_path / repo_name


@dataclass
class ProfileConfig:
    """A named, stored thoughts repository configuration."""
    thoughts_repo: str
    repos_dir: str
    global_dir: str

    @classmethod
    def from_dict(cls, data: dict) -> Optional["ProfileConfig"]:
        """Build from a stored profile, or None if it is malformed."""
        if not isinstance(data, dict):
            return None
        values = [data.get(key) for key in ("thoughtsRepo", "reposDir", "globalDir")]
        if not all(isinstance(value, str) and value for value in values):
            return None
        return cls(*values)

    def to_dict(self) -> dict:
        return {
            "thoughtsRepo": self.thoughts_repo,
            "reposDir": self.repos_dir,
            "globalDir": self.global_dir,
        }


@dataclass
class RepoMapping:
    """Mapping from a code repository to its directory under reposDir."""
    repo: str
    profile: Optional[str] = None

    @classmethod
    def from_value(cls, value: Union[str, dict]) -> Optional["RepoMapping"]:
        """Build from either stored form, or None if ``value`` is malformed."""
        # Legacy configs store the bare directory name
        if isinstance(value, str):
            return cls(repo=value) if value else None
        if not isinstance(value, dict):
            return None

        repo = value.get("repo")
        profile = value.get("profile")
        if not isinstance(repo, str) or not repo:
            return None
        if profile is not None and not isinstance(profile, str):
            return None
        return cls(repo=repo, profile=profile or None)

    def to_value(self) -> Union[str, dict]:
        if self.profile:
            return {"repo": self.repo, "profile": self.profile}
        return self.repo


@dataclass
class ThoughtsConfig:
    """The thoughts section of the config file."""
    thoughts_repo: str
    repos_dir: str
    global_dir: str
    user: str
    repo_mappings: dict[str, RepoMapping] = field(default_factory=dict)
    profiles: dict[str, ProfileConfig] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> Optional["ThoughtsConfig"]:
        """Build from the raw mapping, or None if the base settings are missing.

        Malformed repo mappings and profiles are skipped with a warning so one
        bad entry does not make the whole file unusable.
        """
        required = ("thoughtsRepo", "reposDir", "globalDir", "user")
        if not all(isinstance(data.get(key), str) and data.get(key) for key in required):
            return None

        mappings = {}
        for path, value in _entries(data, "repoMappings").items():
            mapping = RepoMapping.from_value(value)
            if mapping is None:
                _warn(f"Ignoring malformed repoMappings entry for {path}")
                continue
            mappings[path] = mapping

        profiles = {}
        for name, value in _entries(data, "profiles").items():
            profile = ProfileConfig.from_dict(value)
            if profile is None:
                _warn(f'Ignoring malformed profile "{name}" (needs thoughtsRepo, reposDir and globalDir)')
                continue
            profiles[name] = profile

        return cls(
            thoughts_repo=data["thoughtsRepo"],
            repos_dir=data["reposDir"],
            global_dir=data["globalDir"],
            user=data["user"],
            repo_mappings=mappings,
            profiles=profiles,
        )

    def to_dict(self) -> dict:
        data = {
            "thoughtsRepo": self.thoughts_repo,
            "reposDir": self.repos_dir,
            "globalDir": self.global_dir,
            "user": self.user,
            "repoMappings": {
                path: mapping.to_value() for path, mapping in self.repo_mappings.items()
            },
        }
        if self.profiles:
            data["profiles"] = {name: p.to_dict() for name, p in self.profiles.items()}
        return data

    @property
    def default_profile(self) -> ResolvedProfileConfig:
        """The top-level settings as a resolved configuration."""
        return ResolvedProfileConfig(
            thoughts_repo=self.thoughts_repo,
            repos_dir=self.repos_dir,
            global_dir=self.global_dir,
        )


def save_thoughts_config(config: ThoughtsConfig, config_file: Optional[Path] = None) -> Path:
    """Persist ``config``, keeping unrelated keys already in the file."""
    path = find_config_path(config_file)
    data = (_read_json(path) or {}) if path.exists() else {}
    data.update(config.to_dict())
    if not config.profiles:
        data.pop("profiles", None)
    return save_config_file(data, path)

"""Profile resolution and repository mapping management.

The effective configuration for a code repository is chosen in this order:

1. an explicit profile name (``--profile``)
2. the profile stored on the repository's mapping entry
3. the top-level settings

A profile reference that cannot be found is an error in both of the first two
cases; it never falls back to the top-level settings.
"""

from typing import Optional

from .config import RESERVED_USER_NAMES, ProfileConfig, RepoMapping, ResolvedProfileConfig, ThoughtsConfig
from .errors import ConfigNotFound, InvalidName, ProfileExists, ProfileInUse, ProfileNotFound
from .paths import sanitize_directory_name


def require_thoughts_config(data: dict) -> ThoughtsConfig:
    """Parse the raw config mapping or raise ConfigNotFound."""
    config = ThoughtsConfig.from_dict(data)
    if config is None:
        raise ConfigNotFound("Thoughts not configured. Run 'thoughts init' first.")
    return config


def get_repo_mapping(config: ThoughtsConfig, repo_path: str) -> Optional[RepoMapping]:
    return config.repo_mappings.get(str(repo_path))


def get_repo_name_for_mapping(config: ThoughtsConfig, repo_path: str) -> Optional[str]:
    """Directory name under reposDir that ``repo_path`` is mapped to."""
    mapping = get_repo_mapping(config, repo_path)
    return mapping.repo if mapping else None


def get_profile(config: ThoughtsConfig, name: str) -> ResolvedProfileConfig:
    """Look up a stored profile by name."""
    profile = config.profiles.get(name)
    if profile is None:
        raise ProfileNotFound(name)
    return ResolvedProfileConfig(
        thoughts_repo=profile.thoughts_repo,
        repos_dir=profile.repos_dir,
        global_dir=profile.global_dir,
        profile_name=name,
    )


def resolve_profile_for_repo(
    config: ThoughtsConfig,
    repo_path: str,
    profile_name: Optional[str] = None,
) -> ResolvedProfileConfig:
    """Resolve the effective configuration for a code repository.

    Args:
        config: Parsed thoughts configuration
        repo_path: Absolute path of the code repository
        profile_name: Explicit profile, overriding any mapping

    Returns:
        The resolved configuration

    Raises:
        ProfileNotFound: If the explicit or mapped profile does not exist
    """
    if profile_name:
        return get_profile(config, profile_name)

    mapping = get_repo_mapping(config, repo_path)
    if mapping and mapping.profile:
        return get_profile(config, mapping.profile)

    return config.default_profile


def set_repo_mapping(
    config: ThoughtsConfig,
    repo_path: str,
    repo_name: str,
    profile_name: Optional[str] = None,
) -> RepoMapping:
    if profile_name and profile_name not in config.profiles:
        raise ProfileNotFound(profile_name)
    mapping = RepoMapping(repo=repo_name, profile=profile_name)
    config.repo_mappings[str(repo_path)] = mapping
    return mapping


def remove_repo_mapping(config: ThoughtsConfig, repo_path: str) -> Optional[RepoMapping]:
    return config.repo_mappings.pop(str(repo_path), None)


def repos_using_profile(config: ThoughtsConfig, name: str) -> list[str]:
    """Code repository paths whose mapping references profile ``name``."""
    return [
        path for path, mapping in config.repo_mappings.items()
        if mapping.profile == name
    ]


def validate_profile_name(name: str) -> str:
    if not name or sanitize_directory_name(name) != name:
        raise InvalidName(
            f"Invalid profile name {name!r}: use only letters, numbers, dashes and underscores"
        )
    return name


def validate_user_name(user: str) -> str:
    if not user or not user.strip():
        raise InvalidName("User name cannot be empty")
    if user.lower() in RESERVED_USER_NAMES:
        raise InvalidName(f'"{user}" is reserved and cannot be used as a user name')
    if sanitize_directory_name(user) != user:
        raise InvalidName(
            f"Invalid user name {user!r}: use only letters, numbers, dashes and underscores"
        )
    return user


def create_profile(config: ThoughtsConfig, name: str, profile: ProfileConfig) -> ResolvedProfileConfig:
    """Add a new profile to ``config`` and return it resolved."""
    validate_profile_name(name)
    if name in config.profiles:
        raise ProfileExists(name)

    # constructing the resolved form validates the directory names
    resolved = ResolvedProfileConfig(
        thoughts_repo=profile.thoughts_repo,
        repos_dir=profile.repos_dir,
        global_dir=profile.global_dir,
        profile_name=name,
    )
    config.profiles[name] = profile
    return resolved


def delete_profile(config: ThoughtsConfig, name: str, force: bool = False) -> list[str]:
    """Remove a profile from ``config``.

    Returns:
        Repository paths that still reference the profile (only non-empty
        when ``force`` is set)

    Raises:
        ProfileNotFound: If the profile does not exist
        ProfileInUse: If mappings reference it and ``force`` is not set
    """
    if name not in config.profiles:
        raise ProfileNotFound(name)

    users = repos_using_profile(config, name)
    if users and not force:
        raise ProfileInUse(name, users)

    del config.profiles[name]
    return users

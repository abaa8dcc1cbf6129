"""Tests for profile resolution and profile management."""

import pytest

from thoughts_cli.config import ProfileConfig, ResolvedProfileConfig, ThoughtsConfig
from thoughts_cli.errors import ConfigNotFound, InvalidName, ProfileExists, ProfileInUse, ProfileNotFound
from thoughts_cli.profiles import (
    create_profile,
    delete_profile,
    get_repo_name_for_mapping,
    remove_repo_mapping,
    repos_using_profile,
    require_thoughts_config,
    resolve_profile_for_repo,
    set_repo_mapping,
    validate_profile_name,
    validate_user_name,
)


@pytest.fixture
def config():
    return ThoughtsConfig.from_dict({
        "thoughtsRepo": "~/thoughts",
        "reposDir": "repos",
        "globalDir": "global",
        "user": "alice",
        "repoMappings": {
            "/code/plain": "plain",
            "/code/work": {"repo": "work-app", "profile": "work"},
            "/code/orphan": {"repo": "orphan", "profile": "deleted"},
        },
        "profiles": {
            "work": {"thoughtsRepo": "~/work-thoughts", "reposDir": "projects", "globalDir": "common"},
            "spare": {"thoughtsRepo": "/srv/spare", "reposDir": "repos", "globalDir": "global"},
        },
    })


class TestRequireConfig:
    def test_missing_config_raises(self):
        with pytest.raises(ConfigNotFound):
            require_thoughts_config({})

    def test_returns_parsed_config(self, config):
        assert require_thoughts_config(config.to_dict()).user == "alice"


class TestResolveProfile:
    def test_unmapped_repo_uses_global_settings(self, config):
        resolved = resolve_profile_for_repo(config, "/code/unknown")
        assert resolved == ResolvedProfileConfig("~/thoughts", "repos", "global")

    def test_legacy_mapping_uses_global_settings(self, config):
        assert resolve_profile_for_repo(config, "/code/plain").profile_name is None

    def test_mapping_profile_wins_over_global(self, config):
        resolved = resolve_profile_for_repo(config, "/code/work")
        assert resolved == ResolvedProfileConfig("~/work-thoughts", "projects", "common", "work")

    def test_explicit_profile_wins_over_mapping(self, config):
        resolved = resolve_profile_for_repo(config, "/code/work", profile_name="spare")
        assert resolved.thoughts_repo == "/srv/spare"
        assert resolved.profile_name == "spare"

    def test_unknown_explicit_profile(self, config):
        with pytest.raises(ProfileNotFound) as exc:
            resolve_profile_for_repo(config, "/code/plain", profile_name="nope")
        assert exc.value.name == "nope"

    def test_mapping_to_deleted_profile_does_not_fall_back(self, config):
        with pytest.raises(ProfileNotFound):
            resolve_profile_for_repo(config, "/code/orphan")

    def test_profile_not_found_is_config_not_found(self, config):
        with pytest.raises(ConfigNotFound):
            resolve_profile_for_repo(config, "/code/orphan")


class TestMappings:
    def test_set_and_remove(self, config):
        set_repo_mapping(config, "/code/new", "new-app", "work")
        assert get_repo_name_for_mapping(config, "/code/new") == "new-app"
        assert "/code/new" in repos_using_profile(config, "work")

        removed = remove_repo_mapping(config, "/code/new")
        assert removed.repo == "new-app"
        assert get_repo_name_for_mapping(config, "/code/new") is None

    def test_set_with_unknown_profile(self, config):
        with pytest.raises(ProfileNotFound):
            set_repo_mapping(config, "/code/new", "new-app", "nope")


class TestCreateProfile:
    def test_create(self, config):
        resolved = create_profile(config, "personal", ProfileConfig("~/personal", "repos", "global"))
        assert resolved.profile_name == "personal"
        assert "personal" in config.profiles

    def test_duplicate_refused(self, config):
        with pytest.raises(ProfileExists):
            create_profile(config, "work", ProfileConfig("~/x", "repos", "global"))

    def test_invalid_name(self, config):
        with pytest.raises(InvalidName):
            create_profile(config, "bad name", ProfileConfig("~/x", "repos", "global"))

    def test_invalid_directory_not_stored(self, config):
        with pytest.raises(InvalidName):
            create_profile(config, "broken", ProfileConfig("~/x", "/abs", "global"))
        assert "broken" not in config.profiles


class TestDeleteProfile:
    def test_in_use_refused(self, config):
        with pytest.raises(ProfileInUse) as exc:
            delete_profile(config, "work")
        assert exc.value.repos == ["/code/work"]
        assert "work" in config.profiles

    def test_force_deletes_and_reports_users(self, config):
        assert delete_profile(config, "work", force=True) == ["/code/work"]
        assert "work" not in config.profiles

    def test_unused_profile(self, config):
        assert delete_profile(config, "spare") == []
        assert "spare" not in config.profiles

    def test_missing_profile(self, config):
        with pytest.raises(ProfileNotFound):
            delete_profile(config, "nope")


class TestNameValidation:
    @pytest.mark.parametrize("name", ["global", "shared", "searchable", "Global", "", "a b"])
    def test_rejected_user_names(self, name):
        with pytest.raises(InvalidName):
            validate_user_name(name)

    def test_valid_user_name(self):
        assert validate_user_name("alice") == "alice"

    def test_profile_names(self):
        assert validate_profile_name("work_2") == "work_2"
        with pytest.raises(InvalidName):
            validate_profile_name("work/2")

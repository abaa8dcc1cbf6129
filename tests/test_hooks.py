"""Tests for git hook installation in code repositories."""

import os
import subprocess
import time

import pytest

from thoughts_cli.hooks import (
    HOOK_MARKER,
    HOOK_VERSION,
    HookState,
    classify_hook,
    get_hook_states,
    get_hooks_dir,
    get_hook_version,
    render_hook,
    setup_git_hooks,
)


class TestClassifyHook:
    def test_absent(self):
        assert classify_hook(None) is HookState.ABSENT

    def test_foreign(self):
        assert classify_hook("#!/bin/sh\necho hi\n") is HookState.FOREIGN

    def test_empty_is_foreign(self):
        assert classify_hook("") is HookState.FOREIGN

    def test_stale(self):
        assert classify_hook(f"#!/bin/bash\n{HOOK_MARKER} old\n# Version: 0\n") is HookState.STALE

    def test_marker_without_version_is_stale(self):
        assert classify_hook(f"#!/bin/bash\n{HOOK_MARKER} old\n") is HookState.STALE

    def test_current(self):
        assert classify_hook(render_hook("pre-commit")) is HookState.CURRENT

    def test_version_parsing(self):
        assert get_hook_version("# Version: 12\n") == 12
        assert get_hook_version("nothing here") == 0


class TestSetupGitHooks:
    def test_installs_both_hooks(self, code_repo):
        result = setup_git_hooks(code_repo)

        assert result.updated == ["pre-commit", "post-commit"]
        assert result.backed_up == []
        hooks_dir = code_repo / ".git" / "hooks"
        for name in ("pre-commit", "post-commit"):
            hook = hooks_dir / name
            assert os.access(hook, os.X_OK)
            assert f"# Version: {HOOK_VERSION}" in hook.read_text()

    def test_second_run_is_noop(self, code_repo):
        setup_git_hooks(code_repo)
        result = setup_git_hooks(code_repo)
        assert result.updated == []
        assert not (code_repo / ".git" / "hooks" / "pre-commit.old").exists()

    def test_foreign_hook_backed_up(self, code_repo):
        hooks_dir = code_repo / ".git" / "hooks"
        hooks_dir.mkdir(exist_ok=True)
        original = "#!/bin/sh\necho custom\n"
        (hooks_dir / "pre-commit").write_text(original)
        (hooks_dir / "pre-commit").chmod(0o755)

        result = setup_git_hooks(code_repo)

        assert result.backed_up == ["pre-commit"]
        backup = hooks_dir / "pre-commit.old"
        assert backup.read_text() == original
        assert os.access(backup, os.X_OK)
        assert HOOK_MARKER in (hooks_dir / "pre-commit").read_text()

    def test_stale_hook_upgraded_in_place(self, code_repo):
        hooks_dir = code_repo / ".git" / "hooks"
        hooks_dir.mkdir(exist_ok=True)
        (hooks_dir / "post-commit").write_text(f"#!/bin/bash\n{HOOK_MARKER} auto-sync\n# Version: 0\n")

        result = setup_git_hooks(code_repo)

        assert "post-commit" in result.updated
        assert result.backed_up == []
        assert not (hooks_dir / "post-commit.old").exists()
        assert get_hook_version((hooks_dir / "post-commit").read_text()) == HOOK_VERSION

    def test_hook_states(self, code_repo):
        states = get_hook_states(code_repo)
        assert states == {"pre-commit": HookState.ABSENT, "post-commit": HookState.ABSENT}

        setup_git_hooks(code_repo)
        states = get_hook_states(code_repo)
        assert set(states.values()) == {HookState.CURRENT}

    def test_worktree_uses_common_hooks_dir(self, code_repo, run_git, tmp_path):
        (code_repo / "README.md").write_text("hello")
        run_git(code_repo, "add", "README.md")
        run_git(code_repo, "commit", "-m", "initial")
        worktree = tmp_path / "worktree"
        run_git(code_repo, "worktree", "add", str(worktree))

        assert get_hooks_dir(worktree).resolve() == (code_repo / ".git" / "hooks").resolve()


class TestHookBehaviour:
    def test_post_commit_skips_worktrees(self):
        assert "if [ -f .git ]" in render_hook("post-commit")

    def test_post_commit_syncs_in_background(self):
        script = render_hook("post-commit")
        assert "thoughts sync --message" in script
        assert "&)" in script

    @pytest.mark.parametrize("name", ["pre-commit", "post-commit"])
    def test_chains_to_backup(self, name):
        assert f"{name}.old" in render_hook(name)

    def test_pre_commit_blocks_thoughts(self, code_repo, run_git):
        setup_git_hooks(code_repo)
        (code_repo / "thoughts").mkdir()
        (code_repo / "thoughts" / "x.md").write_text("secret plans")
        run_git(code_repo, "add", "-f", "thoughts/x.md")

        result = subprocess.run(
            ["git", "commit", "-m", "leak"], cwd=code_repo, capture_output=True, text=True,
        )

        assert result.returncode != 0
        assert "Cannot commit thoughts/" in result.stdout + result.stderr


def wait_for(path, timeout=5.0):
    """Poll for a non-empty file written by a background hook process."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if path.exists() and path.read_text():
            return True
        time.sleep(0.05)
    return path.exists() and bool(path.read_text())


@pytest.fixture
def failing_thoughts(tmp_path, monkeypatch):
    """Put a ``thoughts`` on PATH that records its arguments and then fails."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    marker = tmp_path / "thoughts-called"
    script = bin_dir / "thoughts"
    script.write_text(f'#!/bin/sh\necho "$@" >> "{marker}"\nexit 1\n')
    script.chmod(0o755)
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ['PATH']}")
    return marker


class TestPostCommitRuns:
    def test_failed_sync_does_not_fail_commit(self, code_repo, run_git, failing_thoughts):
        setup_git_hooks(code_repo)
        (code_repo / "README.md").write_text("hello")
        run_git(code_repo, "add", "README.md")

        result = subprocess.run(
            ["git", "commit", "-m", "first commit"], cwd=code_repo, capture_output=True, text=True,
        )

        assert result.returncode == 0, result.stderr
        assert wait_for(failing_thoughts)
        assert "Auto-sync with commit: first commit" in failing_thoughts.read_text()

    def test_worktree_commit_skips_sync(self, code_repo, run_git, failing_thoughts, tmp_path):
        setup_git_hooks(code_repo)
        (code_repo / "README.md").write_text("hello")
        run_git(code_repo, "add", "README.md")
        run_git(code_repo, "commit", "-m", "initial")
        assert wait_for(failing_thoughts)
        failing_thoughts.unlink()

        worktree = tmp_path / "worktree"
        run_git(code_repo, "worktree", "add", str(worktree))
        (worktree / "feature.md").write_text("feature")
        run_git(worktree, "add", "feature.md")
        result = subprocess.run(
            ["git", "commit", "-m", "in worktree"], cwd=worktree, capture_output=True, text=True,
        )

        assert result.returncode == 0, result.stderr
        assert not wait_for(failing_thoughts, timeout=1.0)

"""Tests for branch name validation and worktree path resolution"""
import os

import pytest

from git_worktree_cli.config import Config
from git_worktree_cli.services.paths import (
    resolve_worktree_name,
    resolve_worktree_path,
    validate_branch_name,
)


class TestResolveWorktreeName:
    """Test directory names derived from branch names."""

    def test_slashes_become_dashes(self):
        assert resolve_worktree_name("feature/auth") == "feature-auth"
        assert resolve_worktree_name("a/b/c") == "a-b-c"

    def test_same_leaf_different_prefix_do_not_collide(self):
        assert resolve_worktree_name("feature/auth") != resolve_worktree_name("hotfix/auth")

    def test_plain_name_unchanged(self):
        assert resolve_worktree_name("main") == "main"


class TestValidateBranchName:
    """Test branch name validation."""

    @pytest.mark.parametrize("name", ["main", "feature/auth", "release/v1.0.0"])
    def test_accepts_common_names(self, name):
        result = validate_branch_name(name)
        assert result.is_valid
        assert result.error is None

    @pytest.mark.parametrize(
        "name",
        ["", "   ", "has space", "tab\there", "a~b", "a^b", "a:b", "a?b", "a*b", "a[b", "a]b", "a\\b"],
    )
    def test_rejects_invalid_characters_and_empty(self, name):
        result = validate_branch_name(name)
        assert not result.is_valid
        assert result.error

    def test_rejects_double_dot(self):
        result = validate_branch_name("feature..x")
        assert not result.is_valid
        assert ".." in result.error

    def test_rejects_lock_suffix(self):
        result = validate_branch_name("feature.lock")
        assert not result.is_valid
        assert ".lock" in result.error

    def test_none_is_empty(self):
        assert not validate_branch_name(None).is_valid


class TestResolveWorktreePath:
    """Test the path priority chain."""

    def test_custom_path_wins(self, temp_dir):
        config = Config(default_worktree_path=str(temp_dir / "global"), worktree_subfolder=True)
        path = resolve_worktree_path(
            "feature/x", config, cwd=str(temp_dir / "app"), custom_path="relative/dir",
            repo_name=lambda: "app",
        )
        assert path == os.path.abspath("relative/dir")

    def test_global_root_with_namespace(self, temp_dir):
        config = Config(default_worktree_path=str(temp_dir / "global"))
        path = resolve_worktree_path("feature/x", config, cwd=str(temp_dir / "app"), repo_name=lambda: "my-app")
        assert path == str(temp_dir / "global" / "my-app" / "feature-x")

    def test_global_root_without_namespace(self, temp_dir):
        config = Config(default_worktree_path=str(temp_dir / "global"))
        path = resolve_worktree_path(
            "feature/x", config, cwd=str(temp_dir / "app"), use_repo_namespace=False
        )
        assert path == str(temp_dir / "global" / "feature-x")

    def test_subfolder_mode(self, temp_dir):
        config = Config(worktree_subfolder=True)
        path = resolve_worktree_path("feature/x", config, cwd=str(temp_dir / "app"))
        assert path == str(temp_dir / "app-worktrees" / "feature-x")

    def test_sibling_default(self, temp_dir):
        path = resolve_worktree_path("feature/x", Config(), cwd=str(temp_dir / "app"))
        assert path == str(temp_dir / "app-feature-x")

    def test_repo_name_only_queried_for_global_root(self, temp_dir):
        def fail():
            raise AssertionError("repo name should not be needed")

        path = resolve_worktree_path("main", Config(), cwd=str(temp_dir / "app"), repo_name=fail)
        assert path == str(temp_dir / "app-main")

"""Tests for AtomicWorktreeOperation"""
import os
from unittest.mock import patch

import pytest

from git_worktree_cli.core.atomic import AtomicWorktreeOperation
from git_worktree_cli.exceptions import ExternalCommandError, GitOperationError
from conftest import worktree_branches


class TestRollbackOrdering:
    """Test the rollback stack without touching git."""

    def test_rollback_runs_newest_first(self, repo_path):
        calls = []
        atomic = AtomicWorktreeOperation(str(repo_path))
        for name in ("first", "second", "third"):
            atomic.execute(lambda: None, lambda name=name: calls.append(name))

        atomic.rollback()

        assert calls == ["third", "second", "first"]
        assert atomic.pending == 0

    def test_failed_action_registers_no_rollback(self, repo_path):
        calls = []
        atomic = AtomicWorktreeOperation(str(repo_path))

        def boom():
            raise RuntimeError("step failed")

        with pytest.raises(RuntimeError):
            atomic.execute(boom, lambda: calls.append("undo"))

        assert atomic.pending == 0
        atomic.rollback()
        assert calls == []

    def test_failing_rollback_step_does_not_stop_the_rest(self, repo_path):
        calls = []
        atomic = AtomicWorktreeOperation(str(repo_path))

        def broken_undo():
            raise RuntimeError("undo failed")

        atomic.execute(lambda: None, lambda: calls.append("first"))
        atomic.execute(lambda: None, broken_undo)
        atomic.execute(lambda: None, lambda: calls.append("third"))

        atomic.rollback()

        assert calls == ["third", "first"]

    def test_rollback_after_commit_is_noop(self, repo_path):
        calls = []
        atomic = AtomicWorktreeOperation(str(repo_path))
        atomic.execute(lambda: None, lambda: calls.append("undo"))

        atomic.commit()
        atomic.rollback()
        atomic.rollback()

        assert calls == []
        assert atomic.committed

    def test_context_manager_rolls_back_on_error(self, repo_path):
        calls = []
        with pytest.raises(ValueError):
            with AtomicWorktreeOperation(str(repo_path)) as atomic:
                atomic.execute(lambda: None, lambda: calls.append("undo"))
                raise ValueError("later step failed")

        assert calls == ["undo"]

    def test_context_manager_commits_on_success(self, repo_path):
        calls = []
        with AtomicWorktreeOperation(str(repo_path)) as atomic:
            atomic.execute(lambda: None, lambda: calls.append("undo"))

        assert atomic.committed
        assert calls == []


class TestCreateWorktreeRollback:
    """Test worktree creation and its rollback against a real repository."""

    def test_rollback_removes_worktree_directory_and_new_branch(self, git_repo, repo_path, temp_dir):
        target = temp_dir / "wt-rollback"
        atomic = AtomicWorktreeOperation(str(repo_path))

        atomic.create_worktree(str(target), "feature/rollback", create_branch=True)
        assert (target / ".git").is_file()
        assert "feature/rollback" in worktree_branches(git_repo)

        atomic.rollback()

        assert not target.exists()
        assert "feature/rollback" not in worktree_branches(git_repo)
        assert "feature/rollback" not in [h.name for h in git_repo.heads]

    def test_rollback_keeps_existing_branch(self, git_repo, repo_path, temp_dir):
        git_repo.git.branch("existing")
        target = temp_dir / "wt-existing"
        atomic = AtomicWorktreeOperation(str(repo_path))

        atomic.create_worktree(str(target), "existing")
        atomic.rollback()

        assert not target.exists()
        assert "existing" in [h.name for h in git_repo.heads]

    def test_rollback_cleans_directory_when_git_remove_fails(self, git_repo, repo_path, temp_dir):
        target = temp_dir / "wt-manual"
        atomic = AtomicWorktreeOperation(str(repo_path))
        atomic.create_worktree(str(target), "feature/manual", create_branch=True)

        with patch.object(
            atomic.worktrees, "remove_worktree",
            side_effect=GitOperationError("worktree remove", str(target), stderr="fatal: nope"),
        ):
            atomic.rollback()

        assert not target.exists()

    def test_failed_add_leaves_nothing_to_roll_back(self, git_repo, repo_path, temp_dir):
        target = temp_dir / "wt-fail"
        atomic = AtomicWorktreeOperation(str(repo_path))

        with pytest.raises(GitOperationError):
            # main is already checked out in the main worktree
            atomic.create_worktree(str(target), "main")

        assert atomic.pending == 0
        assert not target.exists()

    def test_install_failure_rolls_back_worktree(self, git_repo, repo_path, temp_dir):
        target = temp_dir / "wt-install"

        with patch(
            "git_worktree_cli.core.atomic.run_install",
            side_effect=ExternalCommandError("npm install", "exited with status 1"),
        ):
            with pytest.raises(ExternalCommandError):
                with AtomicWorktreeOperation(str(repo_path)) as atomic:
                    atomic.create_worktree(str(target), "feature/install", create_branch=True)
                    atomic.run_install("npm", str(target))

        assert not os.path.exists(target)
        assert "feature/install" not in [h.name for h in git_repo.heads]

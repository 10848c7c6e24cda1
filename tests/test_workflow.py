"""Tests for the mutating command workflow"""
import signal
from unittest.mock import Mock

import pytest

from git_worktree_cli.core.shutdown import ShutdownCoordinator
from git_worktree_cli.core.workflow import mutating_workflow
from git_worktree_cli.exceptions import OperationCancelled
from git_worktree_cli.services.git.stash import DirtyAction, DirtyState


def prompter_choosing(action):
    prompter = Mock()
    prompter.choose_dirty_action.return_value = action
    return prompter


class TestMutatingWorkflow:
    """Test dirty-state handling around a command."""

    def test_clean_repo(self, git_repo, repo_path):
        prompter = prompter_choosing(DirtyAction.STASH)
        with mutating_workflow(str(repo_path), prompter) as ctx:
            assert ctx.dirty.state is DirtyState.CLEAN
            assert not ctx.is_bare
        prompter.choose_dirty_action.assert_not_called()

    def test_stash_restored_after_success(self, git_repo, repo_path):
        (repo_path / "work.txt").write_text("in progress\n")
        shutdown = ShutdownCoordinator(exit_func=Mock(), force_exit_func=Mock())

        with mutating_workflow(str(repo_path), prompter_choosing(DirtyAction.STASH), shutdown) as ctx:
            assert ctx.stashed
            assert not (repo_path / "work.txt").exists()
            assert shutdown.pending == 1

        assert shutdown.pending == 0
        assert (repo_path / "work.txt").exists()
        assert git_repo.git.stash("list") == ""

    def test_stash_restored_after_error(self, git_repo, repo_path):
        (repo_path / "work.txt").write_text("in progress\n")

        with pytest.raises(RuntimeError):
            with mutating_workflow(str(repo_path), prompter_choosing(DirtyAction.STASH)):
                raise RuntimeError("step failed")

        assert (repo_path / "work.txt").exists()
        assert git_repo.git.stash("list") == ""

    def test_interrupt_restores_stash_once(self, git_repo, repo_path):
        (repo_path / "work.txt").write_text("in progress\n")
        exit_func = Mock()
        shutdown = ShutdownCoordinator(exit_func=exit_func, force_exit_func=Mock())

        with mutating_workflow(str(repo_path), prompter_choosing(DirtyAction.STASH), shutdown) as ctx:
            shutdown.handle_signal(signal.SIGINT)
            assert (repo_path / "work.txt").exists()
            assert ctx.dirty.handle.consumed

        exit_func.assert_called_once_with(130)
        assert (repo_path / "work.txt").exists()
        assert git_repo.git.stash("list") == ""

    def test_abort_cancels_without_stashing(self, git_repo, repo_path):
        (repo_path / "work.txt").write_text("in progress\n")
        body = Mock()

        with pytest.raises(OperationCancelled):
            with mutating_workflow(str(repo_path), prompter_choosing(DirtyAction.ABORT)):
                body()

        body.assert_not_called()
        assert (repo_path / "work.txt").exists()

    def test_bare_repository_skips_dirty_check(self, git_repo, repo_path):
        (repo_path / "work.txt").write_text("in progress\n")
        git_repo.git.config("core.bare", "true")
        prompter = prompter_choosing(DirtyAction.ABORT)

        try:
            with mutating_workflow(str(repo_path), prompter) as ctx:
                assert ctx.is_bare
        finally:
            git_repo.git.config("core.bare", "false")

        prompter.choose_dirty_action.assert_not_called()

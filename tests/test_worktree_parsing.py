"""Tests for parsing `git worktree list --porcelain` output"""
from unittest.mock import patch

import git
import pytest

from git_worktree_cli.exceptions import (
    GitUnavailableError,
    InconsistentWorktreeRecordError,
    NotAGitRepositoryError,
)
from git_worktree_cli.services.git.worktrees import WorktreeService, parse_worktree_porcelain

SAMPLE = (
    "worktree /src/app\n"
    "HEAD 1111111111111111111111111111111111111111\n"
    "branch refs/heads/main\n"
    "\n"
    "worktree /src/app-feature-auth\n"
    "HEAD 2222222222222222222222222222222222222222\n"
    "branch refs/heads/feature/auth\n"
    "\n"
    "worktree /src/app-detached\n"
    "HEAD 3333333333333333333333333333333333333333\n"
    "detached\n"
    "\n"
    "worktree /src/app-locked\n"
    "HEAD 4444444444444444444444444444444444444444\n"
    "branch refs/heads/locked-branch\n"
    "locked on a usb drive\n"
    "\n"
)


class TestParseWorktreePorcelain:
    """Test porcelain parsing."""

    def test_sample_records(self):
        records = parse_worktree_porcelain(SAMPLE)

        assert len(records) == 4
        assert [r.is_main for r in records] == [True, False, False, False]
        assert records[0].branch == "main"
        assert records[1].branch == "feature/auth"
        assert records[1].path == "/src/app-feature-auth"

    def test_detached_record(self):
        detached = parse_worktree_porcelain(SAMPLE)[2]

        assert detached.detached is True
        assert detached.branch is None
        assert detached.label == "(detached 3333333)"

    def test_locked_record_keeps_reason(self):
        locked = parse_worktree_porcelain(SAMPLE)[3]

        assert locked.locked is True
        assert locked.lock_reason == "on a usb drive"

    def test_no_trailing_blank_line(self):
        records = parse_worktree_porcelain(SAMPLE.rstrip("\n"))
        assert len(records) == 4
        assert records[-1].locked

    def test_prunable_and_locked_without_reason(self):
        output = (
            "worktree /src/app\nHEAD aaaa\nbranch refs/heads/main\n\n"
            "worktree /src/gone\nHEAD bbbb\nbranch refs/heads/gone\nlocked\n"
            "prunable gitdir file points to non-existent location\n"
        )
        gone = parse_worktree_porcelain(output)[1]

        assert gone.locked is True
        assert gone.lock_reason is None
        assert gone.prunable is True
        assert gone.prune_reason == "gitdir file points to non-existent location"

    def test_bare_main_entry(self):
        records = parse_worktree_porcelain("worktree /src/app.git\nbare\n\n")

        assert records[0].bare is True
        assert records[0].is_main is True
        assert records[0].branch is None

    def test_record_without_branch_or_detached_fails(self):
        output = "worktree /src/app\nHEAD aaaa\n\n"
        with pytest.raises(InconsistentWorktreeRecordError):
            parse_worktree_porcelain(output)

    def test_empty_output(self):
        assert parse_worktree_porcelain("") == []


class TestWorktreeServiceQueries:
    """Test inventory queries against a real repository."""

    def test_list_main_only(self, git_repo, repo_path):
        records = WorktreeService(str(repo_path)).list_worktrees()

        assert len(records) == 1
        assert records[0].is_main
        assert records[0].branch == "main"

    def test_find_by_branch_and_path(self, git_repo, repo_path, temp_dir):
        target = temp_dir / "wt-feature"
        git_repo.git.worktree("add", "-b", "feature/find", str(target))
        service = WorktreeService(str(repo_path))

        by_branch = service.find_by_branch("feature/find")
        assert by_branch is not None
        assert by_branch.branch == "feature/find"

        by_path = service.find_by_path(str(target / ".." / "wt-feature"))
        assert by_path is not None
        assert by_path.branch == "feature/find"

    def test_find_by_branch_is_case_sensitive(self, git_repo, repo_path):
        assert WorktreeService(str(repo_path)).find_by_branch("MAIN") is None

    def test_outside_repository(self, temp_dir, monkeypatch):
        monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(temp_dir))
        plain = temp_dir / "plain"
        plain.mkdir()

        with pytest.raises(NotAGitRepositoryError):
            WorktreeService(str(plain)).list_worktrees()

    def test_git_executable_missing(self, git_repo, repo_path):
        missing = git.exc.GitCommandNotFound("git", OSError("No such file or directory"))

        with patch.object(git.Git, "execute", side_effect=missing):
            with pytest.raises(GitUnavailableError):
                WorktreeService(str(repo_path)).list_worktrees()

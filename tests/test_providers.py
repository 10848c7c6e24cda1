"""Tests for PR/MR provider lookup"""
import subprocess
from unittest.mock import Mock, patch

import pytest

from git_worktree_cli.exceptions import ProviderError
from git_worktree_cli.services.git.providers import (
    ProviderService,
    detect_git_provider,
    get_remote_hostname,
    parse_repo_slug,
)


def completed(stdout="", returncode=0, stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestDetection:
    """Test provider detection from remote URLs."""

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("git@github.com:org/repo.git", "gh"),
            ("https://github.com/org/repo.git", "gh"),
            ("git@gitlab.com:org/repo.git", "glab"),
            ("https://gitlab.example.com/org/repo", "glab"),
            ("https://bitbucket.org/org/repo.git", None),
            (None, None),
        ],
    )
    def test_detect_git_provider(self, url, expected):
        assert detect_git_provider(url) == expected

    def test_hostname(self):
        assert get_remote_hostname("ssh://git@GitHub.com/org/repo.git") == "github.com"

    def test_parse_repo_slug(self):
        assert parse_repo_slug("git@github.com:org/repo.git") == ("org", "repo")
        assert parse_repo_slug("https://gitlab.com/group/project") == ("group", "project")

    def test_parse_repo_slug_invalid(self):
        with pytest.raises(ProviderError):
            parse_repo_slug("not-a-url")


class TestGitHub:
    """Test GitHub lookups."""

    @patch("git_worktree_cli.services.git.providers.subprocess.run")
    def test_branch_from_gh_cli(self, mock_run):
        mock_run.return_value = completed("feature/from-pr\n")
        service = ProviderService("gh", "git@github.com:org/repo.git")

        assert service.get_branch_name(12) == "feature/from-pr"
        args = mock_run.call_args[0][0]
        assert args[:4] == ["gh", "pr", "view", "12"]

    @patch("git_worktree_cli.services.git.providers.subprocess.run")
    def test_missing_pr(self, mock_run):
        mock_run.return_value = completed(returncode=1, stderr="GraphQL: Could not resolve to a PullRequest")
        service = ProviderService("gh", "git@github.com:org/repo.git")

        with pytest.raises(ProviderError):
            service.get_branch_name(999)

    @patch("git_worktree_cli.services.git.providers.Github")
    @patch("git_worktree_cli.services.git.providers.subprocess.run", side_effect=FileNotFoundError("gh"))
    def test_falls_back_to_pygithub(self, mock_run, mock_github, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "token")
        pull = Mock()
        pull.head.ref = "feature/api"
        mock_github.return_value.get_repo.return_value.get_pull.return_value = pull
        service = ProviderService("gh", "https://github.com/org/repo.git")

        assert service.get_branch_name(7) == "feature/api"
        mock_github.return_value.get_repo.assert_called_once_with("org/repo")

    @patch("git_worktree_cli.services.git.providers.subprocess.run", side_effect=FileNotFoundError("gh"))
    def test_fallback_needs_token(self, mock_run):
        service = ProviderService("gh", "https://github.com/org/repo.git")
        with pytest.raises(ProviderError, match="GITHUB_TOKEN"):
            service.get_branch_name(7)

    @patch("git_worktree_cli.services.git.providers.subprocess.run")
    def test_list_open(self, mock_run):
        mock_run.return_value = completed(
            '[{"number": 3, "title": "Add login", "headRefName": "feature/login"}]'
        )
        requests = ProviderService("gh").list_open()

        assert len(requests) == 1
        assert requests[0].number == 3
        assert requests[0].branch == "feature/login"

    def test_fetch_refspec(self):
        assert ProviderService("gh").fetch_refspec(5, "feature/x") == "refs/pull/5/head:feature/x"


class TestGitLab:
    """Test GitLab lookups."""

    @patch("git_worktree_cli.services.git.providers.subprocess.run")
    def test_branch_from_glab_cli(self, mock_run):
        mock_run.return_value = completed('{"iid": 4, "source_branch": "fix/typo"}')
        assert ProviderService("glab").get_branch_name(4) == "fix/typo"

    @patch("git_worktree_cli.services.git.providers.subprocess.run")
    def test_fetch_refspec_uses_source_branch(self, mock_run):
        mock_run.return_value = completed('{"source_branch": "fix/typo"}')
        assert ProviderService("glab").fetch_refspec(4, "fix/typo") == "fix/typo:fix/typo"

    @patch("git_worktree_cli.services.git.providers.subprocess.run")
    def test_bad_json(self, mock_run):
        mock_run.return_value = completed("not json")
        with pytest.raises(ProviderError):
            ProviderService("glab").get_branch_name(4)

    def test_unknown_provider(self):
        with pytest.raises(ProviderError):
            ProviderService("bitbucket")

"""Pytest fixtures for git-worktree-cli tests"""
import tempfile
from pathlib import Path

import git
import pytest


def init_repo(path: Path) -> git.Repo:
    """Initialize a repository with one commit on main."""
    path.mkdir(parents=True, exist_ok=True)
    repo = git.Repo.init(path)

    # Configure git user for commits
    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Test User")
        writer.set_value("user", "email", "test@example.com")
        writer.set_value("commit", "gpgsign", "false")

    readme = path / "README.md"
    readme.write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")
    repo.git.branch("-M", "main")
    return repo


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository with an initial commit on main."""
    repo = init_repo(temp_dir / "test_repo")
    yield repo
    repo.close()


@pytest.fixture
def repo_path(git_repo):
    return Path(git_repo.working_dir)


@pytest.fixture(autouse=True)
def isolated_environment(temp_dir, monkeypatch):
    """Keep tests away from the user's config, editor and terminal."""
    monkeypatch.setenv("WT_CONFIG_DIR", str(temp_dir / "config"))
    monkeypatch.setenv("WT_EDITOR", "none")
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GITLAB_TOKEN", raising=False)
    monkeypatch.setattr("git_worktree_cli.ui.prompts.stdin_is_interactive", lambda: False)


@pytest.fixture
def in_repo(repo_path, monkeypatch):
    """Run the test with the repository as the working directory."""
    monkeypatch.chdir(repo_path)
    return repo_path


def worktree_branches(repo: git.Repo) -> list:
    """Branches of all worktrees, as git reports them."""
    output = repo.git.worktree("list", "--porcelain")
    return [
        line[len("branch refs/heads/"):]
        for line in output.splitlines()
        if line.startswith("branch ")
    ]

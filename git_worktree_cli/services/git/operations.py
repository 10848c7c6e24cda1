"""Git command execution and repository queries."""

import os
import re
from typing import List, Optional

import git

from git_worktree_cli.constants import DEFAULT_REMOTE
from git_worktree_cli.exceptions import (
    GitOperationError,
    GitUnavailableError,
    NotAGitRepositoryError,
)
from git_worktree_cli.logging_config import get_logger

logger = get_logger(__name__)


def _clean_stream(value, label: str) -> str:
    """Strip GitPython's "  stderr: '...'" decoration from captured output."""
    if value is None:
        return ""
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    text = str(value).strip()
    prefix = f"{label}: '"
    if text.startswith(prefix) and text.endswith("'"):
        text = text[len(prefix):-1]
    return text.strip()


def parse_repo_name_from_url(remote_url: str) -> Optional[str]:
    """Last path segment of a remote URL without the .git suffix."""
    match = re.search(r"[:/]([^/:]+?)(?:\.git)?/?$", remote_url.strip())
    return match.group(1) if match else None


class GitOperations:
    """Runs git subcommands in a working directory through GitPython."""

    def __init__(self, cwd: str = "."):
        """Initialize the service.

        Args:
            cwd: Directory git commands run in
        """
        self.cwd = os.path.abspath(cwd)

    def _get_git(self) -> git.Git:
        """Get a command wrapper bound to the working directory."""
        return git.Git(self.cwd)

    def run(self, *args: str, operation: Optional[str] = None, target: Optional[str] = None) -> str:
        """Run `git <args>` and return stripped stdout.

        Raises:
            GitOperationError: git exited non-zero (stderr is preserved)
            GitUnavailableError: the git executable could not be started
            NotAGitRepositoryError: the working directory does not exist
        """
        if not os.path.isdir(self.cwd):
            raise NotAGitRepositoryError(self.cwd)

        operation = operation or args[0]
        logger.debug(f"Running git {' '.join(args)} in {self.cwd}")
        try:
            return self._get_git().execute(["git", *args])
        except git.exc.GitCommandNotFound as e:
            raise GitUnavailableError(str(e)) from e
        except git.exc.GitCommandError as e:
            status = e.status if isinstance(e.status, int) else None
            raise GitOperationError(
                operation,
                target,
                stderr=_clean_stream(e.stderr, "stderr"),
                status=status,
                stdout=_clean_stream(e.stdout, "stdout"),
            ) from e

    def ensure_repository(self) -> None:
        """Raise NotAGitRepositoryError unless cwd is inside a git repository."""
        try:
            self.run("rev-parse", "--is-inside-work-tree", operation="rev-parse")
        except GitOperationError as e:
            logger.debug(f"Repository check failed: {e}")
            raise NotAGitRepositoryError(self.cwd) from e

    def is_main_repo_bare(self) -> bool:
        """True if the repository is configured with core.bare=true.

        A missing core.bare key means false. Any other failure is logged and
        treated as non-bare.
        """
        try:
            git_dir = self.run("rev-parse", "--git-dir", operation="rev-parse")
            if not os.path.isabs(git_dir):
                git_dir = os.path.join(self.cwd, git_dir)
            main_dir = os.path.dirname(git_dir) if os.path.basename(git_dir) == ".git" else git_dir
            output = GitOperations(main_dir).run(
                "config", "--get", "--bool", "core.bare", operation="config"
            )
            return output.strip() == "true"
        except GitOperationError as e:
            if e.status == 1 and not e.stderr and not e.stdout:
                return False
            logger.warning(f"Could not reliably determine if the main repository is bare: {e}")
            return False

    def get_current_branch(self) -> Optional[str]:
        """Current branch name, or None when HEAD is detached."""
        branch = self.run("branch", "--show-current", operation="branch --show-current")
        return branch.strip() or None

    def get_repo_root(self) -> Optional[str]:
        """Top-level directory of the working tree containing cwd."""
        try:
            return self.run("rev-parse", "--show-toplevel", operation="rev-parse").strip()
        except GitOperationError as e:
            logger.warning(f"Could not determine repository root: {e}")
            return None

    def get_common_dir(self) -> str:
        """Absolute path of the shared git directory."""
        common_dir = self.run("rev-parse", "--git-common-dir", operation="rev-parse").strip()
        if not os.path.isabs(common_dir):
            common_dir = os.path.join(self.cwd, common_dir)
        return os.path.normpath(common_dir)

    def get_remotes(self) -> List[str]:
        output = self.run("remote", operation="remote")
        return [line.strip() for line in output.splitlines() if line.strip()]

    def get_upstream_remote(self) -> str:
        """Remote used for branch lookups: origin if present, else the first remote."""
        try:
            remotes = self.get_remotes()
        except GitOperationError as e:
            logger.debug(f"Could not list remotes: {e}")
            return DEFAULT_REMOTE
        if DEFAULT_REMOTE in remotes or not remotes:
            return DEFAULT_REMOTE
        return remotes[0]

    def get_remote_url(self, remote: str = DEFAULT_REMOTE) -> Optional[str]:
        try:
            return self.run("remote", "get-url", remote, operation="remote get-url").strip() or None
        except GitOperationError:
            return None

    def get_repo_name(self) -> str:
        """Repository name from the origin URL, else from the shared git directory."""
        remote_url = self.get_remote_url()
        if remote_url:
            name = parse_repo_name_from_url(remote_url)
            if name:
                return name

        common_dir = self.get_common_dir()
        if os.path.basename(common_dir) == ".git":
            return os.path.basename(os.path.dirname(common_dir))
        name = os.path.basename(common_dir)
        return name[:-4] if name.endswith(".git") else name

    def _ref_exists(self, ref: str) -> bool:
        try:
            self.run("rev-parse", "--verify", "--quiet", ref, operation="rev-parse")
            return True
        except GitOperationError:
            return False

    def local_branch_exists(self, branch: str) -> bool:
        return self._ref_exists(f"refs/heads/{branch}")

    def remote_branch_exists(self, branch: str, remote: str) -> bool:
        return self._ref_exists(f"refs/remotes/{remote}/{branch}")

    def delete_branch(self, branch: str) -> None:
        """Force-delete a local branch."""
        self.run("branch", "-D", branch, operation="branch -D", target=branch)
        logger.info(f"Deleted local branch {branch}")

    def fetch(self, remote: str, refspec: str) -> None:
        self.run("fetch", remote, refspec, operation="fetch", target=refspec)

    def merge(self, branch: str) -> None:
        self.run("merge", branch, operation="merge", target=branch)

    def commit_all(self, message: str) -> None:
        """Stage everything and commit it."""
        self.run("add", "--all", operation="add")
        self.run("commit", "-m", message, operation="commit")

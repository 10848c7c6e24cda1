"""Worktree inventory and mutation service for git-worktree-cli."""

import os
import shutil
from typing import Dict, Any, List, Optional

from git_worktree_cli.exceptions import (
    GitOperationError,
    InconsistentWorktreeRecordError,
    NotAGitRepositoryError,
)
from git_worktree_cli.models.worktree import WorktreeRecord
from git_worktree_cli.services.git.failures import GitFailureKind
from git_worktree_cli.services.git.operations import GitOperations
from git_worktree_cli.logging_config import get_logger

logger = get_logger(__name__)

BRANCH_REF_PREFIX = "refs/heads/"


def _finalize_record(current: Dict[str, Any], is_main: bool) -> WorktreeRecord:
    """Build a WorktreeRecord from the fields collected for one porcelain block."""
    path = current["path"]
    branch = current.get("branch")
    detached = current.get("detached", False)
    bare = current.get("bare", False)

    if branch is None and not detached and not bare:
        raise InconsistentWorktreeRecordError(path)

    return WorktreeRecord(
        path=path,
        head=current.get("HEAD", ""),
        branch=branch,
        detached=detached,
        locked=current.get("locked", False),
        lock_reason=current.get("lock_reason"),
        prunable=current.get("prunable", False),
        prune_reason=current.get("prune_reason"),
        is_main=is_main,
        bare=bare,
    )


def _split_value(line: str) -> Optional[str]:
    """Return the text after the first space, or None for a bare keyword."""
    parts = line.split(" ", 1)
    if len(parts) == 2 and parts[1]:
        return parts[1]
    return None


def parse_worktree_porcelain(output: str) -> List[WorktreeRecord]:
    """Parse `git worktree list --porcelain` output.

    Format:
        worktree /path/to/worktree
        HEAD <sha>
        branch refs/heads/<name>   | detached | bare
        locked [<reason>]
        prunable [<reason>]
        (blank line between worktrees)

    The first block is always the main worktree.
    """
    records: List[WorktreeRecord] = []
    current: Dict[str, Any] = {}

    for raw_line in output.split("\n"):
        line = raw_line.rstrip("\r")

        if not line.strip():
            # Empty line marks end of worktree entry
            if current:
                records.append(_finalize_record(current, is_main=not records))
                current = {}
            continue

        if line.startswith("worktree "):
            if current:
                records.append(_finalize_record(current, is_main=not records))
            current = {"path": line[len("worktree "):]}
        elif not current:
            logger.debug(f"Ignoring porcelain line outside a worktree block: {line!r}")
        elif line.startswith("HEAD "):
            current["HEAD"] = line[len("HEAD "):]
        elif line.startswith("branch "):
            ref = line[len("branch "):]
            if ref.startswith(BRANCH_REF_PREFIX):
                ref = ref[len(BRANCH_REF_PREFIX):]
            current["branch"] = ref
        elif line == "detached":
            current["detached"] = True
        elif line == "bare":
            current["bare"] = True
        elif line == "locked" or line.startswith("locked "):
            current["locked"] = True
            current["lock_reason"] = _split_value(line)
        elif line == "prunable" or line.startswith("prunable "):
            current["prunable"] = True
            current["prune_reason"] = _split_value(line)
        else:
            logger.debug(f"Ignoring unknown porcelain attribute: {line!r}")

    # Handle last entry if no trailing blank line
    if current:
        records.append(_finalize_record(current, is_main=not records))

    return records


def _same_path(a: str, b: str) -> bool:
    return os.path.realpath(os.path.abspath(a)) == os.path.realpath(os.path.abspath(b))


class WorktreeService:
    """Service for listing and mutating git worktrees."""

    def __init__(self, repo_path: str = "."):
        """Initialize the worktree service.

        Args:
            repo_path: Any directory inside the repository
        """
        self.repo_path = os.path.abspath(repo_path)
        self.git = GitOperations(self.repo_path)

    def list_worktrees(self) -> List[WorktreeRecord]:
        """Get all worktrees in the order git reports them (main first).

        Raises:
            NotAGitRepositoryError: repo_path is not inside a repository
            GitUnavailableError: git cannot be executed
        """
        try:
            output = self.git.run("worktree", "list", "--porcelain", operation="worktree list")
        except GitOperationError as e:
            if e.kind is GitFailureKind.NOT_A_REPOSITORY:
                raise NotAGitRepositoryError(self.repo_path) from e
            raise

        records = parse_worktree_porcelain(output)
        logger.debug(f"Found {len(records)} worktrees")
        for record in records:
            logger.debug(f"  {record}")
        return records

    def find_by_branch(self, branch: str) -> Optional[WorktreeRecord]:
        """Worktree whose branch matches exactly (case-sensitive)."""
        return next((wt for wt in self.list_worktrees() if wt.branch == branch), None)

    def find_by_path(self, path: str) -> Optional[WorktreeRecord]:
        """Worktree at the given path, comparing resolved absolute paths."""
        return next((wt for wt in self.list_worktrees() if _same_path(wt.path, path)), None)

    def add_worktree(
        self,
        path: str,
        branch: str,
        create_branch: bool = False,
        start_point: Optional[str] = None,
    ) -> None:
        """Run `git worktree add`.

        Args:
            path: Directory for the new worktree
            branch: Branch to check out (or create)
            create_branch: Pass -b to create the branch
            start_point: Remote-tracking ref to create the branch from (implies --track)
        """
        args = ["worktree", "add"]
        if start_point:
            args += ["--track", "-b", branch, path, start_point]
        elif create_branch:
            args += ["-b", branch, path]
        else:
            args += [path, branch]
        self.git.run(*args, operation="worktree add", target=branch)
        logger.info(f"Created worktree for {branch} at {path}")

    def remove_worktree(self, path: str, force: bool = False, locked: bool = False) -> None:
        """Run `git worktree remove [--force] <path>`.

        A locked worktree needs --force twice; pass locked=True with force.
        """
        args = ["worktree", "remove"]
        if force:
            args += ["--force", "--force"] if locked else ["--force"]
        args.append(path)
        self.git.run(*args, operation="worktree remove", target=path)
        logger.info(f"Removed worktree at {path}")

    @staticmethod
    def delete_directory(path: str) -> bool:
        """Delete a leftover worktree directory. Returns True if something was removed."""
        if not os.path.lexists(path):
            return False
        shutil.rmtree(path)
        logger.info(f"Deleted directory {path}")
        return True

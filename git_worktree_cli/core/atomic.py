"""Multi-step worktree operations with rollback on failure."""

import os
from typing import Callable, List, Optional, Tuple

from rich.console import Console

from git_worktree_cli.exceptions import GitOperationError
from git_worktree_cli.services.external import run_install
from git_worktree_cli.services.git.operations import GitOperations
from git_worktree_cli.services.git.worktrees import WorktreeService
from git_worktree_cli.logging_config import get_logger

console = Console()
logger = get_logger(__name__)

RollbackAction = Callable[[], None]


class AtomicWorktreeOperation:
    """Tracks completed steps and undoes them newest-first if a later step fails.

    Use as a context manager: an exception inside the block triggers
    rollback() and is re-raised; a clean exit commits.
    """

    def __init__(self, repo_path: str = "."):
        self.repo_path = os.path.abspath(repo_path)
        self.worktrees = WorktreeService(self.repo_path)
        self.git = GitOperations(self.repo_path)
        self._rollback_actions: List[Tuple[str, RollbackAction]] = []
        self.committed = False

    def __enter__(self) -> "AtomicWorktreeOperation":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
        return False

    @property
    def pending(self) -> int:
        return len(self._rollback_actions)

    def _push(self, description: str, action: RollbackAction) -> None:
        self._rollback_actions.append((description, action))

    def execute(self, action: Callable[[], None], rollback: RollbackAction, description: str = "step") -> None:
        """Run action; register rollback only if it succeeded."""
        action()
        self._push(description, rollback)

    def create_worktree(
        self,
        path: str,
        branch: str,
        create_branch: bool = False,
        start_point: Optional[str] = None,
    ) -> None:
        """Add a worktree and register its removal.

        When the branch is created here (create_branch or start_point), the
        rollback also deletes it.
        """
        path = os.path.abspath(path)
        self.worktrees.add_worktree(path, branch, create_branch=create_branch, start_point=start_point)
        branch_created = create_branch or start_point is not None

        def undo() -> None:
            console.print(f"[yellow]Rolling back: removing worktree at {path}...[/yellow]")
            # Each cleanup runs even if the previous one failed
            try:
                self.worktrees.remove_worktree(path, force=True)
            except GitOperationError as e:
                logger.warning(f"git worktree remove failed during rollback, cleaning up manually: {e}")

            try:
                if WorktreeService.delete_directory(path):
                    console.print(f"[dim]Cleaned up directory: {path}[/dim]")
            except OSError as e:
                logger.warning(f"Could not delete {path} during rollback: {e}")

            if branch_created:
                try:
                    self.git.delete_branch(branch)
                    console.print(f"[dim]Deleted local branch: {branch}[/dim]")
                except GitOperationError as e:
                    logger.warning(f"Could not delete branch {branch} during rollback: {e}")

        self._push(f"create worktree {path}", undo)

    def run_install(self, package_manager: str, cwd: str) -> None:
        """Install dependencies. Nothing to undo beyond the worktree itself."""
        console.print(f"[blue]Installing dependencies with {package_manager}...[/blue]")
        run_install(package_manager, cwd)

    def commit(self) -> None:
        """Mark the operation successful and forget all rollback actions."""
        self.committed = True
        self._rollback_actions = []

    def rollback(self) -> None:
        """Undo completed steps newest-first. A failing step is logged and skipped."""
        if self.committed:
            logger.debug("Operation already committed, skipping rollback")
            return
        if not self._rollback_actions:
            return

        console.print("\n[yellow]Rolling back changes...[/yellow]")
        while self._rollback_actions:
            description, action = self._rollback_actions.pop()
            try:
                action()
            except Exception as e:
                console.print(f"[red]Rollback step failed ({description}): {e}[/red]")
                logger.debug(f"Rollback step '{description}' failed", exc_info=True)
        console.print("[yellow]Rollback complete.[/yellow]")

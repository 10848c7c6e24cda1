"""Shared preamble/teardown for commands that mutate the repository."""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from rich.console import Console

from git_worktree_cli.core.shutdown import ShutdownCoordinator
from git_worktree_cli.exceptions import OperationCancelled
from git_worktree_cli.services.git.operations import GitOperations
from git_worktree_cli.services.git.stash import DirtyResolution, DirtyState, DirtyStateController
from git_worktree_cli.ui.prompts import Prompter
from git_worktree_cli.logging_config import get_logger

console = Console()
logger = get_logger(__name__)


@dataclass
class WorkflowContext:
    """State shared by the steps of one mutating command."""
    repo_path: str
    is_bare: bool
    dirty: DirtyResolution

    @property
    def stashed(self) -> bool:
        return self.dirty.state is DirtyState.STASHED


@contextmanager
def mutating_workflow(
    repo_path: str,
    prompter: Prompter,
    shutdown: Optional[ShutdownCoordinator] = None,
    stash_message: Optional[str] = None,
) -> Iterator[WorkflowContext]:
    """Resolve dirty state, then guarantee the stash is restored exactly once.

    The dirty check is skipped for bare repositories. Choosing abort raises
    OperationCancelled before anything is changed. A stash taken here is
    restored by the shutdown callback on SIGINT/SIGTERM, or by this
    function's finally block on every other exit path.
    """
    git_ops = GitOperations(repo_path)
    is_bare = git_ops.is_main_repo_bare()
    dirty = DirtyResolution(DirtyState.CLEAN)

    if is_bare:
        logger.debug("Main repository is bare, skipping dirty-state check")
    else:
        console.print("[blue]Checking if main worktree is clean...[/blue]")
        dirty = DirtyStateController(repo_path).resolve(
            prompter.choose_dirty_action, message=stash_message
        )
        if dirty.state is DirtyState.ABORTED:
            raise OperationCancelled()
        if dirty.state is DirtyState.STASHED:
            console.print("[green]Changes stashed successfully.[/green]")
        elif dirty.state is DirtyState.CONTINUED_DIRTY:
            console.print("[yellow]Proceeding with uncommitted changes...[/yellow]")
        else:
            console.print("[green]Main worktree is clean.[/green]")

    registration = None
    if shutdown is not None and dirty.handle is not None:
        def restore_on_interrupt() -> None:
            console.print("[blue]Restoring stashed changes due to interruption...[/blue]")
            dirty.restore()

        registration = shutdown.register(restore_on_interrupt)

    try:
        yield WorkflowContext(repo_path=repo_path, is_bare=is_bare, dirty=dirty)
    finally:
        if registration is not None:
            registration.unregister()
        if dirty.handle is not None and not dirty.handle.consumed:
            console.print("[blue]Restoring your stashed changes...[/blue]")
            if dirty.handle.restore():
                console.print("[green]Changes restored successfully.[/green]")

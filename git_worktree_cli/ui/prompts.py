"""User prompts with non-interactive defaults."""

import sys
from typing import List, Optional, Sequence

from rich.console import Console
from rich.prompt import Confirm, Prompt

from git_worktree_cli.constants import DIRTY_STATE_MESSAGE
from git_worktree_cli.exceptions import OperationCancelled, WorktreeCliError
from git_worktree_cli.formatters.worktree import format_worktree_choice
from git_worktree_cli.models.pull_request import PullRequest
from git_worktree_cli.models.setup import SetupCommands
from git_worktree_cli.models.worktree import WorktreeRecord
from git_worktree_cli.services.git.stash import DirtyAction
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.ui.picker import pick_many, pick_one

logger = get_logger(__name__)


def stdin_is_interactive() -> bool:
    return sys.stdin is not None and sys.stdin.isatty()


class Prompter:
    """Asks the user questions, or answers with defaults when not interactive.

    Non-interactive answers:
        confirm            -> the given default
        dirty state        -> stash
        setup commands     -> declined
        pickers            -> error (a target must be given explicitly)
    """

    def __init__(self, interactive: Optional[bool] = None, console: Optional[Console] = None):
        self.interactive = stdin_is_interactive() if interactive is None else interactive
        self.console = console or Console()

    def confirm(self, message: str, default: bool = False) -> bool:
        if not self.interactive:
            logger.debug(f"Non-interactive, answering '{message}' with {default}")
            return default
        return Confirm.ask(message, default=default, console=self.console)

    def choose_dirty_action(self) -> DirtyAction:
        if not self.interactive:
            self.console.print(f"[yellow]{DIRTY_STATE_MESSAGE} Stashing them for this command.[/yellow]")
            return DirtyAction.STASH

        self.console.print(f"[yellow]{DIRTY_STATE_MESSAGE}[/yellow]")
        answer = Prompt.ask(
            "Stash them for the duration of this command, abort, or continue anyway?",
            choices=[action.value for action in DirtyAction],
            default=DirtyAction.STASH.value,
            console=self.console,
        )
        return DirtyAction(answer)

    def confirm_setup_commands(self, setup: SetupCommands) -> bool:
        self.console.print(f"\nSetup commands from {setup.source}:")
        for command in setup.commands:
            self.console.print(f"  • {command}")
        if not self.interactive:
            self.console.print(
                "[yellow]Not running setup commands without confirmation. "
                "Use --trust to run them non-interactively.[/yellow]"
            )
            return False
        return self.confirm("Run these commands?", default=False)

    def _require_interactive(self, what: str) -> None:
        if not self.interactive:
            raise WorktreeCliError(f"No {what} given and not running interactively.")

    def select_worktree(self, worktrees: Sequence[WorktreeRecord], title: str) -> WorktreeRecord:
        """Pick one worktree. Cancelling raises OperationCancelled."""
        self._require_interactive("worktree")
        if not worktrees:
            raise WorktreeCliError("No worktrees to choose from.")
        choice = pick_one(title, [(format_worktree_choice(wt), wt) for wt in worktrees])
        if choice is None:
            raise OperationCancelled()
        return choice

    def select_worktrees(self, worktrees: Sequence[WorktreeRecord], title: str) -> List[WorktreeRecord]:
        self._require_interactive("worktree selection")
        chosen = pick_many(title, [(format_worktree_choice(wt), wt) for wt in worktrees])
        if chosen is None:
            raise OperationCancelled()
        return chosen

    def select_pull_request(self, requests: Sequence[PullRequest], title: str) -> PullRequest:
        self._require_interactive("pull request number")
        if not requests:
            raise WorktreeCliError("No open requests found.")
        choice = pick_one(title, [(str(pr), pr) for pr in requests])
        if choice is None:
            raise OperationCancelled()
        return choice

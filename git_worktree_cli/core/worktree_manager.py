"""Command-level worktree workflows."""

import os
from typing import List, Optional

from rich.console import Console

from git_worktree_cli.config import Config, should_skip_editor
from git_worktree_cli.core.atomic import AtomicWorktreeOperation
from git_worktree_cli.core.shutdown import ShutdownCoordinator
from git_worktree_cli.core.workflow import mutating_workflow
from git_worktree_cli.exceptions import (
    BareRepositoryError,
    ExternalCommandError,
    GitOperationError,
    InvalidBranchNameError,
    OperationCancelled,
    WorktreeCliError,
    WorktreeNotFoundError,
    WorktreeStateError,
)
from git_worktree_cli.formatters import build_worktree_table, format_worktree_items
from git_worktree_cli.models.worktree import WorktreeRecord
from git_worktree_cli.services.external import open_in_editor
from git_worktree_cli.services.git.failures import GitFailureKind
from git_worktree_cli.services.git.operations import GitOperations
from git_worktree_cli.services.git.providers import ProviderService, detect_git_provider
from git_worktree_cli.services.git.stash import DirtyStateController
from git_worktree_cli.services.git.worktrees import WorktreeService
from git_worktree_cli.services.paths import resolve_worktree_path, validate_branch_name
from git_worktree_cli.services.setup_service import run_setup_commands
from git_worktree_cli.ui.prompts import Prompter
from git_worktree_cli.logging_config import get_logger

console = Console()
logger = get_logger(__name__)


class WorktreeManager:
    """Main class for managing git worktrees."""

    def __init__(
        self,
        repo_path: str = ".",
        config: Optional[Config] = None,
        prompter: Optional[Prompter] = None,
        shutdown: Optional[ShutdownCoordinator] = None,
    ):
        self.cwd = os.path.abspath(repo_path)
        self.config = config or Config()
        self.prompter = prompter or Prompter()
        self.shutdown = shutdown
        self.git = GitOperations(self.cwd)
        self.worktrees = WorktreeService(self.cwd)

    # --- shared helpers ---

    def _repo_root(self) -> str:
        self.git.ensure_repository()
        return self.git.get_repo_root() or self.cwd

    def _validate_branch(self, branch: Optional[str]) -> str:
        validation = validate_branch_name(branch)
        if not validation.is_valid:
            raise InvalidBranchNameError(branch or "", validation.error)
        return branch

    def _resolve_path(self, branch: str, repo_root: str, custom_path: Optional[str]) -> str:
        return resolve_worktree_path(
            branch,
            self.config,
            cwd=repo_root,
            custom_path=custom_path,
            use_repo_namespace=True,
            repo_name=self.git.get_repo_name,
        )

    def _open_editor(self, path: str, editor: Optional[str], required: bool = False) -> None:
        editor_command = self.config.resolve_editor(editor)
        if should_skip_editor(editor_command):
            console.print("[dim]Editor set to 'none', skipping editor open.[/dim]")
            return

        console.print(f"[blue]Opening {path} in {editor_command}...[/blue]")
        try:
            open_in_editor(editor_command, path)
        except ExternalCommandError as e:
            if required:
                raise
            console.print(
                f"[red]Failed to open editor \"{editor_command}\": {e}[/red]\n"
                f"[yellow]Worktree is ready at {path}. You can open it manually.[/yellow]"
            )

    def _find_target(self, target: str) -> WorktreeRecord:
        """Find a worktree by directory path, then by branch name."""
        record = None
        if os.path.isdir(target):
            record = self.worktrees.find_by_path(target)
        if record is None:
            record = self.worktrees.find_by_branch(target)
        if record is None:
            record = self.worktrees.find_by_path(target)
        if record is None:
            raise WorktreeNotFoundError(target)
        return record

    def _build_worktree(
        self,
        path: str,
        branch: str,
        repo_root: str,
        create_branch: bool = False,
        start_point: Optional[str] = None,
        install: Optional[str] = None,
        setup: bool = False,
        trust: bool = False,
    ) -> None:
        """Create the worktree and run setup/install, rolling everything back on failure."""
        with AtomicWorktreeOperation(repo_root) as atomic:
            with console.status(f"[bold blue]Creating worktree for {branch}...", spinner="dots"):
                atomic.create_worktree(path, branch, create_branch=create_branch, start_point=start_point)
            console.print(f"[green]Created worktree for \"{branch}\" at {path}[/green]")

            if setup:
                console.print("[blue]Running setup commands...[/blue]")
                ran = run_setup_commands(
                    path,
                    repo_root,
                    trust=trust or self.config.trust,
                    confirm=self.prompter.confirm_setup_commands,
                )
                if not ran:
                    console.print("[yellow]No setup commands were run.[/yellow]")

            if install:
                atomic.run_install(install, path)

    def _is_reusable(self, path: str, branch: str) -> bool:
        """True if path already holds a worktree this command can reuse."""
        existing = self.worktrees.find_by_path(path)
        if existing is not None:
            if existing.branch != branch:
                raise WorktreeStateError(
                    f"Directory {path} is a worktree for \"{existing.label}\", not \"{branch}\"."
                )
            return True
        return os.path.lexists(os.path.join(path, ".git"))

    # --- commands ---

    def create(
        self,
        branch: str,
        path: Optional[str] = None,
        install: Optional[str] = None,
        editor: Optional[str] = None,
        setup: bool = False,
        trust: bool = False,
    ) -> str:
        """Create (or reuse) a worktree for branch. Returns its path."""
        repo_root = self._repo_root()
        branch = self._validate_branch(branch)

        with mutating_workflow(
            self.cwd, self.prompter, self.shutdown,
            stash_message=f"wt-new: Before creating worktree for {branch}",
        ):
            resolved_path = self._resolve_path(branch, repo_root, path)
            reused = False

            if os.path.exists(resolved_path):
                console.print(f"[yellow]Directory already exists at: {resolved_path}[/yellow]")
                if not self._is_reusable(resolved_path, branch):
                    raise WorktreeStateError(
                        f"Directory {resolved_path} exists but is not a git worktree. "
                        "Remove it or choose a different path with --path."
                    )
                console.print(f"[green]Using existing worktree at: {resolved_path}[/green]")
                reused = True
            else:
                remote = self.git.get_upstream_remote()
                if self.git.local_branch_exists(branch):
                    console.print(f"[green]Using existing branch \"{branch}\".[/green]")
                    create_branch, start_point = False, None
                elif self.git.remote_branch_exists(branch, remote):
                    console.print(f"[yellow]Branch \"{branch}\" exists on {remote}. Creating local tracking branch...[/yellow]")
                    create_branch, start_point = True, f"{remote}/{branch}"
                else:
                    console.print(f"[yellow]Branch \"{branch}\" doesn't exist. Creating new branch with worktree...[/yellow]")
                    create_branch, start_point = True, None

                console.print(f"[blue]Creating new worktree for branch \"{branch}\" at: {resolved_path}[/blue]")
                self._build_worktree(
                    resolved_path, branch, repo_root,
                    create_branch=create_branch, start_point=start_point,
                    install=install, setup=setup, trust=trust,
                )

            self._open_editor(resolved_path, editor)
            console.print(f"[green]Worktree {'opened' if reused else 'created'} at {resolved_path}.[/green]")
            return resolved_path

    def extract(
        self,
        branch: Optional[str] = None,
        path: Optional[str] = None,
        install: Optional[str] = None,
        editor: Optional[str] = None,
    ) -> str:
        """Create a worktree for an existing branch (default: the current branch)."""
        repo_root = self._repo_root()

        with mutating_workflow(
            self.cwd, self.prompter, self.shutdown,
            stash_message="wt-extract: Before extracting worktree",
        ):
            if not branch:
                branch = self.git.get_current_branch()
                if not branch:
                    raise WorktreeCliError(
                        "Could not determine current branch (detached HEAD). "
                        "Specify a branch name: wt extract <branch>"
                    )
                console.print(f"[blue]No branch specified. Using current branch: {branch}[/blue]")
            branch = self._validate_branch(branch)

            existing = self.worktrees.find_by_branch(branch)
            if existing is not None:
                raise WorktreeStateError(f"Branch \"{branch}\" already has a worktree at {existing.path}.")

            remote = self.git.get_upstream_remote()
            exists_locally = self.git.local_branch_exists(branch)
            if not exists_locally and not self.git.remote_branch_exists(branch, remote):
                raise WorktreeCliError(f"Branch \"{branch}\" does not exist locally or on {remote}.")

            resolved_path = self._resolve_path(branch, repo_root, path)
            if os.path.exists(resolved_path):
                raise WorktreeStateError(
                    f"Directory already exists at: {resolved_path}. Choose a different path with --path."
                )

            console.print(f"[blue]Extracting branch \"{branch}\" to worktree at: {resolved_path}[/blue]")
            self._build_worktree(
                resolved_path, branch, repo_root,
                start_point=None if exists_locally else f"{remote}/{branch}",
                install=install,
            )

            self._open_editor(resolved_path, editor)
            console.print(f"[green]Worktree extracted at {resolved_path}.[/green]")
            return resolved_path

    def _provider_service(self) -> ProviderService:
        remote_url = self.git.get_remote_url()
        provider = detect_git_provider(remote_url) or self.config.git_provider
        logger.debug(f"Using git provider {provider}")
        return ProviderService(provider, remote_url)

    def create_from_pr(
        self,
        number: Optional[int] = None,
        path: Optional[str] = None,
        install: Optional[str] = None,
        editor: Optional[str] = None,
        setup: bool = False,
        trust: bool = False,
    ) -> str:
        """Fetch a PR/MR head branch and create a worktree for it."""
        repo_root = self._repo_root()
        provider = self._provider_service()
        kind = provider.short_type

        if number is None:
            with console.status(f"[bold blue]Fetching open {kind}s...", spinner="dots"):
                requests = provider.list_open()
            number = self.prompter.select_pull_request(requests, f"Select a {provider.request_type}").number

        with mutating_workflow(
            self.cwd, self.prompter, self.shutdown,
            stash_message=f"wt-pr: Before creating worktree for {kind} #{number}",
        ):
            console.print(f"[blue]Fetching branch name for {kind} #{number}...[/blue]")
            branch = provider.get_branch_name(number)
            console.print(f"[green]{provider.request_type} head branch name: \"{branch}\"[/green]")

            remote = self.git.get_upstream_remote()
            try:
                with console.status(f"[bold blue]Fetching {kind} #{number} from {remote}...", spinner="dots"):
                    self.git.fetch(remote, provider.fetch_refspec(number, branch))
            except GitOperationError as e:
                if not self.git.local_branch_exists(branch):
                    raise WorktreeCliError(f"Failed to fetch {kind} branch: {e}") from e
                console.print(f"[yellow]Branch \"{branch}\" already exists locally.[/yellow]")

            resolved_path = self._resolve_path(branch, repo_root, path)
            created = False
            if os.path.exists(resolved_path):
                existing = self.worktrees.find_by_path(resolved_path)
                if existing is None:
                    raise WorktreeStateError(
                        f"Directory \"{resolved_path}\" exists but is not a git worktree. "
                        "Remove it or choose a different path with --path."
                    )
                if existing.branch != branch:
                    raise WorktreeStateError(
                        f"Directory \"{resolved_path}\" is a worktree for \"{existing.label}\", not \"{branch}\"."
                    )
                console.print(f"[green]Existing worktree found at {resolved_path} for branch \"{branch}\".[/green]")
            else:
                self._build_worktree(
                    resolved_path, branch, repo_root,
                    install=install, setup=setup, trust=trust,
                )
                created = True

            self._open_editor(resolved_path, editor)
            console.print(
                f"[green]Worktree for {kind} #{number} ({branch}) "
                f"{'created' if created else 'found'} at {resolved_path}.[/green]"
            )
            return resolved_path

    def list_worktrees(self) -> List[WorktreeRecord]:
        """Print the worktree table and return the records."""
        self.git.ensure_repository()
        records = self.worktrees.list_worktrees()
        console.print(build_worktree_table(records))
        return records

    def open(self, target: Optional[str] = None, editor: Optional[str] = None) -> WorktreeRecord:
        """Open a worktree chosen by path, branch or picker in the editor."""
        self.git.ensure_repository()
        if target:
            record = self._find_target(target)
        else:
            record = self.prompter.select_worktree(self.worktrees.list_worktrees(), "Select a worktree to open")

        if not os.path.isdir(record.path):
            raise WorktreeStateError(
                f"Worktree directory {record.path} does not exist. "
                "Run 'git worktree prune' to clean up stale metadata."
            )
        if record.locked:
            reason = f": {record.lock_reason}" if record.lock_reason else ""
            console.print(f"[yellow]Warning: this worktree is locked{reason}[/yellow]")
        if record.prunable:
            console.print("[yellow]Warning: this worktree is marked prunable[/yellow]")

        self._open_editor(record.path, editor, required=True)
        return record

    def _remove_record(self, record: WorktreeRecord, force: bool) -> bool:
        """Remove a worktree's metadata and directory.

        A plain removal blocked by local changes asks before retrying with
        --force. Returns False if the user declined.
        """
        try:
            with console.status(f"[bold blue]Removing worktree {record.path}...", spinner="dots"):
                self.worktrees.remove_worktree(record.path, force=force, locked=record.locked)
            console.print("[green]Git worktree metadata removed.[/green]")
        except GitOperationError as e:
            if force or e.kind is not GitFailureKind.DIRTY_WORKTREE:
                raise
            console.print("[yellow]Worktree contains modified or untracked files.[/yellow]")
            if not self.prompter.confirm(
                "Do you want to force remove this worktree (this may lose changes)?", default=False
            ):
                return False
            self.worktrees.remove_worktree(record.path, force=True, locked=record.locked)
            console.print("[green]Git worktree metadata force removed.[/green]")

        if self.worktrees.delete_directory(record.path):
            console.print(f"[green]Deleted folder {record.path}[/green]")
        return True

    def remove(self, target: Optional[str] = None, force: bool = False) -> WorktreeRecord:
        self.git.ensure_repository()
        if target:
            record = self._find_target(target)
        else:
            candidates = [wt for wt in self.worktrees.list_worktrees() if not wt.is_main]
            record = self.prompter.select_worktree(candidates, "Select a worktree to remove")

        if record.is_main:
            raise WorktreeStateError("Cannot remove the main worktree.")

        console.print("[blue]Worktree to remove:[/blue]")
        if record.branch:
            console.print(f"[cyan]  Branch: {record.branch}[/cyan]")
        console.print(f"[cyan]  Path: {record.path}[/cyan]")

        if record.locked:
            reason = f": {record.lock_reason}" if record.lock_reason else ""
            console.print(f"[yellow]  Warning: This worktree is locked{reason}[/yellow]")
            if not force:
                raise WorktreeStateError("Use --force to remove a locked worktree.")

        if not force and self.prompter.interactive:
            if not self.prompter.confirm("Are you sure you want to remove this worktree?", default=False):
                raise OperationCancelled("Removal cancelled.")

        if not self._remove_record(record, force):
            raise OperationCancelled("Removal cancelled.")

        console.print("[green]Worktree removed successfully![/green]")
        return record

    def purge(self, select_all: bool = False, force: bool = False) -> List[WorktreeRecord]:
        """Remove several non-main worktrees. Returns the ones removed.

        Failures are reported per worktree and the batch continues.
        """
        self.git.ensure_repository()
        candidates = [wt for wt in self.worktrees.list_worktrees() if not wt.is_main]
        if not candidates:
            console.print("[green]No worktrees to purge (only main remains).[/green]")
            return []

        console.print(f"[blue]Found {len(candidates)} worktree(s) to potentially purge:[/blue]\n")
        console.print(format_worktree_items(candidates))
        console.print()

        if select_all:
            selected = candidates
        else:
            selected = self.prompter.select_worktrees(candidates, "Select worktrees to remove")
        if not selected:
            console.print("[yellow]No worktrees selected for removal.[/yellow]")
            return []

        if not self.prompter.interactive and not force:
            raise WorktreeCliError("Refusing to purge non-interactively without --force.")

        console.print(f"\n[blue]You selected {len(selected)} worktree(s) for removal:[/blue]")
        console.print(format_worktree_items(selected))
        if not force and not self.prompter.confirm(
            "Are you sure you want to remove these worktrees?", default=False
        ):
            raise OperationCancelled("Purge cancelled.")

        removed = []
        for record in selected:
            console.print(f"\n[blue]Removing worktree for \"{record.label}\"[/blue]")
            entry_force = force
            if record.locked and not force:
                reason = f": {record.lock_reason}" if record.lock_reason else ""
                console.print(f"[yellow]Worktree is locked{reason}[/yellow]")
                if not self.prompter.confirm("Force remove this locked worktree?", default=False):
                    console.print("[yellow]Skipping locked worktree.[/yellow]")
                    continue
                entry_force = True

            try:
                if self._remove_record(record, entry_force):
                    removed.append(record)
                else:
                    console.print("[yellow]Skipping worktree.[/yellow]")
            except GitOperationError as e:
                if e.kind is GitFailureKind.CORRUPT_WORKTREE:
                    console.print(
                        "[red]Git detected an inconsistency with this worktree: "
                        "its '.git' file is missing or corrupted.[/red]\n"
                        "[cyan]Suggested: run 'git worktree prune' to clean up stale metadata.[/cyan]"
                    )
                else:
                    console.print(f"[red]Failed to remove worktree: {e.stderr or e}[/red]")
            except OSError as e:
                console.print(f"[yellow]Could not delete folder {record.path}: {e}[/yellow]")

        console.print(f"\n[green]Purge finished: removed {len(removed)} of {len(selected)} worktree(s).[/green]")
        return removed

    def merge(
        self,
        branch: str,
        auto_commit: bool = False,
        message: Optional[str] = None,
        remove: bool = False,
        force: bool = False,
    ) -> WorktreeRecord:
        """Merge a worktree's branch into the current branch of this checkout."""
        self.git.ensure_repository()
        current_branch = self.git.get_current_branch()
        if not current_branch:
            raise WorktreeCliError("Failed to determine the current branch.")

        record = self.worktrees.find_by_branch(branch)
        if record is None:
            raise WorktreeNotFoundError(branch)

        console.print(
            f"[blue]Merging changes from worktree branch \"{branch}\" at {record.path} "
            f"into current branch \"{current_branch}\".[/blue]"
        )

        if not DirtyStateController(record.path).is_worktree_clean():
            if not auto_commit:
                raise WorktreeStateError(
                    f"The worktree for branch \"{branch}\" has uncommitted changes. "
                    "Commit or stash them first, or use --auto-commit."
                )
            commit_message = message or f"Auto-commit changes before merging {branch}"
            GitOperations(record.path).commit_all(commit_message)
            console.print("[green]Committed pending changes in target branch worktree.[/green]")

        try:
            with console.status(f"[bold blue]Merging branch \"{branch}\" into \"{current_branch}\"...", spinner="dots"):
                self.git.merge(branch)
        except GitOperationError as e:
            if e.kind is GitFailureKind.MERGE_CONFLICT:
                raise WorktreeCliError(
                    f"Merging \"{branch}\" produced conflicts. Resolve them and commit, "
                    "or run 'git merge --abort'."
                ) from e
            raise
        console.print(f"[green]Merged branch \"{branch}\" into \"{current_branch}\".[/green]")

        if remove:
            if self.git.is_main_repo_bare():
                raise BareRepositoryError("remove the worktree")
            if record.locked and not force:
                raise WorktreeStateError("Use --force to remove a locked worktree.")
            if not self._remove_record(record, force):
                raise OperationCancelled("Removal cancelled.")
            console.print(f"[green]Removed worktree at {record.path}.[/green]")
        else:
            console.print(f"[blue]Worktree for branch \"{branch}\" at {record.path} has been preserved.[/blue]")
            console.print(f"[yellow]Use 'wt remove {branch}' to clean it up when ready.[/yellow]")

        return record

"""Worktree formatting utilities."""

from typing import List

from rich.markup import escape
from rich.table import Table

from git_worktree_cli.constants import SYMBOL_LOCKED, SYMBOL_MAIN, SYMBOL_PRUNABLE
from git_worktree_cli.models.worktree import WorktreeRecord


def format_worktree_flags(worktree: WorktreeRecord) -> List[str]:
    """
    Status markers for a worktree.

    Returns:
        Subset of ["main", "locked", "prunable"] in that order
    """
    flags = []
    if worktree.is_main:
        flags.append(SYMBOL_MAIN)
    if worktree.locked:
        flags.append(SYMBOL_LOCKED)
    if worktree.prunable:
        flags.append(SYMBOL_PRUNABLE)
    return flags


def format_worktree_choice(worktree: WorktreeRecord) -> str:
    """
    One-line description used in pickers and confirmation lists.

    Example:
        "feature/auth  /src/app-feature-auth  (locked)"
    """
    markers = "".join(f" ({flag})" for flag in format_worktree_flags(worktree) if flag != SYMBOL_MAIN)
    return f"{worktree.label}  {worktree.path}{markers}"


def format_worktree_items(worktrees: List[WorktreeRecord]) -> str:
    """Bullet list of worktrees, one per line."""
    return "\n".join(f"  • {format_worktree_choice(wt)}" for wt in worktrees)


def build_worktree_table(worktrees: List[WorktreeRecord]) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Branch", style="cyan")
    table.add_column("Path")
    table.add_column("HEAD", style="dim")
    table.add_column("Status")

    for wt in worktrees:
        status_parts = []
        for flag in format_worktree_flags(wt):
            if flag == SYMBOL_LOCKED:
                reason = f": {escape(wt.lock_reason)}" if wt.lock_reason else ""
                status_parts.append(f"[yellow]{flag}{reason}[/yellow]")
            elif flag == SYMBOL_PRUNABLE:
                status_parts.append(f"[red]{flag}[/red]")
            else:
                status_parts.append(f"[green]{flag}[/green]")
        table.add_row(escape(wt.label), escape(wt.path), wt.short_head, " ".join(status_parts))

    return table

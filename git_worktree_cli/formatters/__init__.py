"""Formatting utilities for git-worktree-cli."""

from .worktree import (
    build_worktree_table,
    format_worktree_choice,
    format_worktree_flags,
    format_worktree_items,
)

__all__ = [
    "build_worktree_table",
    "format_worktree_choice",
    "format_worktree_flags",
    "format_worktree_items",
]

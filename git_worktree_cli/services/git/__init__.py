"""Git command layer: command runner, worktree inventory and stash handling."""

from .failures import GitFailureKind, classify_git_failure
from .operations import GitOperations
from .stash import DirtyAction, DirtyResolution, DirtyState, DirtyStateController, StashHandle
from .worktrees import WorktreeService, parse_worktree_porcelain

__all__ = [
    "GitFailureKind",
    "classify_git_failure",
    "GitOperations",
    "DirtyAction",
    "DirtyResolution",
    "DirtyState",
    "DirtyStateController",
    "StashHandle",
    "WorktreeService",
    "parse_worktree_porcelain",
]

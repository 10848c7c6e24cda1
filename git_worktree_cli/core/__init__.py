"""Core worktree workflows."""

from .atomic import AtomicWorktreeOperation
from .shutdown import ShutdownCoordinator, ShutdownRegistration
from .worktree_manager import WorktreeManager

__all__ = [
    "AtomicWorktreeOperation",
    "ShutdownCoordinator",
    "ShutdownRegistration",
    "WorktreeManager",
]

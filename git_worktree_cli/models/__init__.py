"""Data models for git-worktree-cli."""

from .worktree import WorktreeRecord
from .setup import SetupCommands, SetupFileKind
from .pull_request import PullRequest

__all__ = ["WorktreeRecord", "SetupCommands", "SetupFileKind", "PullRequest"]

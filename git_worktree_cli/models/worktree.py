"""Worktree data models."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class WorktreeRecord:
    """One entry of `git worktree list --porcelain`."""

    path: str
    head: str
    branch: Optional[str]  # None when detached or bare
    detached: bool = False
    locked: bool = False
    lock_reason: Optional[str] = None
    prunable: bool = False
    prune_reason: Optional[str] = None
    is_main: bool = False  # First entry git reports
    bare: bool = False

    @property
    def short_head(self) -> str:
        return self.head[:7] if self.head else ""

    @property
    def label(self) -> str:
        """Branch name, or a placeholder for detached/bare entries."""
        if self.branch:
            return self.branch
        if self.bare:
            return "(bare)"
        return f"(detached {self.short_head})" if self.short_head else "(detached)"

    def __str__(self) -> str:
        main_marker = " (main)" if self.is_main else ""
        return f"{self.label} @ {self.path}{main_marker}"

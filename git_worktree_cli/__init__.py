"""
git-worktree-cli - Manage Git worktrees and open them in your editor
"""

from .__version__ import __version__
from .core import WorktreeManager

__all__ = ["WorktreeManager", "__version__"]

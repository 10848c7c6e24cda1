"""Best-effort classification of git stderr text.

Git's messages are not a stable contract. The classifier recognizes a small,
closed set of failures the workflows react to and reports everything else as
UNCLASSIFIED, so callers must always handle that case.
"""

from enum import Enum
from typing import Optional


class GitFailureKind(Enum):
    """Failure categories recognized in git stderr."""
    DIRTY_WORKTREE = "dirty-worktree"
    LOCKED = "locked"
    CORRUPT_WORKTREE = "corrupt-worktree"
    NOT_A_REPOSITORY = "not-a-repository"
    ALREADY_EXISTS = "already-exists"
    ALREADY_CHECKED_OUT = "already-checked-out"
    MERGE_CONFLICT = "merge-conflict"
    UNCLASSIFIED = "unclassified"


def classify_git_failure(stderr: Optional[str]) -> GitFailureKind:
    """Map git stderr to a GitFailureKind."""
    if not stderr:
        return GitFailureKind.UNCLASSIFIED

    text = stderr.lower()

    if "modified or untracked files" in text:
        return GitFailureKind.DIRTY_WORKTREE
    if "validation failed" in text and "is not a .git file" in text:
        return GitFailureKind.CORRUPT_WORKTREE
    if "cannot remove a locked working tree" in text or "is locked" in text:
        return GitFailureKind.LOCKED
    if "not a git repository" in text:
        return GitFailureKind.NOT_A_REPOSITORY
    if "is already checked out" in text or "is already used by worktree" in text:
        return GitFailureKind.ALREADY_CHECKED_OUT
    if "already exists" in text:
        return GitFailureKind.ALREADY_EXISTS
    if "conflict" in text or "automatic merge failed" in text:
        return GitFailureKind.MERGE_CONFLICT

    return GitFailureKind.UNCLASSIFIED
